import asyncio
from typing import Dict, Any, Optional

from datacleanse.session import CleansingSession


class SessionWorker:
    """
    Async boundary around a CleansingSession.

    Commands run in the default thread-pool executor so a long parse or
    cleanse never blocks the event loop. The lock keeps at most one command
    per session in flight; each submitted command yields exactly one event.
    """

    def __init__(self, session: Optional[CleansingSession] = None):
        self.session = session or CleansingSession()
        self._lock = asyncio.Lock()

    async def submit(self, message: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self.session.handle, message)
