# datacleanse/api/endpoints.py
import json
import uuid
import logging
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from typing import Dict, Any

from datacleanse.config import settings
from datacleanse.worker import SessionWorker

logger = logging.getLogger(__name__)

router = APIRouter()

# in-memory store, lives for the process only; oldest sessions are evicted past MAX_SESSIONS
_SESSIONS: Dict[str, SessionWorker] = {}

def _get_worker(session_id: str) -> SessionWorker:
    worker = _SESSIONS.get(session_id)
    if worker is None:
        raise HTTPException(status_code=404, detail="session not found")
    return worker

def _event_response(event: Dict[str, Any]) -> JSONResponse:
    status = 400 if event.get("type") == "error" else 200
    return JSONResponse(content=event, status_code=status)

@router.post("/sessions")
def create_session():
    while len(_SESSIONS) >= settings.MAX_SESSIONS:
        evicted = next(iter(_SESSIONS))
        del _SESSIONS[evicted]
        logger.info("evicted session %s", evicted)
    session_id = str(uuid.uuid4())
    _SESSIONS[session_id] = SessionWorker()
    return {"session_id": session_id}

@router.get("/sessions/{session_id}")
def get_session(session_id: str):
    dataset, column_profiles = _get_worker(session_id).session.snapshot()
    return {
        "session_id": session_id,
        "headers": dataset.header if dataset else [],
        "total_rows": dataset.row_count if dataset else 0,
        "profile": [p.model_dump() for p in column_profiles],
    }

@router.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    _get_worker(session_id)
    del _SESSIONS[session_id]
    return {"session_id": session_id, "deleted": True}

@router.post("/sessions/{session_id}/parse")
async def parse_endpoint(session_id: str, payload: Dict):
    worker = _get_worker(session_id)
    event = await worker.submit({**payload, "command": "parse"})
    return _event_response(event)

@router.post("/sessions/{session_id}/cleanse")
async def cleanse_endpoint(session_id: str, payload: Dict):
    worker = _get_worker(session_id)
    event = await worker.submit({**payload, "command": "cleanse"})
    return _event_response(event)

# -------------------------
# WebSocket worker channel
# -------------------------
@router.websocket("/ws/session")
async def websocket_session(websocket: WebSocket):
    await websocket.accept()
    worker = SessionWorker()
    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError as e:
                await websocket.send_json({"type": "error", "message": f"Invalid command: {e}"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "message": "Invalid command: expected a JSON object"})
                continue
            event = await worker.submit(message)
            await websocket.send_json(event)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    except Exception as e:
        logger.exception("websocket session failed")
        # the socket may already be gone; nothing more to report then
        try:
            await websocket.send_json({"type": "error", "message": str(e)})
            await websocket.close()
        except Exception:
            logger.debug("could not report failure to websocket client")
