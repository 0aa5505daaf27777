import logging

from fastapi import FastAPI

from datacleanse.api.endpoints import router as endpoints_router
from datacleanse.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.PROJECT_NAME)
app.include_router(endpoints_router)
