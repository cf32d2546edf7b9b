import logging

from fastapi import FastAPI

from app.config import ENGINE_VERSION, LOG_LEVEL
from app.routers import insights

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Chart Insights",
    description="Rule-based clinical decision support over a patient chart snapshot",
    version="0.1.0",
)

app.include_router(insights.router)
logger.info("Chart Insights ready (engine %s)", ENGINE_VERSION)


@app.get("/health")
async def health():
    return {"status": "ok"}
