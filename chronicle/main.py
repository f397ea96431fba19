from fastapi import FastAPI
import logging

from chronicle.api.routes import router
from chronicle.catalog.startup import init_catalog_for_app

app = FastAPI(title="chronicle", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    init_catalog_for_app()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "chronicle", "version": "0.1.0"}
