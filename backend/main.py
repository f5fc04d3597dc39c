import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import models  # noqa: F401  (registers tables on Base.metadata)
from core.config import get_settings
from core.database import init_database, dispose_database, get_database_manager
from core.logging import setup_logging
from routes.api_v1 import api_v1_router
from version import get_version


settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=get_version())

# CORS is configured here only, before any routers.
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(api_v1_router)


@app.on_event("startup")
async def on_startup() -> None:
    """Application startup hook."""
    await init_database(settings.database_url)
    if settings.env == "dev":
        await get_database_manager().create_all()
    logger.info("CORS allow_origins=%s", list(settings.cors_origins))
    logger.info("%s startup complete (env=%s)", settings.app_name, settings.env)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    """Application shutdown hook."""
    await dispose_database()
    logger.info("Application shutdown complete")


@app.get("/health")
async def health() -> dict:
    """Simple health check endpoint."""
    return {"status": "ok"}
