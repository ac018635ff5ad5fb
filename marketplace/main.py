"""
FastAPI Production Application

Main entry point for the Marketplace API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from marketplace.config import get_settings
from marketplace.config.logging import configure_logging
from marketplace.database.connection import close_database, init_database
from marketplace.serving.api import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Marketplace API", environment=settings.app_env, version=settings.version)

    await init_database()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(settings, lifespan=lifespan)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
