import os
import sys
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn import run as uvicorn

from mediakeeper.config.environment import Environment
from mediakeeper.config.logging_config import configure_logging, get_logger
from mediakeeper.media.lifecycle_manager import get_lifecycle_manager

from . import media

log = get_logger(__name__)


def create_app(origins: list[str] | None = None) -> FastAPI:
    """Build the debug overlay API around the process-wide lifecycle manager."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager = get_lifecycle_manager()
        manager.start()
        log.info("Media lifecycle manager started")

        yield

        log.info("Server shutdown initiated - releasing media resources")
        manager.on_unload()

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(media.router)

    @app.get("/health")
    async def health_check() -> str:
        return "OK"

    return app


def run_uvicorn_server(app: Any, host: str, port: int) -> None:
    """
    Starts the api using Uvicorn.

    Args:
        app: The app to run.
        host: The host to run on.
        port: The port to run on.
    """
    use_color = sys.stdout.isatty() and os.getenv("NO_COLOR") is None

    configure_logging()

    # Uvicorn uses its own logging; keep level name plain for compatibility
    formatter = {
        "format": os.getenv(
            "MEDIAKEEPER_LOG_FORMAT",
            (
                "\x1b[90m%(asctime)s\x1b[0m | %(levelname)s | \x1b[36m%(name)s\x1b[0m | %(message)s"
                if use_color
                else "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
            ),
        ),
        "datefmt": os.getenv("MEDIAKEEPER_LOG_DATEFMT", "%Y-%m-%d %H:%M:%S"),
    }
    log_level = Environment.get_log_level()

    uvicorn_log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": log_level.upper(),
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": log_level.upper(), "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": log_level.upper(), "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": log_level.upper(), "propagate": False},
        },
    }

    uvicorn(app=app, host=host, port=port, log_config=uvicorn_log_config)
