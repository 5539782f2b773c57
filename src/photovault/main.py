"""FastAPI application entry point."""

from fastapi import FastAPI

from .config import StorageSettings
from .dependencies import build_storage, include_routers
from .logging import configure_logging


def create_app(settings: StorageSettings | None = None) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    container = build_storage(settings or StorageSettings.build_default())
    app = FastAPI(title="PhotoVault")
    include_routers(app, container)
    return app
