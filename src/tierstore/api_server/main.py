# src/tierstore/api_server/main.py
"""
Main FastAPI application for the TierStore API server.

This module builds the FastAPI application with lifecycle management for
the TierStore instance, registers the record routes and provides
``run_server`` for serving it with uvicorn.
"""

import logging
import pathlib
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..api import TierStore
from ..exceptions import TierStoreError
from ..logging_config import configure_logging, log_display
from .routes import data_router

logger = logging.getLogger(__name__)


def create_app(
    config_overrides: Optional[Dict[str, Any]] = None,
    config_file_path: Optional[str | pathlib.Path] = None,
    env_prefix: Optional[str] = "TIERSTORE",
) -> FastAPI:
    """
    Create the FastAPI application.

    The TierStore instance is created in the lifespan handler and attached
    to ``app.state.tierstore``. If initialization fails the server still
    starts and the record endpoints answer 503.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API Server starting up...")
        try:
            app.state.tierstore = await TierStore.create(
                config_overrides=config_overrides,
                config_file_path=config_file_path,
                env_prefix=env_prefix,
            )
            logger.info(f"TierStore instance attached to app state with tiers {app.state.tierstore.get_tiers()}")
        except TierStoreError as e:
            logger.critical(f"Fatal error during TierStore initialization: {e}", exc_info=True)
            app.state.tierstore = None
            logger.warning("API server will start but TierStore service will be unavailable")

        yield

        logger.info("API Server shutting down...")
        if getattr(app.state, "tierstore", None):
            try:
                await app.state.tierstore.close()
                logger.info("TierStore instance successfully closed")
            except Exception as e:
                logger.error(f"Error during TierStore cleanup: {e}", exc_info=True)
        logger.info("API Server shutdown complete")

    app = FastAPI(
        title="TierStore API",
        description="Tiered record storage with refresh-on-read and compensating writes",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(data_router, tags=["data"])

    @app.exception_handler(RequestValidationError)
    async def invalid_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Answer malformed request bodies with 400, like blank ids and values."""
        logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint for monitoring."""
        store: Optional[TierStore] = getattr(app.state, "tierstore", None)
        if store:
            return {"status": "healthy", "tierstore_available": True, "tiers": store.get_tiers()}
        return {"status": "degraded", "tierstore_available": False}

    return app


def run_server(
    config_file_path: Optional[str | pathlib.Path] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    log_level: str = "info",
) -> None:
    """Install logging from the [logging] section and run the HTTP server.

    Args:
        config_file_path: Optional user TOML configuration file.
        host: Override the configured host.
        port: Override the configured port.
        log_level: uvicorn logging level.
    """
    from ..config import load_config

    config = load_config(config_file_path=config_file_path)
    configure_logging(app_name="tierstore", config=config.logging.handler_options())
    bind_host = host or config.server.host
    bind_port = port or config.server.port
    log_display(logger, logging.INFO, f"Serving TierStore API on {bind_host}:{bind_port}")

    uvicorn.run(
        create_app(config_file_path=config_file_path),
        host=bind_host,
        port=bind_port,
        log_level=log_level,
    )
