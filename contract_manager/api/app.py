"""FastAPI application serving the contract registry.

Provides REST endpoints for:
- Contract queries and manager mutations (single and batch)
- Administration (loop limit, manager role)
- The journal of committed notifications
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from contract_manager import __version__
from contract_manager.api.models import ErrorResponse
from contract_manager.api.routers import admin, contracts, events
from contract_manager.config import Settings, configure_logging, load_settings
from contract_manager.events.journal import EventJournal
from contract_manager.registry.contract_registry import ContractRegistry
from contract_manager.registry.errors import (
    CodeLookupError,
    ContractAlreadyExists,
    NotFound,
    RegistryError,
    StateStoreError,
    Unauthorized,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[RegistryError], int] = {
    Unauthorized: 403,
    NotFound: 404,
    ContractAlreadyExists: 409,
    CodeLookupError: 502,
    StateStoreError: 503,
}


def status_for(exc: RegistryError) -> int:
    """HTTP status for a registry error; rule violations default to 422."""
    for cls, code in ERROR_STATUS.items():
        if isinstance(exc, cls):
            return code
    return 422


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ContractRegistry] = None,
    journal: Optional[EventJournal] = None,
) -> FastAPI:
    """Build the API around a registry.

    Without an explicit ``registry`` the one deployed on the configured
    network is opened, with its journal attached, and closed at shutdown.
    A registry passed in stays owned by the caller.
    """
    from contract_manager.deploy import open_journal, open_registry

    if settings is None:
        settings = load_settings()
        configure_logging(settings)
    owns_registry = registry is None
    if registry is None:
        registry = open_registry(settings)
    if journal is None:
        journal = open_journal(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_registry:
            logger.info("Closing contract registry")
            registry.close()

    app = FastAPI(
        title="Contract Manager API",
        description="Authorized registry of contract addresses and their descriptions.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.journal = journal

    @app.exception_handler(RegistryError)
    async def registry_error_handler(request: Request, exc: RegistryError):
        body = ErrorResponse(**exc.to_dict())
        return JSONResponse(status_code=status_for(exc), content=body.model_dump())

    @app.exception_handler(ValueError)
    async def invalid_input_handler(request: Request, exc: ValueError):
        body = ErrorResponse(error="InvalidInput", detail=str(exc))
        return JSONResponse(status_code=422, content=body.model_dump())

    app.include_router(contracts.router)
    app.include_router(admin.router)
    app.include_router(events.router)

    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {
            "name": "Contract Manager API",
            "version": __version__,
            "network": settings.network,
            "docs": "/docs",
        }

    @app.get("/health", tags=["meta"])
    async def health():
        return {"status": "ok", "loop_limit": registry.loop_limit}

    logger.info(f"API ready for network '{settings.network}'")
    return app
