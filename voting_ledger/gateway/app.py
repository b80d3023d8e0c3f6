from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..store import open_store
from ..store.api import KVStore
from ..logging import get_logger
from ..version import __version__
from .config import Settings, get_settings
from .errors import install_error_handlers
from .routers import build_router

log = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    App lifespan: the store is opened by the factory; close it on shutdown
    when the app owns it.
    """
    log.info("gateway_started", store=type(app.state.store).__name__)
    try:
        yield
    finally:
        if app.state.owns_store:
            app.state.store.close()
        log.info("gateway_stopped")


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[KVStore] = None,
) -> FastAPI:
    """
    FastAPI factory. Mounts routers, CORS and error handlers.

    Pass `store` to serve an existing handle (tests, embedding hosts); otherwise
    the backend configured by VOTING_LEDGER_STORE is opened and owned by the app.
    """
    cfg = settings or get_settings()

    app = FastAPI(title="Voting Ledger Gateway", version=__version__, lifespan=_lifespan)
    app.state.settings = cfg
    app.state.owns_store = store is None
    app.state.store = store if store is not None else open_store()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )
    install_error_handlers(app)
    app.include_router(build_router())
    return app
