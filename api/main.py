"""Pick Assist API: FastAPI entry point.

Registers middleware, the rule router, error handlers, and the storage
lifecycle. ``create_app`` builds a fresh app so tests can pass their own
config and store.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.middleware import WarehouseMiddleware
from api.routes import router
from core.config import PickAssistConfig
from core.database import close_db, create_engine_from_config, create_session_factory, init_db
from core.exceptions import AppException
from core.logging import setup_logging
from core.storage import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore
from orders.stock_tracking import StockTrackingRepository
from packrules.repository import CatalogRepository

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[PickAssistConfig] = None,
    store: Optional[KeyValueStore] = None,
) -> FastAPI:
    """Build the API.

    Args:
        config: Defaults to ``PickAssistConfig.from_env()``.
        store: Use this store instead of the one the config selects.
    """
    config = config or PickAssistConfig.from_env()

    # -----------------------------------------------------------------------
    # Lifespan
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the settings store on startup, close it on shutdown."""
        setup_logging(config.api.log_level)
        engine = None
        if store is not None:
            active_store = store
        elif config.storage.backend == "sql":
            engine = create_engine_from_config(config.storage)
            await init_db(engine)
            active_store = SqlKeyValueStore(create_session_factory(engine))
        else:
            active_store = InMemoryKeyValueStore()

        app.state.config = config
        app.state.catalogs = CatalogRepository(active_store)
        app.state.stock_tracking = StockTrackingRepository(active_store)
        logger.info(
            "Pick Assist API started (store=%s)", type(active_store).__name__
        )
        try:
            yield
        finally:
            if engine is not None:
                await close_db(engine)
            logger.info("Pick Assist API shutting down")

    # -----------------------------------------------------------------------
    # App
    # -----------------------------------------------------------------------

    app = FastAPI(
        title="Pick Assist",
        description="Packaging and box rules for warehouse order picking",
        version=VERSION,
        debug=config.api.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.api.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(WarehouseMiddleware)

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(router, prefix="/api", tags=["Rules"])

    # -----------------------------------------------------------------------
    # Health & root
    # -----------------------------------------------------------------------

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": VERSION}

    @app.get("/")
    async def root():
        return {
            "name": "Pick Assist",
            "version": VERSION,
            "docs": "/docs",
            "description": "Packaging and box rules for warehouse order picking",
        }

    return app


app = create_app()
