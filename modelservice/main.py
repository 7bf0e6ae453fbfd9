"""
Model Service - FastAPI Application Entry Point

``create_app`` builds the application around a ServiceRegistry: one CRUD
router is mounted per registered service under ``{api_v1_prefix}/{name}``.
Without an explicit registry, the default one serves the Picture model
from the configured database.

Run with:
    uvicorn modelservice.main:app
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Mapping, Optional

from fastapi import FastAPI

from modelservice.api import build_crud_router, register_exception_handlers
from modelservice.core.config import Settings, settings as default_settings
from modelservice.core.database import (
    create_engine_from_settings,
    create_session_factory,
    init_models,
)
from modelservice.core.logging_config import get_logger, setup_logging
from modelservice.middleware import RequestIDMiddleware
from modelservice.models import Base, Picture
from modelservice.repositories import SQLAlchemyBackend
from modelservice.services import ServiceRegistry

logger = get_logger(__name__)


def build_default_registry(app_settings: Settings, session_factory) -> ServiceRegistry:
    """Registry serving the Picture model as ``pictures``."""
    registry = ServiceRegistry(app_settings)
    registry.register_backend("pictures", SQLAlchemyBackend(Picture, session_factory))
    registry.register_service("pictures")
    return registry


def create_app(
    registry: Optional[ServiceRegistry] = None,
    app_settings: Optional[Settings] = None,
    rights: Optional[Mapping[str, Dict[str, str]]] = None
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        registry: Prebuilt registry; the default SQL registry when omitted
        app_settings: Settings to use instead of the module-level ones
        rights: Per service map of operation name to required right

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or default_settings
    engine = None

    if registry is None:
        engine = create_engine_from_settings(app_settings)
        registry = build_default_registry(app_settings, create_session_factory(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Startup:
            - Set up logging
            - Create missing tables when the app owns the engine

        Shutdown:
            - Dispose of the engine
        """
        setup_logging(level=app_settings.log_level, json_format=app_settings.log_json)

        if engine is not None:
            await init_models(engine, Base.metadata)

        logger.info(
            "Application started",
            extra={"event": "startup", "count": len(registry.service_names)}
        )

        yield

        if engine is not None:
            await engine.dispose()

    app = FastAPI(
        title=app_settings.project_name,
        version="0.1.0",
        description="Generic CRUD services with query-string filtering and bulk operations",
        openapi_url=f"{app_settings.api_v1_prefix}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Attached at creation so test transports without lifespan still see it
    app.state.registry = registry
    app.state.engine = engine

    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    service_rights = rights or {}
    for name in registry.service_names:
        app.include_router(
            build_crud_router(name, rights=service_rights.get(name)),
            prefix=f"{app_settings.api_v1_prefix}/{name}",
            tags=[name],
        )

    @app.get("/")
    async def root():
        """Basic API information."""
        return {
            "message": app_settings.project_name,
            "version": "0.1.0",
            "docs": "/docs",
            "services": registry.service_names,
        }

    return app


app = create_app()
