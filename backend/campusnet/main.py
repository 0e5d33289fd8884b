"""Campusnet - FastAPI Application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .cache import redis_cache
from .config import AppConfig, get_config, resolve_path, settings
from .errors import (
    AddressSpaceExhaustedError,
    AuthorizationError,
    CampusNetError,
    CatalogIncompleteError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from .models.user import User
from .notifications import Notifier
from .reports import MarkdownReportRenderer
from .routers import (
    admin_router,
    catalog_router,
    designs_router,
    notifications_router,
    requests_router,
)
from .storage import DeviceCatalog, InMemoryRequestStore, RedisRequestStore
from .websocket import websocket_endpoint, ws_manager
from .workflow.service import WorkflowService

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[CampusNetError], int] = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    PreconditionError: 409,
    CatalogIncompleteError: 422,
    AddressSpaceExhaustedError: 422,
}


def build_service(config: AppConfig) -> WorkflowService:
    """Wire the workflow service from the application config."""
    if config.storage.backend == "redis":
        store = RedisRequestStore(redis_cache, config.storage.key_prefix)
    else:
        store = InMemoryRequestStore()

    catalog = DeviceCatalog.from_yaml(config.catalog.path)
    renderer = MarkdownReportRenderer(
        resolve_path(config.reports.output_dir), config.reports.public_prefix
    )
    notifier = Notifier(
        store,
        ws=ws_manager,
        discord=config.notifications.channels.discord,
        duplicate_window_minutes=config.notifications.duplicate_window_minutes,
    )
    return WorkflowService(store, catalog, renderer, notifier)


async def campusnet_error_handler(request: Request, exc: CampusNetError) -> JSONResponse:
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
    )
    if status_code == 500:
        logger.error("Unmapped error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app(service: WorkflowService | None = None) -> FastAPI:
    """Build the application. Without a service, one is wired from config."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown events."""
        config = get_config()
        uses_redis = service is None and config.storage.backend == "redis"

        # Startup
        if uses_redis:
            await redis_cache.connect()

        if service is None:
            app.state.workflow = build_service(config)
            for seed in config.users:
                await app.state.workflow.store.save_user(User(**seed.model_dump()))
            logger.info("Seeded %d users", len(config.users))

        yield

        # Shutdown
        if uses_redis:
            await redis_cache.disconnect()

    app = FastAPI(
        title="Campusnet",
        description="Campus network design and request workflow API",
        version="1.0.0",
        lifespan=lifespan,
    )
    if service is not None:
        app.state.workflow = service

    # CORS configuration
    origins = ["*"] if settings.dev_mode else []
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CampusNetError, campusnet_error_handler)

    # Include routers
    app.include_router(requests_router, prefix="/api", tags=["requests"])
    app.include_router(designs_router, prefix="/api", tags=["designs"])
    app.include_router(catalog_router, prefix="/api", tags=["catalog"])
    app.include_router(notifications_router, prefix="/api", tags=["notifications"])
    app.include_router(admin_router, prefix="/api", tags=["admin"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "campusnet",
            "websocket_clients": ws_manager.connection_count,
        }

    # WebSocket endpoint
    app.websocket("/ws/notifications")(websocket_endpoint)

    return app


app = create_app()
