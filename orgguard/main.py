"""
OrgGuard - FastAPI Application
Plan limits, module gating and organization time rules for the outreach CRM
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from orgguard import __version__
from orgguard.api import websocket
from orgguard.api.dependencies import get_org_context
from orgguard.api.routes import (
    features,
    functions,
    health,
    limits,
    modules,
    org_time,
    resources,
    subscriptions,
    usage,
    voice_campaigns,
)
from orgguard.config import Settings, get_settings
from orgguard.core.exceptions import (
    ConfigurationError,
    IntegrationError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from orgguard.core.logger import configure_logging
from orgguard.database import build_engine, build_session_factory, init_db
from orgguard.realtime.change_feed import ChangeFeed
from orgguard.services.notification_service import send_notification
from orgguard.services.subscription_scheduler import SubscriptionSweepScheduler
from orgguard.services.timezone import utc_now

logger = logging.getLogger(__name__)

FUNCTIONS_PREFIX = "/functions/v1"


class ScopedCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that leaves excluded path prefixes to set their own headers."""

    def __init__(self, app, exclude_prefixes=(), **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.exclude_prefixes = tuple(exclude_prefixes)

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(self.exclude_prefixes):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting %s...", settings.app_name)

    init_db(app.state.engine)
    logger.info("Database initialized")

    scheduler = None
    if settings.subscription_sweep_enabled:
        scheduler = SubscriptionSweepScheduler(
            app.state.session_factory,
            settings.subscription_sweep_cron,
            grace_days=settings.past_due_grace_days,
            warning_days=settings.trial_warning_days,
        )
        scheduler.start()
    app.state.sweep_scheduler = scheduler
    logger.info("API running on %s environment", settings.app_env)
    yield
    if scheduler is not None:
        await scheduler.stop()
    app.state.engine.dispose()
    logger.info("Shutting down %s...", settings.app_name)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LimitExceededError)
    async def limit_exceeded_handler(request: Request, exc: LimitExceededError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                "detail": exc.message,
                "limit_key": exc.limit_key,
                "limit": exc.limit,
                "current": exc.current,
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("Configuration error: %s", exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})

    @app.exception_handler(IntegrationError)
    async def integration_handler(request: Request, exc: IntegrationError) -> JSONResponse:
        logger.warning("Integration error status=%s: %s", exc.status_code, exc)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "status": exc.status_code, "details": exc.details},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.app_debug)

    app = FastAPI(
        title=settings.app_name,
        description="Plan limits, module gating and organization time rules",
        version=__version__,
        lifespan=lifespan,
    )
    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.change_feed = ChangeFeed()
    app.state.notifier = send_notification
    app.state.clock = utc_now
    app.state.http_transport = None

    # Respect proxy forwarded proto/host so redirects don't downgrade to http.
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")
    app.add_middleware(
        ScopedCORSMiddleware,
        exclude_prefixes=(f"{FUNCTIONS_PREFIX}/",),
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    async def root() -> dict:
        return {
            "name": settings.app_name,
            "environment": settings.app_env,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    prefix = settings.api_v1_prefix
    app.include_router(health.router, prefix=prefix, tags=["Health"])
    app.include_router(limits.router, prefix=prefix, tags=["Limits"])
    app.include_router(usage.router, prefix=prefix, tags=["Usage"])
    app.include_router(modules.router, prefix=prefix, tags=["Modules"])
    app.include_router(features.router, prefix=prefix, tags=["Features"])
    app.include_router(org_time.router, prefix=prefix, tags=["Organization Time"])
    app.include_router(resources.router, prefix=prefix, tags=["Resources"])
    app.include_router(
        voice_campaigns.router,
        prefix=f"{prefix}/voice-campaigns",
        tags=["Voice Campaigns"],
    )
    app.include_router(
        subscriptions.router,
        prefix=f"{prefix}/subscriptions",
        tags=["Subscriptions"],
        dependencies=[Depends(get_org_context)],
    )
    app.include_router(functions.router, prefix=FUNCTIONS_PREFIX, tags=["Functions"])
    app.include_router(websocket.router, tags=["WebSocket"])
    return app


app = create_app()
