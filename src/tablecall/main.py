"""FastAPI application factory.

create_app() returns a configured FastAPI instance. The lifespan manages
startup/shutdown (Redis, database engine). The notification hub is owned
by the app (app.state.hub) so each app instance, including each test
app, gets its own registry.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tablecall import __version__
from tablecall.api import api_router
from tablecall.config import settings
from tablecall.realtime.hub import NotificationHub

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Anything before `yield` runs at startup, after `yield` at shutdown."""
    logger.info(
        "tablecall.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from tablecall.db.redis import close_redis, init_redis

    try:
        await init_redis()
        logger.info("tablecall.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis is optional: only rate limiting is lost
        logger.warning("tablecall.redis_unavailable", error=str(e))

    yield

    logger.info("tablecall.shutdown", **app.state.hub.stats())
    await close_redis()

    from tablecall.db.engine import engine

    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="TableCall",
        description="Restaurant back office with live table-call notifications",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.hub = NotificationHub()

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from tablecall.middleware.rate_limit import RateLimitMiddleware
    from tablecall.middleware.request_id import RequestIdMiddleware
    from tablecall.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
        public_rpm=settings.rate_limit_public_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    from tablecall.realtime.websocket import router as ws_router

    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: tablecall.main:app)
app = create_app()
