"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan owns the external handles: the StorageClient (with
its connect-retry policy) and the optional Redis client used for rate
limiting. Both live on app.state, not in module globals.

The authorization gate is an app-wide dependency, so every route runs
through it; the gate lets allow-listed paths through untouched.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sneakerbox import __version__
from sneakerbox.api import api_router
from sneakerbox.auth.dependencies import authorization_gate
from sneakerbox.auth.errors import AuthError, InternalError
from sneakerbox.config import settings
from sneakerbox.db.engine import RetryPolicy, StorageClient

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "sneakerbox.starting",
        version=__version__,
        environment=settings.environment,
        session_profile=settings.session_profile,
        port=settings.port,
    )

    storage = StorageClient(settings.database_url, echo=settings.debug)
    await storage.connect(
        RetryPolicy.fixed(
            max_attempts=settings.db_connect_attempts,
            delay=settings.db_connect_delay_seconds,
        )
    )
    app.state.storage = storage

    app.state.redis = None
    try:
        import redis.asyncio as aioredis

        client = aioredis.from_url(
            settings.redis_url, encoding="utf-8", decode_responses=True
        )
        await client.ping()
        app.state.redis = client
        logger.info("sneakerbox.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("sneakerbox.redis_unavailable", error=str(e))
        # Redis is optional — only rate limiting depends on it

    yield

    logger.info("sneakerbox.shutdown")
    if app.state.redis is not None:
        await app.state.redis.aclose()
    await storage.dispose()


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("sneakerbox.unhandled_error", path=request.url.path)
    err = InternalError()
    return JSONResponse(
        status_code=err.status_code,
        content={"detail": err.detail, "code": err.code},
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="SneakerBox",
        description="Personal sneaker-collection manager",
        version=__version__,
        lifespan=lifespan,
        dependencies=[Depends(authorization_gate)],
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from sneakerbox.middleware.rate_limit import RateLimitMiddleware
    from sneakerbox.middleware.request_id import RequestIdMiddleware
    from sneakerbox.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: sneakerbox.main:app)
app = create_app()
