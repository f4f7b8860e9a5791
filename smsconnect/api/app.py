"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from smsconnect.api.routes import events, history, rules, settings as settings_routes
from smsconnect.core.config import get_settings
from smsconnect.core.logging import get_logger, setup_logging
from smsconnect.notification.channels.http_client import close_http_client, init_http_client
from smsconnect.schemas.common import error_body
from smsconnect.storage.redis_client import close_redis_pool, init_redis_pool

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    settings = get_settings()

    setup_logging()
    logger.info("Starting application", app_name=settings.app_name, version=settings.app_version)

    await init_redis_pool()
    await init_http_client()
    logger.info("Redis pool and HTTP client initialized")

    yield

    logger.info("Shutting down application")
    await close_http_client()
    await close_redis_pool()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="SMS and Alimtalk notifications for shop events",
        lifespan=lifespan,
    )

    app.include_router(events.router, prefix="/api/v1")
    app.include_router(rules.router, prefix="/api/v1")
    app.include_router(history.router, prefix="/api/v1")
    app.include_router(settings_routes.router, prefix="/api/v1")
    app.mount("/metrics", make_asgi_app())

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail
        if isinstance(detail, str):
            content = error_body(exc.status_code, detail)
        else:
            content = error_body(exc.status_code, "HTTP error", detail)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=error_body(422, "Validation error", jsonable_errors(exc)),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(500, "Internal server error", str(exc) if settings.debug else None),
        )

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "version": settings.app_version}

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the non-serializable ``ctx`` payloads."""
    return [{key: value for key, value in error.items() if key != "ctx"} for error in exc.errors()]


# Application instance for uvicorn
app = create_app()
