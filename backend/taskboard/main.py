"""FastAPI application entry point for the task store."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from taskboard.api import router as api_router
from taskboard.config import Settings, get_settings
from taskboard.db.session import close_db, init_db
from taskboard.exceptions import NotFoundError, RateLimitError, TaskboardError, ValidationError
from taskboard.middleware.logging import LoggingMiddleware
from taskboard.middleware.request_id import RequestIDMiddleware

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Install a level filter and context merging on structlog."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting Taskboard API", version=settings.app_version)
    await init_db()
    logger.info("Database connection initialized")

    yield

    logger.info("Shutting down Taskboard API")
    await close_db()
    logger.info("Database connection closed")


def _error_response(status_code: int, exc: TaskboardError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code,
        content={"error": exc.message, "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors raised by services to HTTP responses."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> ORJSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> ORJSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(RateLimitError)
    async def rate_limit_handler(request: Request, exc: RateLimitError) -> ORJSONResponse:
        response = _error_response(status.HTTP_429_TOO_MANY_REQUESTS, exc)
        if exc.retry_after is not None:
            response.headers["Retry-After"] = str(exc.retry_after)
        return response

    @app.exception_handler(TaskboardError)
    async def taskboard_error_handler(request: Request, exc: TaskboardError) -> ORJSONResponse:
        logger.error("unhandled_taskboard_error", code=exc.code, error=exc.message)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Project and task store backing the Kanban board and table views",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Add middleware (order matters - last added is first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        proxy_headers=True,
    )
