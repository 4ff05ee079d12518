"""FastAPI application factory.

Main entry point for the Book Club Web API.
"""

from __future__ import annotations

import sqlite3
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookclub import __version__
from bookclub.config.app_config import AppConfig, load_app_config
from bookclub.config.constants import ERROR_MESSAGES, PRODUCTION_ERROR_MESSAGE
from bookclub.core.achievements import seed_catalog
from bookclub.db.database import get_db_path, init_db
from bookclub.llm.client import LLMError
from bookclub.services.ai_service import get_ai_service
from bookclub.services.stripe_service import StripeService
from bookclub.utils.errors import APIError, from_db_error, from_llm_error
from bookclub.web.dependencies import client_ip
from bookclub.web.rate_limit import build_limiters
from bookclub.web.routes import (
    achievements_router,
    affiliates_router,
    ai_chats_router,
    ai_router,
    auth_router,
    booklist_router,
    books_router,
    challenges_router,
    characters_router,
    diary_router,
    fine_tune_router,
    forums_router,
    goals_router,
    health_router,
    notifications_router,
    payments_router,
    reviews_router,
    spaces_router,
    streaks_router,
    users_router,
)

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS_HEADER = "max-age=31536000; includeSubDomains"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config: AppConfig = app.state.config
    init_db(Path(config.database.path))
    seed_catalog()
    logger.info(
        "api_startup",
        environment=config.server.environment,
        database=str(get_db_path().absolute()),
        ai_configured=get_ai_service().is_configured(),
        payments_configured=StripeService(config.stripe).is_configured,
    )
    yield


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error body shared by every handler."""
    if status_code >= 500 and request.app.state.config.server.is_production:
        message = PRODUCTION_ERROR_MESSAGE
        details = None

    request_id = getattr(request.state, "request_id", None)
    body: dict[str, Any] = {**(details or {}), "detail": message, "error": code, "request_id": request_id}
    response_headers = dict(headers or {})
    if request_id:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(status_code=status_code, content=body, headers=response_headers)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
        headers = {}
        if "retry_after" in exc.details:
            headers["Retry-After"] = str(exc.details["retry_after"])
        if exc.status_code >= 500:
            logger.error("api_error", path=request.url.path, code=exc.code, error=exc.message)
        return error_response(request, exc.status_code, exc.code, exc.message, exc.details, headers)

    @app.exception_handler(sqlite3.DatabaseError)
    async def handle_db_error(request: Request, exc: sqlite3.DatabaseError) -> JSONResponse:
        mapped = from_db_error(exc)
        return error_response(request, mapped.status_code, mapped.code, mapped.message)

    @app.exception_handler(LLMError)
    async def handle_llm_error(request: Request, exc: LLMError) -> JSONResponse:
        mapped = from_llm_error(exc)
        return error_response(request, mapped.status_code, mapped.code, mapped.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "validation_error",
            ERROR_MESSAGES["VALIDATION_ERROR"],
            {"errors": errors},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
        details = None
        if not request.app.state.config.server.is_production:
            details = {"details": f"{type(exc).__name__}: {exc}"}
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            ERROR_MESSAGES["INTERNAL_ERROR"],
            details,
        )


def _register_middleware(app: FastAPI, config: AppConfig) -> None:
    slow_request_ms = config.server.slow_request_ms

    @app.middleware("http")
    async def general_rate_limit(request: Request, call_next):
        limiter = request.app.state.rate_limiters.get("general")
        if limiter is not None and request.url.path.startswith("/api/"):
            retry_after = limiter.hit(f"general:{client_ip(request)}")
            if retry_after is not None:
                logger.warning("rate_limited", limiter="general", path=request.url.path)
                return error_response(
                    request,
                    status.HTTP_429_TOO_MANY_REQUESTS,
                    "rate_limit_exceeded",
                    ERROR_MESSAGES["RATE_LIMIT_EXCEEDED"],
                    {"retry_after": retry_after},
                    {"Retry-After": str(retry_after)},
                )
        return await call_next(request)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        response.headers[REQUEST_ID_HEADER] = request_id
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if config.server.is_production:
            response.headers["Strict-Transport-Security"] = HSTS_HEADER

        log_fields = dict(
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            request_id=request_id,
        )
        if duration_ms > slow_request_ms:
            logger.warning("slow_request", **log_fields)
        else:
            logger.info("request_completed", **log_fields)
        return response


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config. Loaded from disk when omitted.

    Returns:
        Configured FastAPI app instance
    """
    config = config or load_app_config()

    app = FastAPI(
        title="Book Club API",
        description="Web API for the book club platform",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.rate_limiters = build_limiters(config.rate_limits)

    _register_exception_handlers(app)
    _register_middleware(app, config)

    wildcard = config.server.cors_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(books_router)
    app.include_router(reviews_router)
    app.include_router(booklist_router)
    app.include_router(diary_router)
    app.include_router(payments_router)
    app.include_router(affiliates_router)
    app.include_router(spaces_router)
    app.include_router(forums_router)
    app.include_router(streaks_router)
    app.include_router(goals_router)
    app.include_router(challenges_router)
    app.include_router(achievements_router)
    app.include_router(notifications_router)
    app.include_router(ai_chats_router)
    app.include_router(characters_router)
    app.include_router(fine_tune_router)
    app.include_router(ai_router)

    return app


# Default app instance for uvicorn
app = create_app()
