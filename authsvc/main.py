"""
Auth Service

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from authsvc.api.middleware.request_id import RequestIdMiddleware
from authsvc.api.v1 import router as api_v1_router
from authsvc.config import Settings, get_settings
from authsvc.database import build_engine, build_session_maker, close_db, init_db
from authsvc.kernel.identity.errors import AuthError, AuthErrorKind
from authsvc.kernel.identity.factory import build_auth_service
from authsvc.kernel.identity.interfaces import Authenticator
from authsvc.kernel.identity.sql_store import SqlAccountStore
from authsvc.logging_config import configure_logging, get_logger
from authsvc.schemas.common import HealthResponse

logger = get_logger(__name__)


# Status code and public message per error kind. Messages are fixed so a
# response never reveals which internal check failed.
AUTH_ERROR_RESPONSES: dict[AuthErrorKind, tuple[int, str]] = {
    AuthErrorKind.DUPLICATE_USER: (status.HTTP_409_CONFLICT, "User already exists"),
    AuthErrorKind.INVALID_CREDENTIALS: (status.HTTP_401_UNAUTHORIZED, "Invalid credentials"),
    AuthErrorKind.INVALID_TOKEN: (status.HTTP_401_UNAUTHORIZED, "Invalid or expired token"),
    AuthErrorKind.HASHING_FAILURE: (status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not process credentials"),
    AuthErrorKind.SIGNING_FAILURE: (status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not issue token"),
    AuthErrorKind.STORE_FAILURE: (status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable"),
}


def _error_headers(request: Request) -> dict:
    headers = {}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    return headers


async def auth_error_handler(request: Request, exc: AuthError):
    """Render an AuthError as its mapped status code."""
    status_code, detail = AUTH_ERROR_RESPONSES[exc.kind]
    headers = _error_headers(request)
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    if status_code >= 500:
        logger.error("Request failed: %s", exc.kind.value, exc_info=exc)
    content = {"detail": detail, "code": exc.kind.value}
    if status_code >= 500:
        content["request_id"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def http_exception_handler(request: Request, exc: HTTPException):
    """Attach the request id to 401/404 etc. responses."""
    headers = {**(exc.headers or {}), **_error_headers(request)}
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    content = {
        "detail": "Validation error",
        "errors": errors,
        "request_id": getattr(request.state, "request_id", None),
    }
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=content,
        headers=_error_headers(request),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "request_id": req_id},
        headers=_error_headers(request),
    )


def create_app(
    settings: Optional[Settings] = None,
    auth_service: Optional[Authenticator] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        auth_service: Pre-built auth service. When given, startup skips the
            database entirely (used by tests with an in-memory store)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """
        Application lifespan handler.

        Wires the SQL-backed auth service unless one was injected.
        """
        configure_logging(
            log_level=settings.log_level,
            environment=settings.environment,
            debug=settings.debug,
        )
        logger.info("Starting %s v%s", settings.project_name, settings.version)

        if auth_service is not None:
            yield
            return

        engine = build_engine(settings)
        await init_db(engine)
        logger.info("Database initialized")
        store = SqlAccountStore(build_session_maker(engine))
        app.state.auth_service = build_auth_service(settings, store)

        yield

        logger.info("Shutting down...")
        await close_db(engine)
        logger.info("Database connections closed")

    app = FastAPI(
        title=settings.project_name,
        description="Issues and verifies bearer tokens for registered accounts.",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    if auth_service is not None:
        app.state.auth_service = auth_service

    app.add_middleware(RequestIdMiddleware, slow_request_ms=settings.slow_request_ms)

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Check application health."""
        return HealthResponse(status="ok", version=settings.version)

    app.include_router(api_v1_router, prefix=settings.api_v1_prefix)

    return app


def run() -> None:
    """Serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "authsvc.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )


# Main entry point for development
if __name__ == "__main__":
    run()
