"""FastAPI application entrypoint. No business logic; only wiring, middleware and error translation."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scribe.api.v1 import router as v1_router
from scribe.core.config import Settings, get_settings
from scribe.core.errors import AppError, InternalError, ValidationError
from scribe.core.logging_config import configure_logging
from scribe.core.tokens import TokenConfig, TokenService
from scribe.realtime.channels import ChannelRegistry

logger = logging.getLogger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


def _envelope(status_code: int, message: str, errors: dict[str, list[str]] | None = None) -> JSONResponse:
    body: dict = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by the innermost field name."""
    grouped: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = loc[-1] if loc else "body"
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        grouped.setdefault(field, []).append(message)
    return grouped


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Application error", extra={"path": request.url.path, "error": exc.message})
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return _envelope(exc.status_code, exc.message, errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope(400, "Validation failed", _field_errors(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _envelope(exc.status_code, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path, "method": request.method})
    internal = InternalError()
    return _envelope(internal.status_code, internal.message)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Fails fast when the token secrets are missing."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Scribe API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.token_service = TokenService(TokenConfig.from_settings(settings))
    app.state.channels = ChannelRegistry(queue_size=settings.NOTIFICATION_QUEUE_SIZE)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Scribe API"}

    logger.info("Application created", extra={"environment": settings.APP_ENV})
    return app


app = create_app()
