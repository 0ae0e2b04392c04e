"""Error taxonomy and the FastAPI handlers that turn it into ``{"error": ...}`` bodies."""

import logging

import pydantic
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR_MESSAGE = "Internal server error"


class DriveAPIError(Exception):
    """Base class for every error the API maps onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DriveAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(ValidationError):
    """The resource already exists. Reported as 400 to keep the register contract."""

    default_message = "Resource already exists"


class PayloadTooLargeError(ValidationError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_message = "File too large"


class AuthError(DriveAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class NotFoundError(DriveAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "File not found"


class UpstreamError(DriveAPIError):
    """An external service failed in a way the caller cannot fix."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Upstream service error"


class RouteNotFound(DriveAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Route not found"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_production)


async def handle_drive_api_errors(request: Request, exc: DriveAPIError) -> JSONResponse:
    """Map a taxonomy error onto its status code."""
    if isinstance(exc, UpstreamError):
        logger.error(f"{request.method} {request.url.path} upstream failure: {exc.message}")
        message = GENERIC_SERVER_ERROR_MESSAGE if _is_production(request) else exc.message
        return error_response(exc.status_code, message)
    return error_response(exc.status_code, exc.message)


async def handle_http_exceptions(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unmatched paths and methods never leak Starlette's default body."""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return error_response(RouteNotFound.status_code, RouteNotFound.default_message)
    message = str(exc.detail) if exc.detail else "Request failed"
    return error_response(exc.status_code, message)


async def handle_pydantic_validation_errors(
    request: Request, exc: RequestValidationError | pydantic.ValidationError
) -> JSONResponse:
    """Report malformed request bodies as a 400 naming the offending fields."""
    errors = exc.errors()
    missing_fields = [
        ".".join(str(item) for item in error["loc"] if item != "body")
        for error in errors
        if error.get("type") == "missing"
    ]
    if missing_fields:
        message = f"Missing required fields: {', '.join(missing_fields)}"
    elif errors:
        first = errors[0]
        location = ".".join(str(item) for item in first["loc"] if item != "body")
        message = f"{location}: {first['msg']}" if location else first["msg"]
    else:
        message = ValidationError.default_message
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates during request processing."""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(e)
        message = GENERIC_SERVER_ERROR_MESSAGE if _is_production(request) else str(e) or GENERIC_SERVER_ERROR_MESSAGE
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
