"""
Error envelope - maps the exception hierarchy to HTTP responses.

Every failure returns {"error": code, "message": text}; paywall denials
also carry the current balance.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog import get_logger

from postengine.config import ConfigurationError
from postengine.exceptions import (
    CreditsExhaustedError,
    InvalidInputError,
    MediaTooLargeError,
    MissingIdentityError,
    PostEngineError,
    StoreUnavailableError,
    UpstreamError,
    UpstreamTimeoutError,
)
from postengine.models.api import ErrorResponse
from postengine.observability.metrics import metrics

logger = get_logger(__name__)

# Most specific first; MediaTooLargeError is an InvalidInputError
_ERROR_MAP: tuple[tuple[type[Exception], int, str], ...] = (
    (MediaTooLargeError, status.HTTP_413_CONTENT_TOO_LARGE, "media_too_large"),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST, "invalid_input"),
    (MissingIdentityError, status.HTTP_400_BAD_REQUEST, "missing_identity"),
    (CreditsExhaustedError, status.HTTP_402_PAYMENT_REQUIRED, "credits_exhausted"),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR, "server_misconfigured"),
    (UpstreamTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "upstream_timeout"),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY, "upstream_error"),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable"),
)

CREDITS_EXHAUSTED_MESSAGE = "Free credits are used up. Upgrade to continue."


def error_status(exc: Exception) -> tuple[int, str]:
    """HTTP status and error code for an exception."""
    for error_type, status_code, code in _ERROR_MAP:
        if isinstance(exc, error_type):
            return status_code, code
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "server_error"


def error_response(exc: Exception) -> JSONResponse:
    """Render an exception as the error envelope."""
    status_code, code = error_status(exc)

    if isinstance(exc, CreditsExhaustedError):
        body = ErrorResponse(error=code, message=CREDITS_EXHAUSTED_MESSAGE, remaining=exc.balance)
        return JSONResponse(status_code=status_code, content=body.model_dump())

    if isinstance(exc, InvalidInputError):
        message = exc.message
    elif status_code >= 500:
        # Internal detail stays in the logs
        message = "Server error"
    else:
        message = str(exc)

    body = ErrorResponse(error=code, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def postengine_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log and render pipeline and configuration errors."""
    status_code, code = error_status(exc)
    metrics.record_error(type(exc).__name__, request.url.path)
    log = logger.error if status_code >= 500 else logger.info
    log("request_rejected", path=request.url.path, error=code, detail=str(exc))
    return error_response(exc)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report request body schema violations as invalid input."""
    assert isinstance(exc, RequestValidationError)
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        errors=errors,
    )
    first = errors[0] if errors else {"loc": [], "msg": "invalid request"}
    location = ".".join(str(part) for part in first["loc"] if part != "body")
    message = f"{location}: {first['msg']}" if location else str(first["msg"])
    body = ErrorResponse(error="invalid_input", message=message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True)
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: unexpected errors still get the envelope."""
    metrics.record_error(type(exc).__name__, request.url.path)
    logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=exc)
    return error_response(exc)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the error envelope handlers to the application."""
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PostEngineError, postengine_error_handler)
    app.add_exception_handler(ConfigurationError, postengine_error_handler)
