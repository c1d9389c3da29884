"""API error envelope helpers and exception handlers.

Error responses use a flat envelope the browser client reads directly:
    { "error": "<message>", "code": "E_...", "details": "...", "request_id": "..." }

`details` is present only when there is something useful to add (validation
failures, LLM provider messages, internal errors outside prod).
"""

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from relay.errors import ApiError, ApiErrorCode
from relay.logging import get_logger, get_request_id

logger = get_logger(__name__)


def error_response(
    code: ApiErrorCode,
    message: str,
    details: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Create an error response envelope.

    Args:
        code: The error code enum value.
        message: Human-readable error message.
        details: Optional extra detail for the client.
        request_id: Optional request ID for correlation (auto-populated from context if None).

    Returns:
        Dict with "error", "code", and optional "details" / "request_id".
    """
    if request_id is None:
        request_id = get_request_id()

    body: dict[str, Any] = {"error": message, "code": code.value}
    if details:
        body["details"] = details
    if request_id:
        body["request_id"] = request_id

    return body


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Handle ApiError exceptions and return proper JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, exc.details),
    )


async def http_exception_handler(request: Request, exc: Any) -> JSONResponse:
    """Handle Starlette/FastAPI HTTPException (e.g. unknown routes)."""
    status_to_code = {
        400: ApiErrorCode.E_INVALID_REQUEST,
        401: ApiErrorCode.E_UNAUTHENTICATED,
        403: ApiErrorCode.E_FORBIDDEN,
        404: ApiErrorCode.E_NOT_FOUND,
        405: ApiErrorCode.E_INVALID_REQUEST,
        422: ApiErrorCode.E_INVALID_REQUEST,
    }
    code = status_to_code.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    message = "Route not found" if exc.status_code == 404 else str(exc.detail or "An error occurred")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, message),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request body validation errors as 400 with field details."""
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content=error_response(ApiErrorCode.E_INVALID_REQUEST, "Validation failed", details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions and return 500 with E_INTERNAL.

    The exception message is only echoed back outside prod.
    """
    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    settings = request.app.state.settings
    details = None if settings.is_production else str(exc)
    return JSONResponse(
        status_code=500,
        content=error_response(ApiErrorCode.E_INTERNAL, "Internal server error", details),
    )
