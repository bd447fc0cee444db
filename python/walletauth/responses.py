"""API response envelope helpers and exception handlers.

Error responses use the envelope:
    { "status": "fail", "data": { "message": "..." } }

with the numeric status set on the HTTP response. Server errors (5xx)
never show their message to the caller: it is replaced by a fixed
string and logged server-side instead.
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from walletauth.errors import ApiError, ApiErrorCode
from walletauth.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error"


def success_response(data: Any) -> dict[str, Any]:
    """Create a success response envelope."""
    return {"status": "success", "data": data}


def fail_response(message: str) -> dict[str, Any]:
    """Create a failure response envelope.

    Args:
        message: Human-readable error message.

    Returns:
        Dict with status "fail" and the message under "data".
    """
    return {"status": "fail", "data": {"message": message}}


def public_message(error: ApiError) -> str:
    """Message safe to show the caller for the given error."""
    if error.is_server_error:
        return INTERNAL_ERROR_MESSAGE
    return error.message


def error_response(error: ApiError) -> dict[str, Any]:
    """Create the failure envelope for an ApiError."""
    return fail_response(public_message(error))


def render_error(error: ApiError) -> JSONResponse:
    """Log an ApiError and render it as a JSON response.

    Server errors are logged at error level with full detail, client
    errors at info level.
    """
    if error.is_server_error:
        logger.error(
            "error_handler_server_error",
            code=error.code.value,
            status_code=error.status_code,
            error=error.message,
        )
    else:
        logger.info(
            "error_handler_client_error",
            code=error.code.value,
            status_code=error.status_code,
            error=error.message,
        )

    return JSONResponse(status_code=error.status_code, content=error_response(error))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Handle ApiError exceptions and return proper JSON response."""
    return render_error(exc)


async def http_exception_handler(request: Request, exc: Any) -> JSONResponse:
    """Handle Starlette HTTPException and return the failure envelope."""
    if exc.status_code >= 500:
        message = INTERNAL_ERROR_MESSAGE
    else:
        message = str(exc.detail) if exc.detail else "An error occurred"
    return JSONResponse(
        status_code=exc.status_code,
        content=fail_response(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions and return 500.

    Logs the exception server-side but never leaks details to client.
    """
    logger.exception("unhandled_exception", error=str(exc))

    return JSONResponse(
        status_code=500,
        content=error_response(ApiError(ApiErrorCode.E_INTERNAL)),
    )
