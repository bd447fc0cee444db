"""API error definitions.

Every rejection the pipeline can produce is an ApiError carrying one of the
codes below. The code, not the message, identifies the failure kind.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Client errors (400)
    E_MISSING_CONTEXT = "E_MISSING_CONTEXT"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_NETWORK = "E_INVALID_NETWORK"

    # Authentication errors (401)
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"
    E_SIGNATURE_INVALID = "E_SIGNATURE_INVALID"
    E_TOKEN_INVALID = "E_TOKEN_INVALID"
    E_REVOKED = "E_REVOKED"
    E_IDENTITY_NOT_FOUND = "E_IDENTITY_NOT_FOUND"

    # Authorization errors (401)
    E_UNAUTHORIZED = "E_UNAUTHORIZED"

    # Server errors (500)
    E_MISSING_VERIFICATION_KEY = "E_MISSING_VERIFICATION_KEY"
    E_LOOKUP_FAILED = "E_LOOKUP_FAILED"
    E_INTERNAL_LOOKUP_FAILURE = "E_INTERNAL_LOOKUP_FAILURE"
    E_INTERNAL = "E_INTERNAL"


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_MISSING_CONTEXT: 400,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_INVALID_NETWORK: 400,
    ApiErrorCode.E_UNAUTHENTICATED: 401,
    ApiErrorCode.E_SIGNATURE_INVALID: 401,
    ApiErrorCode.E_TOKEN_INVALID: 401,
    ApiErrorCode.E_REVOKED: 401,
    ApiErrorCode.E_IDENTITY_NOT_FOUND: 401,
    ApiErrorCode.E_UNAUTHORIZED: 401,
    ApiErrorCode.E_MISSING_VERIFICATION_KEY: 500,
    ApiErrorCode.E_LOOKUP_FAILED: 500,
    ApiErrorCode.E_INTERNAL_LOOKUP_FAILURE: 500,
    ApiErrorCode.E_INTERNAL: 500,
}

# Default messages, used when a raise site has nothing more specific to say
DEFAULT_MESSAGES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    500: "Internal Server Error",
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str | None = None):
        self.code = code
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        self.message = message or DEFAULT_MESSAGES.get(self.status_code, "Error")
        super().__init__(self.message)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def __repr__(self) -> str:
        return f"ApiError({self.code.value}, {self.message!r})"


class UnauthorizedError(ApiError):
    """Generic 401 rejection."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_UNAUTHORIZED, message: str | None = None
    ):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str | None = None
    ):
        super().__init__(code, message)
