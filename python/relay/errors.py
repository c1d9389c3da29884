"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Authentication errors (401)
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"
    E_INVALID_CREDENTIAL = "E_INVALID_CREDENTIAL"
    E_INVALID_LOGIN = "E_INVALID_LOGIN"

    # Authorization errors (403)
    E_FORBIDDEN = "E_FORBIDDEN"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_CHAT_NOT_FOUND = "E_CHAT_NOT_FOUND"
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"

    # Conflict errors (409)
    E_EMAIL_TAKEN = "E_EMAIL_TAKEN"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"

    # LLM errors (500)
    E_LLM_NOT_CONFIGURED = "E_LLM_NOT_CONFIGURED"
    E_LLM_INVALID_KEY = "E_LLM_INVALID_KEY"
    E_LLM_RATE_LIMIT = "E_LLM_RATE_LIMIT"
    E_LLM_QUOTA_EXCEEDED = "E_LLM_QUOTA_EXCEEDED"
    E_LLM_PROVIDER_ERROR = "E_LLM_PROVIDER_ERROR"

    # Server errors
    E_INTERNAL = "E_INTERNAL"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_UNAUTHENTICATED: 401,
    ApiErrorCode.E_INVALID_CREDENTIAL: 401,
    ApiErrorCode.E_INVALID_LOGIN: 401,
    ApiErrorCode.E_FORBIDDEN: 403,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_CHAT_NOT_FOUND: 404,
    ApiErrorCode.E_USER_NOT_FOUND: 404,
    ApiErrorCode.E_EMAIL_TAKEN: 409,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_LLM_NOT_CONFIGURED: 500,
    ApiErrorCode.E_LLM_INVALID_KEY: 500,
    ApiErrorCode.E_LLM_RATE_LIMIT: 500,
    ApiErrorCode.E_LLM_QUOTA_EXCEEDED: 500,
    ApiErrorCode.E_LLM_PROVIDER_ERROR: 500,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        details: Optional extra detail surfaced to the client
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str, details: str | None = None):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class ForbiddenError(ApiError):
    """Authorization failure error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_FORBIDDEN, message: str = "Forbidden"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST,
        message: str = "Invalid request",
        details: str | None = None,
    ):
        super().__init__(code, message, details)


class UnauthenticatedError(ApiError):
    """Missing credential, or the credential's subject no longer exists."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_UNAUTHENTICATED,
        message: str = "Authentication required",
    ):
        super().__init__(code, message)
