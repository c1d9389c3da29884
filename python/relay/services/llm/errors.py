"""LLM error classification and normalization.

Error classes:
- E_LLM_NOT_CONFIGURED: No provider API key configured (no network call made)
- E_LLM_INVALID_KEY: Authentication failure (401/403)
- E_LLM_RATE_LIMIT: Rate limit exceeded (429)
- E_LLM_QUOTA_EXCEEDED: Insufficient provider credits (402)
- E_LLM_PROVIDER_ERROR: Any other non-2xx, malformed body, timeout, network error
"""

from enum import Enum

from relay.errors import ApiErrorCode

PROVIDER_NAME = "openrouter"


class LLMErrorClass(str, Enum):
    """Normalized LLM error classifications.

    Values double as API error codes.
    """

    NOT_CONFIGURED = "E_LLM_NOT_CONFIGURED"
    INVALID_KEY = "E_LLM_INVALID_KEY"
    RATE_LIMIT = "E_LLM_RATE_LIMIT"
    QUOTA_EXCEEDED = "E_LLM_QUOTA_EXCEEDED"
    PROVIDER_ERROR = "E_LLM_PROVIDER_ERROR"

    @property
    def api_code(self) -> ApiErrorCode:
        return ApiErrorCode(self.value)


# Client-facing message per class; PROVIDER_ERROR appends the provider's own message
ERROR_MESSAGES: dict[LLMErrorClass, str] = {
    LLMErrorClass.NOT_CONFIGURED: "OpenRouter API key is not configured",
    LLMErrorClass.INVALID_KEY: "Invalid OpenRouter API key",
    LLMErrorClass.RATE_LIMIT: "Rate limit exceeded. Please try again later.",
    LLMErrorClass.QUOTA_EXCEEDED: "Insufficient credits. Please check your OpenRouter account.",
    LLMErrorClass.PROVIDER_ERROR: "OpenRouter API error",
}


class LLMError(Exception):
    """Exception for LLM-related errors.

    Attributes:
        error_class: The normalized error classification
        message: Human-readable error message
        provider: The provider that returned the error
    """

    def __init__(
        self,
        error_class: LLMErrorClass,
        message: str | None = None,
        provider: str | None = PROVIDER_NAME,
    ):
        self.error_class = error_class
        self.message = message or ERROR_MESSAGES[error_class]
        self.provider = provider
        super().__init__(self.message)


def classify_provider_error(status_code: int | None) -> LLMErrorClass:
    """Classify a provider HTTP status into a normalized error class.

    - 401 or 403 → INVALID_KEY
    - 429 → RATE_LIMIT
    - 402 → QUOTA_EXCEEDED
    - anything else (including no status) → PROVIDER_ERROR
    """
    if status_code in (401, 403):
        return LLMErrorClass.INVALID_KEY

    if status_code == 429:
        return LLMErrorClass.RATE_LIMIT

    if status_code == 402:
        return LLMErrorClass.QUOTA_EXCEEDED

    return LLMErrorClass.PROVIDER_ERROR


def provider_error_message(json_body: dict | None, fallback: str) -> str:
    """Pull error.message out of a provider error body, if present."""
    if isinstance(json_body, dict):
        error = json_body.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message:
                return message
    return fallback


def error_for_status(status_code: int, json_body: dict | None) -> LLMError:
    """Build the LLMError for a non-2xx provider response."""
    error_class = classify_provider_error(status_code)
    if error_class != LLMErrorClass.PROVIDER_ERROR:
        return LLMError(error_class)

    detail = provider_error_message(json_body, f"HTTP {status_code}")
    return LLMError(error_class, f"{ERROR_MESSAGES[error_class]}: {detail}")
