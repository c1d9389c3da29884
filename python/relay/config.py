"""Application settings loaded from environment variables.

Environment Configuration:
    RELAY_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (required)

Auth Configuration:
    JWT_SECRET: HS256 signing secret for auth tokens (required in staging/prod)
    JWT_EXPIRES_IN_S: Token lifetime in seconds (default 7 days)
    COOKIE_NAME / COOKIE_DOMAIN / COOKIE_SECURE / COOKIE_SAME_SITE: auth cookie attributes

LLM Configuration:
    OPENROUTER_API_KEY: Provider API key (a missing key fails chat turns, not startup)
    OPENROUTER_MODEL: Model identifier sent with every completion request
    LLM_TIMEOUT_S: Bound on a single provider call
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

# Used when JWT_SECRET is unset in local/test. Refused in staging/prod.
DEV_JWT_SECRET = "relay-dev-secret-change-me-0123456789"


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL is always required
    - JWT_SECRET must be set explicitly in staging and prod
    - COOKIE_SAME_SITE=none requires COOKIE_SECURE=true
    """

    relay_env: Environment = Field(default=Environment.LOCAL, alias="RELAY_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]

    # Auth token settings
    jwt_secret: str = Field(default=DEV_JWT_SECRET, alias="JWT_SECRET")
    jwt_expires_in_s: int = Field(default=7 * 24 * 60 * 60, ge=60, alias="JWT_EXPIRES_IN_S")

    # Auth cookie settings
    cookie_name: str = Field(default="authToken", alias="COOKIE_NAME")
    cookie_domain: str | None = Field(default=None, alias="COOKIE_DOMAIN")
    cookie_secure: bool = Field(default=False, alias="COOKIE_SECURE")
    cookie_same_site: Literal["lax", "strict", "none"] = Field(
        default="lax", alias="COOKIE_SAME_SITE"
    )

    # CORS (single browser origin, credentials allowed)
    client_url: str = Field(default="http://localhost:3000", alias="CLIENT_URL")

    # OpenRouter settings
    openrouter_api_key: str | None = Field(default=None, alias="OPENROUTER_API_KEY")
    openrouter_model: str = Field(
        default="meta-llama/llama-3.2-3b-instruct:free", alias="OPENROUTER_MODEL"
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL"
    )
    openrouter_referer: str = Field(default="http://localhost:3000", alias="OPENROUTER_REFERER")
    openrouter_title: str = Field(default="Relay Chat", alias="OPENROUTER_TITLE")

    # LLM call limits
    llm_timeout_s: float = Field(default=30.0, gt=0, alias="LLM_TIMEOUT_S")
    llm_max_tokens: int = Field(default=1000, ge=1, alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0, alias="LLM_TEMPERATURE")
    chat_history_limit: int = Field(default=10, ge=0, le=100, alias="CHAT_HISTORY_LIMIT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Reject insecure combinations for deployed environments."""
        if self.relay_env in (Environment.STAGING, Environment.PROD):
            if self.jwt_secret == DEV_JWT_SECRET:
                raise ValueError(
                    f"JWT_SECRET is required for RELAY_ENV={self.relay_env.value}"
                )

        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters")

        if self.cookie_same_site == "none" and not self.cookie_secure:
            raise ValueError("COOKIE_SAME_SITE=none requires COOKIE_SECURE=true")

        return self

    @property
    def is_production(self) -> bool:
        """Whether internal error details must be hidden from clients."""
        return self.relay_env == Environment.PROD

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CLIENT_URL into a list."""
        return [o.strip() for o in self.client_url.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
