"""Test helpers for authentication and common test operations.

Provides:
- Token minting for test authentication (valid, expired, foreign-signed)
- Header generation for test requests
- User creation helpers
- FakeGateway, a scripted stand-in for LLMGateway
"""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from relay.auth.gate import Principal
from relay.auth.tokens import TOKEN_ISSUER, TokenService
from relay.config import Settings
from relay.services.accounts import hash_password
from relay.services.llm import LLMError, LLMErrorClass, Turn
from relay.services.users import UserStore

TEST_JWT_SECRET = "test-secret-for-relay-tests-0123456789abcdef"
DEFAULT_PASSWORD = "secret1"


def make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {
        "DATABASE_URL": "sqlite://",
        "RELAY_ENV": "test",
        "JWT_SECRET": TEST_JWT_SECRET,
        "OPENROUTER_API_KEY": "sk-or-test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def mint_test_token(
    user_id: UUID | str,
    email: str = "user@example.com",
    expires_in: int = 3600,
    secret: str = TEST_JWT_SECRET,
    issuer: str = TOKEN_ISSUER,
) -> str:
    """Mint a token the app accepts (with the default secret and issuer)."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
        "iss": issuer,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def mint_expired_token(user_id: UUID | str, email: str = "user@example.com") -> str:
    """Mint a token that expired an hour ago."""
    issued = datetime.now(UTC) - timedelta(hours=2)
    service = TokenService(TEST_JWT_SECRET, expires_in_s=3600)
    return service.mint(UUID(str(user_id)), email, now=issued)


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def create_test_user(
    users: UserStore,
    email: str = "user@example.com",
    password: str = DEFAULT_PASSWORD,
    name: str | None = "Test User",
) -> Principal:
    """Insert a user directly through the store; returns its principal.

    Uses a cheap bcrypt cost so fixtures stay fast.
    """
    user = users.create(email, hash_password(password, rounds=4), name)
    return Principal(id=user.id, email=user.email)


class FakeGateway:
    """Scripted LLMGateway double.

    Replies with `reply` (or raises `error`) and records every call.
    """

    def __init__(self, reply: str = "Hi there! How can I help?", error: LLMError | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, list[Turn], int]] = []

    def fail_with(self, error_class: LLMErrorClass, message: str | None = None) -> None:
        self.error = LLMError(error_class, message)

    async def generate_reply(
        self, user_message: str, history: Sequence[Turn] = (), max_history: int = 10
    ) -> str:
        self.calls.append((user_message, list(history), max_history))
        if self.error is not None:
            raise self.error
        return self.reply
