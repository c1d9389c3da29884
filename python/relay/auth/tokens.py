"""Auth token issuing and verification.

Tokens are HS256 JWTs carrying:
- sub: user id (UUID string)
- email: user email at issue time
- iat / exp: issue and expiry timestamps
- iss: fixed issuer

Tokens are never stored server-side; there is no revocation list.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from relay.errors import ApiError, ApiErrorCode
from relay.logging import get_logger

logger = get_logger(__name__)

TOKEN_ISSUER = "relay-api"
TOKEN_ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "email", "iat", "exp", "iss"]


@dataclass(frozen=True)
class TokenClaims:
    """Verified token contents."""

    user_id: UUID
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Mints and verifies auth tokens with a shared secret."""

    def __init__(self, secret: str, expires_in_s: int, issuer: str = TOKEN_ISSUER):
        self._secret = secret
        self._issuer = issuer
        self.expires_in_s = expires_in_s

    def mint(self, user_id: UUID, email: str, now: datetime | None = None) -> str:
        """Issue a token for user_id valid for expires_in_s seconds from now."""
        issued_at = now or datetime.now(UTC)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self.expires_in_s),
            "iss": self._issuer,
        }
        return jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Verify signature, issuer and expiry.

        Raises:
            ApiError(E_INVALID_CREDENTIAL): Token is expired, malformed, or
                signed with a different secret.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                issuer=self._issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except ExpiredSignatureError as e:
            raise ApiError(ApiErrorCode.E_INVALID_CREDENTIAL, "Token expired") from e
        except InvalidTokenError as e:
            logger.info("token_rejected", reason=type(e).__name__)
            raise ApiError(ApiErrorCode.E_INVALID_CREDENTIAL, "Invalid token") from e

        try:
            user_id = UUID(payload["sub"])
        except (ValueError, TypeError, AttributeError) as e:
            raise ApiError(ApiErrorCode.E_INVALID_CREDENTIAL, "Invalid token") from e

        return TokenClaims(
            user_id=user_id,
            email=payload["email"],
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
