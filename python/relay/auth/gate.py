"""Auth gate: credential extraction, verification, and principal resolution.

Order of checks:
1. Take the credential from the auth cookie, else from
   `Authorization: Bearer <token>`
2. No credential: required gate rejects, optional gate yields no principal
3. Verify the token (signature, issuer, expiry)
4. Resolve the subject against the identity store
5. Return Principal(id, email)

The optional gate never rejects: credential failures are logged and the
request continues anonymously.
"""

from dataclasses import dataclass
from uuid import UUID

from relay.auth.tokens import TokenService
from relay.errors import ApiError, ApiErrorCode, UnauthenticatedError
from relay.logging import get_logger
from relay.services.users import UserStore

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class Principal:
    """Authenticated caller identity, built per request."""

    id: UUID
    email: str


def extract_credential(cookie_value: str | None, authorization_header: str | None) -> str | None:
    """Return the raw token, preferring the cookie over the bearer header."""
    if cookie_value:
        return cookie_value

    if authorization_header and authorization_header.lower().startswith(BEARER_PREFIX):
        token = authorization_header[len(BEARER_PREFIX) :].strip()
        return token or None

    return None


class AuthGate:
    """Turns a request credential into a Principal."""

    def __init__(self, tokens: TokenService, users: UserStore):
        self._tokens = tokens
        self._users = users

    def authenticate(self, credential: str | None, *, required: bool = True) -> Principal | None:
        """Resolve a credential to a Principal.

        Args:
            credential: Raw token, or None if the request carried none.
            required: Whether a missing or bad credential rejects the request.

        Returns:
            The principal, or None when the gate is optional and the
            credential is absent or invalid.

        Raises:
            UnauthenticatedError: Required gate with no credential, or the
                token's user no longer exists.
            ApiError(E_INVALID_CREDENTIAL): Required gate with a bad token.
        """
        if credential is None:
            if required:
                raise UnauthenticatedError(message="Access token required")
            return None

        try:
            principal = self._resolve(credential)
        except ApiError as e:
            if required:
                logger.warning("auth_failure", reason=e.code.value)
                raise
            logger.warning("optional_auth_ignored", reason=e.code.value)
            return None

        return principal

    def _resolve(self, credential: str) -> Principal:
        claims = self._tokens.verify(credential)

        user = self._users.find_by_id(claims.user_id)
        if user is None:
            raise UnauthenticatedError(ApiErrorCode.E_UNAUTHENTICATED, "User not found")

        return Principal(id=user.id, email=user.email)
