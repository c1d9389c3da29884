"""Account service: signup, login, profile lookup.

Passwords are hashed with bcrypt (12 rounds). Login failures never reveal
whether the email exists.
"""

from uuid import UUID

import bcrypt

from relay.auth.tokens import TokenService
from relay.errors import ApiError, ApiErrorCode, NotFoundError
from relay.logging import get_logger
from relay.schemas.auth import LoginRequest, SignupRequest, UserOut
from relay.services.users import UserStore

logger = get_logger(__name__)

BCRYPT_ROUNDS = 12

INVALID_LOGIN_MESSAGE = "Invalid email or password"


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def signup(users: UserStore, req: SignupRequest) -> UserOut:
    """Create an account.

    Raises:
        ApiError(E_EMAIL_TAKEN): If an account already uses this email.
    """
    if users.find_by_email(req.email) is not None:
        raise ApiError(ApiErrorCode.E_EMAIL_TAKEN, "User with this email already exists")

    user = users.create(req.email, hash_password(req.password), req.name)
    logger.info("account_signup", user_id=str(user.id))
    return UserOut.model_validate(user)


def login(users: UserStore, tokens: TokenService, req: LoginRequest) -> tuple[UserOut, str]:
    """Check credentials and issue an auth token.

    Returns:
        The user and a freshly minted token.

    Raises:
        ApiError(E_INVALID_LOGIN): Unknown email or wrong password.
    """
    user = users.find_by_email(req.email)
    if user is None or not verify_password(req.password, user.password_hash):
        logger.info("account_login_failed")
        raise ApiError(ApiErrorCode.E_INVALID_LOGIN, INVALID_LOGIN_MESSAGE)

    token = tokens.mint(user.id, user.email)
    logger.info("account_login", user_id=str(user.id))
    return UserOut.model_validate(user), token


def get_profile(users: UserStore, user_id: UUID) -> UserOut:
    """Look up the caller's profile.

    Raises:
        NotFoundError: If the user was deleted after the token was issued.
    """
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return UserOut.model_validate(user)
