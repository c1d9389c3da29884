"""Identity store.

Persists user accounts (email, bcrypt hash, optional name). Each call runs in
its own short session from the injected session factory; returned User rows
are detached and fully loaded.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from relay.db.models import User
from relay.db.session import transaction
from relay.errors import ApiError, ApiErrorCode
from relay.logging import get_logger

logger = get_logger(__name__)

# Columns callers may change through update()
UPDATABLE_FIELDS = frozenset({"email", "password_hash", "name"})


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; store them trimmed and lowercased."""
    return email.strip().lower()


class UserStore:
    """SQLAlchemy-backed identity store."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def find_by_email(self, email: str) -> User | None:
        with self._session_factory() as db:
            return db.scalar(select(User).where(User.email == normalize_email(email)))

    def find_by_id(self, user_id: UUID) -> User | None:
        with self._session_factory() as db:
            return db.get(User, user_id)

    def create(self, email: str, password_hash: str, name: str | None = None) -> User:
        """Insert a new user.

        Raises:
            ApiError(E_EMAIL_TAKEN): If the normalized email already exists.
        """
        user = User(email=normalize_email(email), password_hash=password_hash, name=name)
        with self._session_factory() as db:
            try:
                with transaction(db):
                    db.add(user)
            except IntegrityError as e:
                raise ApiError(
                    ApiErrorCode.E_EMAIL_TAKEN, "User with this email already exists"
                ) from e

        logger.info("user_created", user_id=str(user.id))
        return user

    def update(self, user_id: UUID, **fields) -> User | None:
        """Update profile fields; returns None if the user does not exist."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])

        with self._session_factory() as db:
            user = db.get(User, user_id)
            if user is None:
                return None
            try:
                with transaction(db):
                    for key, value in fields.items():
                        setattr(user, key, value)
                    user.updated_at = datetime.now(UTC)
            except IntegrityError as e:
                raise ApiError(
                    ApiErrorCode.E_EMAIL_TAKEN, "User with this email already exists"
                ) from e
            return user

    def delete(self, user_id: UUID) -> bool:
        with self._session_factory() as db, transaction(db):
            result = db.execute(delete(User).where(User.id == user_id))
        return result.rowcount > 0
