"""Database module for Relay.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from relay.db.engine import create_db_engine, get_engine
from relay.db.models import Base, Chat, ChatMessage, User
from relay.db.session import create_session_factory, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "create_session_factory",
    "transaction",
    # Models
    "Base",
    "User",
    "Chat",
    "ChatMessage",
]
