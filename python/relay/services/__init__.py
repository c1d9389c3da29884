"""Business logic services.

Services are called by route handlers and sit on top of the identity and
chat stores and the LLM gateway.
"""

from relay.services.chats import ChatStore
from relay.services.users import UserStore

__all__ = [
    "ChatStore",
    "UserStore",
]
