"""Pydantic schemas for request/response validation."""

from relay.schemas.auth import LoginRequest, SignupRequest, UserOut
from relay.schemas.chat import (
    ChatOut,
    ChatSummaryOut,
    ContinueChatResult,
    CreateChatRequest,
    MessageOut,
    SendMessageRequest,
    StartChatResult,
)

__all__ = [
    # Auth
    "SignupRequest",
    "LoginRequest",
    "UserOut",
    # Chat
    "ChatOut",
    "ChatSummaryOut",
    "MessageOut",
    "CreateChatRequest",
    "SendMessageRequest",
    "StartChatResult",
    "ContinueChatResult",
]
