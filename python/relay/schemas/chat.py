"""Chat and Message Pydantic schemas.

Contains the store-level read models (ChatOut, MessageOut, ChatSummaryOut),
the request bodies for the chat endpoints, and the chat-turn results.

Wire format uses camelCase (chatId, createdAt, updatedAt) to match the
browser client; dump with by_alias=True.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Title derivation
MAX_TITLE_CHARS = 50
TITLE_ELLIPSIS = "..."


# =============================================================================
# Read Models
# =============================================================================


class MessageOut(BaseModel):
    """A message as stored in a chat.

    `role` is kept as a plain string so rows written outside this service
    surface as-is; the chat-turn flow rejects anything other than
    user/assistant.
    """

    role: str
    content: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatOut(BaseModel):
    """A chat with its full ordered message list."""

    id: UUID
    title: str
    owner_id: UUID
    messages: list[MessageOut]
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class ChatSummaryOut(BaseModel):
    """List-view projection of a chat (no message bodies)."""

    id: UUID
    title: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Request Schemas
# =============================================================================


class CreateChatRequest(BaseModel):
    """Body for POST /chat/create."""

    message: str = Field(min_length=1)


class SendMessageRequest(BaseModel):
    """Body for POST /chat/send.

    chatId stays optional at the schema level so a missing id is reported
    by the chat-turn flow as a validation failure with a specific message.
    """

    message: str = Field(min_length=1)
    chat_id: str | None = Field(default=None, alias="chatId")

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Chat-turn Results
# =============================================================================


class StartChatResult(BaseModel):
    """Response for a new chat: id, derived title, assistant reply (or fallback)."""

    chat_id: UUID = Field(serialization_alias="chatId")
    title: str
    message: str


class ContinueChatResult(BaseModel):
    """Response for a follow-up turn."""

    chat_id: UUID = Field(serialization_alias="chatId")
    message: str
