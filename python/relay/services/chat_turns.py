"""Chat-turn orchestration: start a chat, continue a chat, read chats.

Turn flow:
1. Validate input (no writes)
2. Persist the user message (durable before the provider call)
3. Call the LLM gateway (no DB session held)
4. Persist the assistant reply

Failure policy after step 2 is asymmetric:
- start_chat degrades: the chat keeps only the user message and the
  caller gets FALLBACK_REPLY with a success status
- continue_chat fails visibly with the gateway's error class; the user
  message stays

Store calls are synchronous and run via run_in_threadpool.
"""

from datetime import UTC, datetime

from starlette.concurrency import run_in_threadpool

from relay.auth.gate import Principal
from relay.errors import ApiError, ApiErrorCode, ForbiddenError, InvalidRequestError, NotFoundError
from relay.logging import get_logger
from relay.schemas.chat import (
    MAX_TITLE_CHARS,
    TITLE_ELLIPSIS,
    ChatOut,
    ChatSummaryOut,
    ContinueChatResult,
    MessageOut,
    StartChatResult,
)
from relay.services.chats import ChatStore, parse_chat_id
from relay.services.llm import DEFAULT_MAX_HISTORY, LLMError, LLMGateway, Turn

logger = get_logger(__name__)

FALLBACK_REPLY = "Sorry, I could not generate a response at this time."
GENERATION_FAILED_MESSAGE = "Failed to generate AI response"

CHAT_NOT_FOUND_MESSAGE = "Chat not found"
ACCESS_DENIED_MESSAGE = "Access denied"


def derive_title(message: str) -> str:
    """First MAX_TITLE_CHARS characters, with an ellipsis only if truncated."""
    if len(message) > MAX_TITLE_CHARS:
        return message[:MAX_TITLE_CHARS] + TITLE_ELLIPSIS
    return message


def _require_message(message: str | None) -> str:
    if message is None or not message.strip():
        raise InvalidRequestError(message="Validation failed", details="message: Message is required")
    return message


def _history_turns(chat: ChatOut, limit: int) -> list[Turn]:
    """Map the most recent stored messages to provider turns.

    Raises:
        ApiError(E_INTERNAL): A stored message has a role other than user/assistant.
    """
    recent = chat.messages[-limit:] if limit > 0 else []
    turns = []
    for m in recent:
        if m.role not in ("user", "assistant"):
            logger.error("chat_invalid_message_role", chat_id=str(chat.id), role=m.role)
            raise ApiError(ApiErrorCode.E_INTERNAL, "Chat contains an invalid message role")
        turns.append(Turn(role=m.role, content=m.content))
    return turns


def _owned_chat(chats: ChatStore, principal: Principal, chat_id: str) -> ChatOut:
    """Load a chat and check ownership. Never mutates.

    Raises:
        NotFoundError: Unknown or unparseable chat id.
        ForbiddenError: Chat belongs to another user.
    """
    parsed = parse_chat_id(chat_id)
    chat = chats.find_by_id(parsed) if parsed is not None else None
    if chat is None:
        raise NotFoundError(ApiErrorCode.E_CHAT_NOT_FOUND, CHAT_NOT_FOUND_MESSAGE)
    if chat.owner_id != principal.id:
        raise ForbiddenError(message=ACCESS_DENIED_MESSAGE)
    return chat


def _message(role: str, content: str) -> MessageOut:
    return MessageOut(role=role, content=content, timestamp=datetime.now(UTC))


async def start_chat(
    chats: ChatStore,
    gateway: LLMGateway,
    principal: Principal,
    message: str,
) -> StartChatResult:
    """Create a chat from its first message and generate the first reply.

    Never fails because of the provider: on LLMError the chat is kept with the
    user message only and FALLBACK_REPLY is returned.
    """
    message = _require_message(message)
    title = derive_title(message)

    chat = await run_in_threadpool(chats.create, principal.id, title, [_message("user", message)])

    try:
        reply = await gateway.generate_reply(message, [])
    except LLMError as e:
        logger.warning(
            "chat_start_degraded", chat_id=str(chat.id), error_class=e.error_class.value
        )
        return StartChatResult(chat_id=chat.id, title=chat.title, message=FALLBACK_REPLY)

    updated = await run_in_threadpool(
        chats.append_message, chat.id, _message("assistant", reply), principal.id
    )
    if updated is None:
        logger.warning("chat_vanished_before_reply", chat_id=str(chat.id))

    return StartChatResult(chat_id=chat.id, title=chat.title, message=reply)


async def continue_chat(
    chats: ChatStore,
    gateway: LLMGateway,
    principal: Principal,
    chat_id: str | None,
    message: str,
    history_limit: int = DEFAULT_MAX_HISTORY,
) -> ContinueChatResult:
    """Append a user message to an owned chat and generate the reply.

    History sent to the provider is the last history_limit messages stored
    before this turn.

    Raises:
        InvalidRequestError: Blank message or missing chat id.
        NotFoundError: Unknown chat, or the chat disappeared before the append.
        ForbiddenError: Chat owned by another user.
        ApiError(E_LLM_*): Provider failure; the user message stays persisted.
    """
    message = _require_message(message)
    if not chat_id:
        raise InvalidRequestError(message="chatId is required for /send route")

    chat = await run_in_threadpool(_owned_chat, chats, principal, chat_id)
    history = _history_turns(chat, history_limit)

    appended = await run_in_threadpool(
        chats.append_message, chat.id, _message("user", message), principal.id
    )
    if appended is None:
        # Deleted or reassigned between the read and the guarded append
        raise NotFoundError(ApiErrorCode.E_CHAT_NOT_FOUND, CHAT_NOT_FOUND_MESSAGE)

    try:
        reply = await gateway.generate_reply(message, history, max_history=history_limit)
    except LLMError as e:
        logger.error("chat_reply_failed", chat_id=str(chat.id), error_class=e.error_class.value)
        raise ApiError(e.error_class.api_code, GENERATION_FAILED_MESSAGE, details=e.message) from e

    updated = await run_in_threadpool(
        chats.append_message, chat.id, _message("assistant", reply), principal.id
    )
    if updated is None:
        logger.warning("chat_vanished_before_reply", chat_id=str(chat.id))

    return ContinueChatResult(chat_id=chat.id, message=reply)


def get_chat(chats: ChatStore, principal: Principal, chat_id: str) -> ChatOut:
    """Full chat with messages, for its owner."""
    return _owned_chat(chats, principal, chat_id)


def list_chats(chats: ChatStore, principal: Principal) -> list[ChatSummaryOut]:
    """The principal's chats, newest-created first."""
    return chats.find_by_owner(principal.id)
