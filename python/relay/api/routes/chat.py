"""Chat API routes.

Routes are transport-only: each calls exactly one chat-turn function.
All routes require authentication.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from relay.api.deps import get_app_settings, get_chat_store, get_llm_gateway
from relay.auth.gate import Principal
from relay.auth.middleware import get_principal
from relay.config import Settings
from relay.schemas.chat import CreateChatRequest, SendMessageRequest
from relay.services import chat_turns
from relay.services.chats import ChatStore
from relay.services.llm import LLMGateway

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("/create")
async def create_chat(
    body: CreateChatRequest,
    principal: Annotated[Principal, Depends(get_principal)],
    chats: Annotated[ChatStore, Depends(get_chat_store)],
    gateway: Annotated[LLMGateway, Depends(get_llm_gateway)],
) -> dict:
    """Start a chat from its first message.

    Always 200 once the chat exists; a provider failure yields the fallback reply.
    """
    result = await chat_turns.start_chat(chats, gateway, principal, body.message)
    return result.model_dump(mode="json", by_alias=True)


@router.post("/send")
async def send_message(
    body: SendMessageRequest,
    principal: Annotated[Principal, Depends(get_principal)],
    chats: Annotated[ChatStore, Depends(get_chat_store)],
    gateway: Annotated[LLMGateway, Depends(get_llm_gateway)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> dict:
    """Continue an existing chat.

    Errors:
        E_INVALID_REQUEST (400): Blank message or missing chatId.
        E_CHAT_NOT_FOUND (404): Unknown chat.
        E_FORBIDDEN (403): Chat owned by another user.
        E_LLM_* (500): Provider failure; the user message is kept.
    """
    result = await chat_turns.continue_chat(
        chats,
        gateway,
        principal,
        body.chat_id,
        body.message,
        history_limit=settings.chat_history_limit,
    )
    return result.model_dump(mode="json", by_alias=True)


@router.get("/history/{chat_id}")
def get_chat_history(
    chat_id: str,
    principal: Annotated[Principal, Depends(get_principal)],
    chats: Annotated[ChatStore, Depends(get_chat_store)],
) -> dict:
    """Full message history of one chat."""
    chat = chat_turns.get_chat(chats, principal, chat_id)
    return {"chat": chat.model_dump(mode="json", by_alias=True, exclude={"owner_id"})}


@router.get("/chats")
def list_chats(
    principal: Annotated[Principal, Depends(get_principal)],
    chats: Annotated[ChatStore, Depends(get_chat_store)],
) -> dict:
    """The caller's chats, newest first, without messages."""
    summaries = chat_turns.list_chats(chats, principal)
    return {"chats": [c.model_dump(mode="json", by_alias=True) for c in summaries]}
