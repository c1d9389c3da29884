"""FastAPI dependencies for route handlers.

Everything here reads from app.state, which create_app() populates
(stores, token service, settings) and the lifespan completes (LLM gateway).
"""

from fastapi import Request

from relay.auth.tokens import TokenService
from relay.config import Settings
from relay.services.chats import ChatStore
from relay.services.llm import LLMGateway
from relay.services.users import UserStore

__all__ = [
    "get_app_settings",
    "get_chat_store",
    "get_llm_gateway",
    "get_token_service",
    "get_user_store",
]


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_llm_gateway(request: Request) -> LLMGateway:
    """Get the shared LLM gateway from app state.

    The gateway wraps the httpx.AsyncClient created in the app lifespan.
    """
    return request.app.state.llm_gateway
