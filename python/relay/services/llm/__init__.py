"""LLM layer for OpenRouter chat completions.

This package provides:

- An async OpenRouter adapter (non-streaming)
- The gateway that renders prompts, calls the adapter once, and
  normalizes failures into LLMErrorClass values
- Prompt rendering (provider-agnostic)

Usage:
    from relay.services.llm import LLMGateway, OpenRouterAdapter, Turn

    adapter = OpenRouterAdapter(httpx_client, base_url=..., referer=..., title=...)
    gateway = LLMGateway(adapter, api_key="sk-or-...", model_name="...")
    reply = await gateway.generate_reply("Hello!", history=[Turn("user", "Hi")])

Rules:
- No retries
- No DB access
- No logging of request/response bodies
"""

from relay.services.llm.errors import LLMError, LLMErrorClass, classify_provider_error
from relay.services.llm.gateway import LLMGateway
from relay.services.llm.openrouter import OpenRouterAdapter
from relay.services.llm.prompt import DEFAULT_MAX_HISTORY, SYSTEM_PROMPT, render_prompt
from relay.services.llm.types import LLMRequest, LLMResponse, LLMUsage, Turn

__all__ = [
    # Core types
    "Turn",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    # Adapter + gateway
    "OpenRouterAdapter",
    "LLMGateway",
    # Errors
    "LLMError",
    "LLMErrorClass",
    "classify_provider_error",
    # Prompt rendering
    "render_prompt",
    "SYSTEM_PROMPT",
    "DEFAULT_MAX_HISTORY",
]
