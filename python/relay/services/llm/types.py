"""Shared type definitions for the LLM layer.

- Turn: Provider-agnostic conversation turn
- LLMRequest: Request to the provider adapter
- LLMUsage: Token usage from provider response
- LLMResponse: Complete response from a (non-streaming) call
"""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class Turn:
    """Provider-agnostic conversation turn.

    Attributes:
        role: One of "system", "user", or "assistant"
        content: The text content of the turn
    """

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class LLMUsage:
    """Token usage from provider response. Providers may omit any field."""

    prompt_tokens: int | None
    completion_tokens: int | None
    total_tokens: int | None


@dataclass(frozen=True)
class LLMRequest:
    """Request to the provider adapter.

    Attributes:
        model_name: The model identifier (e.g., "meta-llama/llama-3.2-3b-instruct:free")
        messages: List of Turn objects (system turn first)
        max_tokens: Maximum tokens in the completion
        temperature: Sampling temperature (0.0 to 2.0), None uses provider default
    """

    model_name: str
    messages: list[Turn]
    max_tokens: int
    temperature: float | None = None


@dataclass(frozen=True)
class LLMResponse:
    """Complete response from a provider call.

    Attributes:
        text: The generated text content
        usage: Token usage information (None if provider doesn't return it)
        provider_request_id: Provider's request ID for debugging (may be None)
    """

    text: str
    usage: LLMUsage | None
    provider_request_id: str | None
