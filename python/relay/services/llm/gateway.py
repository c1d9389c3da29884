"""LLM gateway: one chat-completion call per reply, with error normalization.

- Builds the outbound turn list (system instruction, recent history, new message)
- Refuses to call out when no API key is configured
- Makes exactly one provider call (no retry, no streaming)
- Centralizes error classification (one place, not in the adapter)

Observability:
- Emits llm.request.started / llm.request.finished / llm.request.failed events
- All events use safe_kv() so message text and keys never reach the logs

Error handling:
- Missing key → E_LLM_NOT_CONFIGURED
- Provider 401/403 → E_LLM_INVALID_KEY
- Provider 429 → E_LLM_RATE_LIMIT
- Provider 402 → E_LLM_QUOTA_EXCEEDED
- Other non-2xx, malformed body, timeout, network error → E_LLM_PROVIDER_ERROR
"""

import time
from collections.abc import Sequence

import httpx

from relay.logging import get_logger
from relay.services.llm.errors import (
    ERROR_MESSAGES,
    PROVIDER_NAME,
    LLMError,
    LLMErrorClass,
    error_for_status,
)
from relay.services.llm.openrouter import OpenRouterAdapter
from relay.services.llm.prompt import DEFAULT_MAX_HISTORY, render_prompt
from relay.services.llm.types import LLMRequest, LLMResponse, Turn
from relay.services.redact import hash_text, safe_kv

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7


def _safe_parse_json(response: httpx.Response) -> dict | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


class LLMGateway:
    """Generates assistant replies through the configured provider."""

    def __init__(
        self,
        adapter: OpenRouterAdapter,
        *,
        api_key: str | None,
        model_name: str,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float | None = DEFAULT_TEMPERATURE,
        env: str = "local",
    ):
        """Initialize gateway.

        Args:
            adapter: Provider adapter sharing the app's httpx.AsyncClient.
            api_key: Provider API key; None leaves the gateway unconfigured.
            model_name: Model identifier sent with every request.
            timeout_s: Bound on a single provider call.
            max_tokens: Completion token limit.
            temperature: Sampling temperature.
            env: Deployment environment, passed to the log guard.
        """
        self._adapter = adapter
        self._api_key = api_key
        self.env = env
        self.model_name = model_name
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def generate_reply(
        self,
        user_message: str,
        history: Sequence[Turn] = (),
        max_history: int = DEFAULT_MAX_HISTORY,
    ) -> str:
        """Generate the assistant reply to user_message.

        Args:
            user_message: The new user message.
            history: Prior turns, oldest first. Only the last max_history are sent.
            max_history: History window size.

        Returns:
            The assistant's reply text.

        Raises:
            LLMError: With normalized error class on failure.
        """
        req = LLMRequest(
            model_name=self.model_name,
            messages=render_prompt(user_message, history, max_history=max_history),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        response = await self.generate(req)
        return response.text

    async def generate(self, req: LLMRequest) -> LLMResponse:
        """Single provider call with error normalization."""
        base = {
            "provider": PROVIDER_NAME,
            "model_name": req.model_name,
            "num_turns": len(req.messages),
        }

        if not self._api_key:
            logger.error(
                "llm.request.failed",
                **safe_kv(
                    _env=self.env,
                    **base,
                    outcome="error",
                    error_class=LLMErrorClass.NOT_CONFIGURED.value,
                ),
            )
            raise LLMError(LLMErrorClass.NOT_CONFIGURED)

        logger.info(
            "llm.request.started",
            **safe_kv(
                _env=self.env,
                **base,
                message_chars=sum(len(t.content) for t in req.messages),
                prompt_sha256=hash_text(req.messages[-1].content),
            ),
        )

        start = time.monotonic()

        try:
            response = await self._adapter.generate(
                req, api_key=self._api_key, timeout_s=self.timeout_s
            )

        except httpx.TimeoutException as e:
            error = LLMError(
                LLMErrorClass.PROVIDER_ERROR,
                f"{ERROR_MESSAGES[LLMErrorClass.PROVIDER_ERROR]}: Request timed out",
            )
            self._log_failure(base, error, start)
            raise error from e

        except httpx.HTTPStatusError as e:
            error = error_for_status(e.response.status_code, _safe_parse_json(e.response))
            self._log_failure(
                base,
                error,
                start,
                status_code=e.response.status_code,
                provider_request_id=e.response.headers.get("x-request-id"),
            )
            raise error from e

        except httpx.HTTPError as e:
            error = LLMError(
                LLMErrorClass.PROVIDER_ERROR,
                f"{ERROR_MESSAGES[LLMErrorClass.PROVIDER_ERROR]}: Network error",
            )
            self._log_failure(base, error, start)
            raise error from e

        except LLMError as e:
            # Adapter-level parse failures are already classified
            self._log_failure(base, e, start)
            raise

        except Exception as e:
            error = LLMError(
                LLMErrorClass.PROVIDER_ERROR,
                f"{ERROR_MESSAGES[LLMErrorClass.PROVIDER_ERROR]}: {type(e).__name__}",
            )
            self._log_failure(base, error, start)
            raise error from e

        latency_ms = int((time.monotonic() - start) * 1000)
        usage = response.usage
        logger.info(
            "llm.request.finished",
            **safe_kv(
                _env=self.env,
                **base,
                outcome="success",
                latency_ms=latency_ms,
                reply_chars=len(response.text),
                tokens_input=usage.prompt_tokens if usage else None,
                tokens_output=usage.completion_tokens if usage else None,
                tokens_total=usage.total_tokens if usage else None,
                provider_request_id=response.provider_request_id,
            ),
        )
        return response

    def _log_failure(self, base: dict, error: LLMError, start: float, **extra) -> None:
        latency_ms = int((time.monotonic() - start) * 1000)
        logger.error(
            "llm.request.failed",
            **safe_kv(
                _env=self.env,
                **base,
                **extra,
                outcome="error",
                error_class=error.error_class.value,
                latency_ms=latency_ms,
            ),
        )
