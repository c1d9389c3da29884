"""OpenRouter chat-completions adapter.

- Endpoint: POST {base_url}/chat/completions
- Headers: Authorization: Bearer <key>, Content-Type: application/json,
  HTTP-Referer and X-Title for OpenRouter app attribution

Request body:
{
  "model": "<model_name>",
  "messages": [{"role": "system", "content": "..."}, ...],
  "max_tokens": 1000,
  "temperature": 0.7,
  "stream": false
}

Response - extract:
- text = choices[0].message.content
- usage = direct mapping
- provider_request_id = response header x-request-id or body id

No retries, no logging of request/response bodies. Raw httpx errors bubble
up to the gateway for classification.
"""

import httpx

from relay.services.llm.errors import LLMError, LLMErrorClass
from relay.services.llm.types import LLMRequest, LLMResponse, LLMUsage, Turn

INVALID_RESPONSE_MESSAGE = "Invalid response from OpenRouter API"


class OpenRouterAdapter:
    """OpenRouter (OpenAI-compatible) chat completion adapter."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        referer: str,
        title: str,
    ):
        self._client = client
        self._url = base_url.rstrip("/") + "/chat/completions"
        self._referer = referer
        self._title = title

    async def generate(
        self,
        req: LLMRequest,
        *,
        api_key: str,
        timeout_s: float,
    ) -> LLMResponse:
        """Non-streaming chat completion.

        Raises:
            httpx.HTTPStatusError: On non-2xx HTTP response.
            httpx.TimeoutException: On request timeout.
            httpx.NetworkError: On network failure.
            LLMError: If the body does not carry a completion.
        """
        response = await self._client.post(
            self._url,
            headers=self._build_headers(api_key),
            json=self._build_request_body(req),
            timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 10.0)),
        )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(LLMErrorClass.PROVIDER_ERROR, INVALID_RESPONSE_MESSAGE) from e

        return self._parse_response(data, response.headers)

    def _build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._referer,
            "X-Title": self._title,
        }

    def _build_request_body(self, req: LLMRequest) -> dict:
        body: dict = {
            "model": req.model_name,
            "messages": [self._turn_to_message(turn) for turn in req.messages],
            "max_tokens": req.max_tokens,
            "stream": False,
        }

        if req.temperature is not None:
            body["temperature"] = req.temperature

        return body

    def _turn_to_message(self, turn: Turn) -> dict[str, str]:
        return {"role": turn.role, "content": turn.content}

    def _parse_response(self, data: dict, headers: httpx.Headers) -> LLMResponse:
        """Parse non-streaming response."""
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices[0], dict):
            raise LLMError(LLMErrorClass.PROVIDER_ERROR, INVALID_RESPONSE_MESSAGE)

        message = choices[0].get("message")
        text = message.get("content") if isinstance(message, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise LLMError(LLMErrorClass.PROVIDER_ERROR, INVALID_RESPONSE_MESSAGE)

        usage = None
        usage_data = data.get("usage")
        if isinstance(usage_data, dict):
            usage = LLMUsage(
                prompt_tokens=usage_data.get("prompt_tokens"),
                completion_tokens=usage_data.get("completion_tokens"),
                total_tokens=usage_data.get("total_tokens"),
            )

        provider_request_id = headers.get("x-request-id") or data.get("id")

        return LLMResponse(text=text, usage=usage, provider_request_id=provider_request_id)
