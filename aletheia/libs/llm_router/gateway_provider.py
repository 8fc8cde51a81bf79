"""Provider for OpenAI-compatible chat completion gateways."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx

from .base import BaseProvider
from .types import LLMResponse, Task

AI_GATEWAY_DEFAULT_BASE_URL = "https://ai.gateway.lovable.dev/v1"


class GatewayProvider(BaseProvider):
    """Provider that posts chat completions to an OpenAI-compatible AI gateway."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("AI gateway API key is required")

        super().__init__(name="gateway")
        self._api_key = api_key
        self._base_url = base_url or AI_GATEWAY_DEFAULT_BASE_URL
        self._timeout = timeout
        self._transport = transport
        self._logger = logging.getLogger(__name__)

    async def chat(
        self,
        *,
        messages: Sequence[Mapping[str, Any]],
        model: str,
        **kwargs: Any,
    ) -> LLMResponse:
        """Execute a chat completion request."""

        payload = {
            "model": model,
            "messages": [self._serialise_message(message) for message in messages],
            **kwargs,
        }

        response_json = await self._post("/chat/completions", payload)
        choice = (response_json.get("choices") or [{}])[0]
        message = choice.get("message") or {}
        text_content = message.get("content")
        if text_content is None:
            raise RuntimeError("AI gateway returned no message content")

        return LLMResponse(
            model=response_json.get("model") or model,
            task=Task.CHAT,
            text=text_content,
            usage=response_json.get("usage") or {},
            provider=self.name,
            raw=response_json,
        )

    async def _post(self, path: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url.rstrip('/')}{path}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, headers=headers, json=payload)
            except httpx.RequestError as exc:
                raise RuntimeError(f"AI gateway network error: {exc}") from exc
            if not response.is_success:
                self._logger.error(
                    "AI gateway error status=%s body=%s", response.status_code, response.text[:400]
                )
                raise RuntimeError(f"AI gateway error: {response.status_code}")
            content_type = response.headers.get("content-type", "")
            if "application/json" not in content_type.lower():
                raise RuntimeError(
                    f"AI gateway returned non-JSON (CT={content_type}). Body: {response.text[:400]}"
                )
            return response.json()

    def _serialise_message(self, message: Mapping[str, Any]) -> dict[str, Any]:
        if hasattr(message, "model_dump"):
            data = message.model_dump()
        else:
            data = dict(message)

        role = data.get("role")
        content = data.get("content")
        if role is None or content is None:
            raise ValueError("Chat messages must include 'role' and 'content'")
        return {"role": role, "content": content}


def make_gateway_provider_from_settings(settings: Any) -> GatewayProvider | None:
    api_key = getattr(settings, "ai_gateway_api_key", None)
    if not api_key:
        return None
    return GatewayProvider(
        api_key,
        base_url=settings.ai_gateway_url,
        timeout=settings.ai_gateway_timeout,
    )


__all__ = ["AI_GATEWAY_DEFAULT_BASE_URL", "GatewayProvider", "make_gateway_provider_from_settings"]
