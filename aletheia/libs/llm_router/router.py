"""Policy-aware LLM router."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from .base import BaseProvider
from .types import LLMResponse, Task


class LLMRouter:
    """Dispatch LLM requests to the provider configured for each task.

    The policy for a task is an ordered list of provider keys; the first one
    that is registered handles the request. Exactly one provider is attempted
    and failures propagate to the caller.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._providers: dict[str, BaseProvider] = {}
        self._policy: dict[Task, list[str]] = {}
        self._logger = logger or logging.getLogger(__name__)

    def register_provider(self, key: str, provider: BaseProvider) -> None:
        """Register or replace a provider under ``key``."""

        self._providers[key] = provider

    def set_policy(self, task: Task, providers: Sequence[str]) -> None:
        """Assign an ordered list of providers for the given task."""

        if not providers:
            raise ValueError("Provider policy requires at least one provider key")
        self._policy[task] = list(dict.fromkeys(providers))

    async def chat(self, *, messages: Sequence[Mapping[str, Any]], model: str, **kwargs: Any) -> LLMResponse:
        """Execute a chat request against the resolved provider."""

        provider_key = self._resolve_provider(Task.CHAT)
        response = await self._providers[provider_key].chat(
            messages=[dict(message) for message in messages], model=model, **kwargs
        )
        if response.provider is None:
            response.provider = provider_key
        self._log_usage(provider_key, Task.CHAT, response)
        return response

    def _resolve_provider(self, task: Task) -> str:
        candidates = self._policy.get(task)
        if not candidates:
            raise ValueError(f"No providers configured for task '{task.value}'")

        for candidate in candidates:
            if candidate in self._providers:
                return candidate
        raise ValueError(f"No registered providers available for task '{task.value}'")

    def _log_usage(self, provider_key: str, task: Task, response: LLMResponse) -> None:
        usage = response.usage or {}
        self._logger.info(
            "llm_task=%s provider=%s model=%s prompt_tokens=%s completion_tokens=%s total_tokens=%s",
            task.value,
            provider_key,
            response.model,
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
            usage.get("total_tokens"),
        )


__all__ = ["LLMRouter"]
