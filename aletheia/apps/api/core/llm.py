from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from aletheia.libs.llm_router.router import LLMRouter
from aletheia.libs.schemas.settings import get_settings

_ROUTER: LLMRouter | None = None
LOGGER = logging.getLogger(__name__)


def set_router(router: LLMRouter | None) -> None:
    global _ROUTER
    _ROUTER = router


def get_router() -> LLMRouter | None:
    return _ROUTER


class LLMResponseError(RuntimeError):
    """Raised when the gateway reply is unusable."""


async def call_llm(
    *,
    messages: Sequence[Mapping[str, Any]],
    model: str | None = None,
    **kwargs: Any,
) -> str:
    """Send ``messages`` through the configured router and return the reply text."""

    if _ROUTER is None:
        raise RuntimeError("LLM router has not been initialised")
    if not messages:
        raise ValueError("At least one message is required")

    target_model = model or get_settings().model_chat
    response = await _ROUTER.chat(
        messages=[dict(message) for message in messages],
        model=target_model,
        **kwargs,
    )
    text = response.text
    if text is None and response.raw:
        choice = (response.raw.get("choices") or [{}])[0]
        text = (choice.get("message") or {}).get("content")
    if not isinstance(text, str):
        raise LLMResponseError("AI gateway returned an empty reply")
    LOGGER.debug("LLM reply received", extra={"model": response.model, "chars": len(text)})
    return text


__all__ = ["LLMResponseError", "call_llm", "get_router", "set_router"]
