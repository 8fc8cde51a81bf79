"""HTTP client for the stateless AI functions."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

import httpx
from pydantic import ValidationError

from aletheia.libs.emotions import normalize_analysis
from aletheia.libs.schemas.gateway import AnalysisResult, SummaryResult
from aletheia.libs.schemas.records import MeditationType
from aletheia.libs.schemas.settings import AppSettings

from .context import SessionContext
from .errors import AnalysisFailedError, GatewayError, InputValidationError

LOGGER = logging.getLogger(__name__)


class GatewayClient:
    """Invoke ``POST {base_url}/<function>`` and map failures onto ``GatewayError``.

    No retries: every call either returns a full result or raises.
    """

    def __init__(
        self,
        base_url: str,
        *,
        context: SessionContext | None = None,
        anon_key: str | None = None,
        timeout: float = 90.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._context = context
        self._anon_key = anon_key
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: AppSettings, *, context: SessionContext | None = None, **kwargs: Any
    ) -> "GatewayClient":
        return cls(
            settings.functions_url,
            context=context,
            anon_key=settings.supabase_anon_key,
            timeout=settings.functions_timeout,
            **kwargs,
        )

    def with_context(self, context: SessionContext | None) -> None:
        self._context = context

    async def analyze(self, text: str) -> AnalysisResult:
        if not text or not text.strip():
            raise InputValidationError("Please enter some text to analyze")
        payload = await self._invoke("analyze-emotion", {"text": text})
        if not isinstance(payload, Mapping):
            raise AnalysisFailedError("analysis failed")
        try:
            return normalize_analysis(payload)
        except ValidationError as exc:
            raise AnalysisFailedError("analysis failed") from exc

    async def chat(self, message: str, history: Iterable[Mapping[str, str]]) -> str:
        turns = [{"role": turn["role"], "content": turn["content"]} for turn in history]
        payload = await self._invoke("chat-with-sol", {"message": message, "history": turns})
        reply = payload.get("response") if isinstance(payload, Mapping) else None
        if not isinstance(reply, str):
            raise GatewayError("Sol did not reply")
        return reply

    async def summarize(self, messages: Iterable[Mapping[str, str]]) -> SummaryResult:
        turns = [{"role": turn["role"], "content": turn["content"]} for turn in messages]
        payload = await self._invoke("generate-chat-summary", {"messages": turns})
        try:
            return SummaryResult.model_validate(payload)
        except ValidationError as exc:
            raise GatewayError("Failed to parse summary") from exc

    async def meditation_script(self, meditation_type: MeditationType | str, duration: int) -> str:
        kind = meditation_type.value if isinstance(meditation_type, MeditationType) else meditation_type
        payload = await self._invoke("generate-meditation", {"type": kind, "duration": duration})
        script = payload.get("script") if isinstance(payload, Mapping) else None
        if not isinstance(script, str):
            raise GatewayError("Meditation script missing from response")
        return script

    async def meditation_summary(self, emotion_before: str | None, emotion_after: str | None) -> str | None:
        payload = await self._invoke(
            "meditation-ai",
            {"type": "summary", "emotionBefore": emotion_before, "emotionAfter": emotion_after},
        )
        summary = payload.get("summary") if isinstance(payload, Mapping) else None
        return summary if isinstance(summary, str) else None

    async def recommend_meditation(self, recent_emotions: Sequence[str]) -> str:
        payload = await self._invoke(
            "meditation-ai", {"type": "recommendation", "recentEmotions": list(recent_emotions)}
        )
        recommendation = payload.get("recommendation") if isinstance(payload, Mapping) else None
        if not isinstance(recommendation, str):
            raise GatewayError("Recommendation missing from response")
        return recommendation

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._anon_key:
            headers["apikey"] = self._anon_key
        if self._context is not None:
            headers["Authorization"] = f"Bearer {self._context.access_token}"
        return headers

    async def _invoke(self, function: str, body: Mapping[str, Any]) -> Any:
        url = f"{self._base_url}/{function}"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, headers=self._headers(), json=dict(body))
            except httpx.RequestError as exc:
                LOGGER.warning("Function %s unreachable: %s", function, exc)
                raise GatewayError(f"Could not reach {function}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            message = payload.get("error") if isinstance(payload, Mapping) else None
            LOGGER.error("Function %s failed status=%s", function, response.status_code)
            raise GatewayError(
                message or f"{function} failed with status {response.status_code}",
                status_code=response.status_code,
            )
        if payload is None:
            if function == "analyze-emotion":
                raise AnalysisFailedError("analysis failed", status_code=response.status_code)
            raise GatewayError(f"{function} returned a non-JSON body", status_code=response.status_code)
        return payload


__all__ = ["GatewayClient"]
