"""Analyze free text and persist the resulting emotion record."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from aletheia.libs.schemas.gateway import AnalysisResult
from aletheia.libs.schemas.records import EmotionRecord
from aletheia.libs.voice import VoiceAdapter

from .context import SessionContext
from .errors import VoiceUnavailableError
from .gateway import GatewayClient
from .store import RecordStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOutcome:
    text: str
    result: AnalysisResult
    record: EmotionRecord


class AnalysisService:
    def __init__(
        self,
        context: SessionContext,
        gateway: GatewayClient,
        store: RecordStore,
        *,
        voice: VoiceAdapter | None = None,
    ) -> None:
        self._context = context
        self._gateway = gateway
        self._store = store
        self._voice = voice

    async def analyze(self, text: str) -> AnalysisOutcome:
        """Validate, classify and store one ``EmotionRecord``.

        Nothing is persisted when the gateway call fails.
        """

        result = await self._gateway.analyze(text)
        record = await self._store.add_emotion(
            EmotionRecord(
                user_id=self._context.user_id,
                emotion=result.emotion,
                intensity=result.intensity,
                text=text,
                summary=result.summary,
                quote=result.quote,
                song=result.song,
                suggestion=result.suggestion,
            )
        )
        LOGGER.info(
            "Emotion analysis stored",
            extra={"user_id": self._context.user_id, "emotion": result.emotion.value},
        )
        return AnalysisOutcome(text=text, result=result, record=record)

    async def dictate(self) -> str:
        """Capture one spoken utterance to use as analysis input."""

        if self._voice is None:
            raise VoiceUnavailableError("Your device doesn't support voice input")
        return await self._voice.listen_once()
