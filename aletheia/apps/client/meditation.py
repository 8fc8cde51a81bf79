"""Guided meditation: script, narrated segments, background audio, completion record."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from aletheia.libs.schemas.records import (
    EMOTION_AFTER_MEDITATION,
    MEDITATION_DURATIONS,
    MeditationSession,
    MeditationType,
    clamp_unit,
)
from aletheia.libs.voice import BackgroundAudio, VoiceAdapter

from .context import SessionContext
from .errors import GatewayError, SessionStateError, StoreError
from .gateway import GatewayClient
from .store import RecordStore

LOGGER = logging.getLogger(__name__)

NARRATION_RATE = 0.8
NARRATION_PITCH = 1.0
DEFAULT_VOLUME = 0.5
RECOMMENDATION_WINDOW = timedelta(days=7)
RECOMMENDATION_SAMPLE = 10

_SEGMENT_BREAK = re.compile(r"\n\s*\n")


class MeditationState(str, Enum):
    TYPE_SELECTION = "type_selection"
    LOADING = "loading"
    NARRATING = "narrating"
    PAUSED = "paused"
    COMPLETED = "completed"


def split_script(script: str) -> list[str]:
    """Break a script on blank lines, dropping empty segments."""

    return [segment.strip() for segment in _SEGMENT_BREAK.split(script or "") if segment.strip()]


def elapsed_minutes(seconds: float) -> int:
    return max(1, round(seconds / 60))


class MeditationController:
    def __init__(
        self,
        context: SessionContext,
        gateway: GatewayClient,
        store: RecordStore,
        voice: VoiceAdapter,
        *,
        audio: BackgroundAudio | None = None,
        background_track: str | None = None,
        segment_pause: float = 2.0,
        volume_ratio: float = 0.3,
        volume: float = DEFAULT_VOLUME,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._context = context
        self._gateway = gateway
        self._store = store
        self._voice = voice
        self._audio = audio
        self._background_track = background_track
        self._segment_pause = segment_pause
        self._volume_ratio = volume_ratio
        self._clock = clock

        self.state = MeditationState.TYPE_SELECTION
        self.volume = clamp_unit(volume)
        self.meditation_type: MeditationType | None = None
        self.script = ""
        self.segments: list[str] = []
        self.current_segment = 0
        self.emotion_before: str | None = None
        self.last_session: MeditationSession | None = None

        self._started_at: float | None = None
        self._generation = 0
        self._task: asyncio.Task[MeditationSession | None] | None = None
        self._resumed = asyncio.Event()
        self._resumed.set()

    async def start(self, meditation_type: MeditationType | str) -> asyncio.Task[MeditationSession | None]:
        """Fetch a script and begin narrating it; returns the narration task."""

        if self.state not in (MeditationState.TYPE_SELECTION, MeditationState.COMPLETED):
            raise SessionStateError("A meditation is already in progress")
        kind = MeditationType(meditation_type)
        self._voice.require_synthesis()

        self._generation += 1
        generation = self._generation
        self.state = MeditationState.LOADING
        self.meditation_type = kind
        self.last_session = None
        self._started_at = self._clock()
        self.emotion_before = await self._latest_emotion()

        try:
            self.script = await self._gateway.meditation_script(kind, MEDITATION_DURATIONS[kind])
        except Exception:
            if generation == self._generation:
                self._reset()
            raise
        if generation != self._generation:
            raise SessionStateError("Meditation was stopped before it started")

        self.segments = split_script(self.script)
        self.current_segment = 0
        if self._audio is not None and self._background_track:
            self._audio.play(self._background_track, volume=self.volume * self._volume_ratio, loop=True)
        self._resumed.set()
        self.state = MeditationState.NARRATING
        LOGGER.info(
            "Meditation started",
            extra={"user_id": self._context.user_id, "type": kind.value, "segments": len(self.segments)},
        )
        self._task = asyncio.create_task(self._narrate(generation))
        return self._task

    async def wait(self) -> MeditationSession | None:
        if self._task is None:
            return None
        return await self._task

    def _is_live(self, generation: int) -> bool:
        return generation == self._generation and self.state in (
            MeditationState.NARRATING,
            MeditationState.PAUSED,
        )

    async def _narrate(self, generation: int) -> MeditationSession | None:
        for index, segment in enumerate(self.segments):
            await self._resumed.wait()
            if not self._is_live(generation):
                return None
            self.current_segment = index
            await self._voice.speak(segment, rate=NARRATION_RATE, pitch=NARRATION_PITCH, volume=self.volume)
            if not self._is_live(generation):
                return None
            if index < len(self.segments) - 1:
                await asyncio.sleep(self._segment_pause)
        if not self._is_live(generation):
            return None
        return await self._complete()

    async def _complete(self) -> MeditationSession:
        kind = self.meditation_type or MeditationType.CALM
        started = self._started_at if self._started_at is not None else self._clock()
        minutes = elapsed_minutes(self._clock() - started)
        if self._audio is not None:
            self._audio.stop()

        try:
            summary = await self._gateway.meditation_summary(self.emotion_before, EMOTION_AFTER_MEDITATION)
        except GatewayError as exc:
            LOGGER.warning("Meditation summary unavailable: %s", exc)
            summary = None

        try:
            session = await self._store.add_meditation_session(
                MeditationSession(
                    user_id=self._context.user_id,
                    meditation_type=kind,
                    duration_minutes=minutes,
                    emotion_before=self.emotion_before,
                    emotion_after=EMOTION_AFTER_MEDITATION,
                    ai_summary=summary,
                )
            )
        except StoreError:
            self._reset()
            raise
        self.last_session = session
        self.state = MeditationState.COMPLETED
        LOGGER.info(
            "Meditation completed",
            extra={"user_id": self._context.user_id, "minutes": minutes},
        )
        return session

    async def _latest_emotion(self) -> str | None:
        try:
            records = await self._store.list_emotions(self._context.user_id, limit=1)
        except StoreError as exc:
            LOGGER.warning("Could not load latest emotion: %s", exc)
            return None
        return records[0].emotion.value if records else None

    def pause(self) -> None:
        if self.state is not MeditationState.NARRATING:
            return
        self._resumed.clear()
        self._voice.pause_speech()
        if self._audio is not None:
            self._audio.pause()
        self.state = MeditationState.PAUSED

    def resume(self) -> None:
        if self.state is not MeditationState.PAUSED:
            return
        self._voice.resume_speech()
        if self._audio is not None:
            self._audio.resume()
        self.state = MeditationState.NARRATING
        self._resumed.set()

    def set_volume(self, volume: float) -> float:
        """Applies to the next utterance and to background audio right away."""

        self.volume = clamp_unit(volume)
        if self._audio is not None:
            self._audio.set_volume(self.volume * self._volume_ratio)
        return self.volume

    async def stop(self) -> None:
        """End the session without recording it."""

        self._generation += 1
        self._voice.cancel_speech()
        if self._audio is not None:
            self._audio.stop()
        task, self._task = self._task, None
        self._reset()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _reset(self) -> None:
        self.state = MeditationState.TYPE_SELECTION
        self.meditation_type = None
        self.script = ""
        self.segments = []
        self.current_segment = 0
        self._started_at = None
        self._resumed.set()

    async def recommend(self) -> str:
        """Suggest a meditation type from the last week's emotions."""

        since = datetime.now(timezone.utc) - RECOMMENDATION_WINDOW
        records = await self._store.list_emotions(
            self._context.user_id, limit=RECOMMENDATION_SAMPLE, since=since
        )
        return await self._gateway.recommend_meditation([record.emotion.value for record in records])


__all__ = ["MeditationController", "MeditationState", "elapsed_minutes", "split_script"]
