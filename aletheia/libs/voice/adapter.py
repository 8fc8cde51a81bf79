"""Speech recognition and synthesis behind a single start/stop/speak surface."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Protocol

from aletheia.libs.errors import VoiceCaptureError, VoiceUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Utterance:
    text: str
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0
    lang: str = "en-US"


class SpeechRecognizer(Protocol):
    """Engine that captures a single spoken utterance per call."""

    async def recognize(self, *, lang: str = "en-US") -> str:
        """Return the final transcript. Raise ``VoiceCaptureError`` on no-match or engine errors."""

    def abort(self) -> None:
        """Stop an in-flight ``recognize`` call."""


class SpeechSynthesizer(Protocol):
    """Engine that speaks utterances; ``speak`` resolves when playback ends."""

    async def speak(self, utterance: Utterance) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def cancel(self) -> None: ...


class BackgroundAudio(Protocol):
    """Looping ambience player used under meditation narration."""

    def play(self, source: str, *, volume: float, loop: bool = True) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> None: ...


class VoiceState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    SPEAKING = "speaking"
    PAUSED = "paused"


class VoiceAdapter:
    """Keeps recognition and synthesis mutually exclusive and queues utterances in order.

    Either engine may be ``None`` when the platform lacks the capability; callers
    check ``supports_recognition`` / ``supports_synthesis`` or use the ``require_*``
    guards before starting a voice flow.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        *,
        lang: str = "en-US",
        rearm_delay: float = 1.0,
    ) -> None:
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._lang = lang
        self._rearm_delay = rearm_delay
        self._speak_lock = asyncio.Lock()
        self._speech_generation = 0
        self._continuous = False
        self.state = VoiceState.IDLE

    @property
    def supports_recognition(self) -> bool:
        return self._recognizer is not None

    @property
    def supports_synthesis(self) -> bool:
        return self._synthesizer is not None

    def require_recognition(self) -> SpeechRecognizer:
        if self._recognizer is None:
            raise VoiceUnavailableError("Your device doesn't support voice input")
        return self._recognizer

    def require_synthesis(self) -> SpeechSynthesizer:
        if self._synthesizer is None:
            raise VoiceUnavailableError("Your device doesn't support speech output")
        return self._synthesizer

    # -- recognition -------------------------------------------------------

    async def listen_once(self) -> str:
        """Capture one utterance and return its trimmed transcript."""

        recognizer = self.require_recognition()
        if self.state in (VoiceState.SPEAKING, VoiceState.PAUSED):
            self.cancel_speech()
        self.state = VoiceState.LISTENING
        try:
            transcript = await recognizer.recognize(lang=self._lang)
        finally:
            if self.state == VoiceState.LISTENING:
                self.state = VoiceState.IDLE
        transcript = (transcript or "").strip()
        if not transcript:
            raise VoiceCaptureError("Could not capture voice")
        return transcript

    async def listen_continuous(self) -> AsyncIterator[str]:
        """Yield transcripts until ``stop_listening`` is called.

        Capture errors re-arm the recognizer after ``rearm_delay`` seconds.
        """

        self.require_recognition()
        self._continuous = True
        while self._continuous:
            try:
                transcript = await self.listen_once()
            except VoiceCaptureError:
                if not self._continuous:
                    break
                logger.debug("Recognition produced no transcript; re-arming")
                await asyncio.sleep(self._rearm_delay)
                continue
            if not self._continuous:
                break
            yield transcript

    def stop_listening(self) -> None:
        self._continuous = False
        if self._recognizer is not None:
            self._recognizer.abort()
        if self.state == VoiceState.LISTENING:
            self.state = VoiceState.IDLE

    # -- synthesis ---------------------------------------------------------

    async def speak(
        self,
        text: str,
        *,
        rate: float = 1.0,
        pitch: float = 1.0,
        volume: float = 1.0,
    ) -> bool:
        """Queue ``text`` for playback and wait for it to finish.

        Returns ``False`` when the utterance was dropped by ``cancel_speech``.
        """

        synthesizer = self.require_synthesis()
        generation = self._speech_generation
        utterance = Utterance(
            text=text,
            rate=rate,
            pitch=pitch,
            volume=max(0.0, min(1.0, volume)),
            lang=self._lang,
        )
        async with self._speak_lock:
            if generation != self._speech_generation:
                return False
            if self.state == VoiceState.LISTENING:
                self.stop_listening()
            self.state = VoiceState.SPEAKING
            try:
                await synthesizer.speak(utterance)
            finally:
                if self.state in (VoiceState.SPEAKING, VoiceState.PAUSED):
                    self.state = VoiceState.IDLE
        return generation == self._speech_generation

    def pause_speech(self) -> None:
        if self._synthesizer is not None and self.state == VoiceState.SPEAKING:
            self._synthesizer.pause()
            self.state = VoiceState.PAUSED

    def resume_speech(self) -> None:
        if self._synthesizer is not None and self.state == VoiceState.PAUSED:
            self._synthesizer.resume()
            self.state = VoiceState.SPEAKING

    def cancel_speech(self) -> None:
        """Drop the current utterance and everything queued behind it."""

        self._speech_generation += 1
        if self._synthesizer is not None:
            self._synthesizer.cancel()
        if self.state in (VoiceState.SPEAKING, VoiceState.PAUSED):
            self.state = VoiceState.IDLE

    def shutdown(self) -> None:
        self.stop_listening()
        self.cancel_speech()


__all__ = [
    "BackgroundAudio",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "Utterance",
    "VoiceAdapter",
    "VoiceState",
]
