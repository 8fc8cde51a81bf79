"""Chat with Sol, typed or spoken, with per-turn persistence."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from aletheia.libs.schemas.records import ChatMessage, ConversationSummary
from aletheia.libs.voice import VoiceAdapter

from .context import SessionContext
from .errors import (
    AletheiaError,
    InputValidationError,
    SessionBusyError,
    VoiceCaptureError,
    VoiceUnavailableError,
)
from .gateway import GatewayClient
from .store import RecordStore

LOGGER = logging.getLogger(__name__)

SPEECH_RATE = 0.9


class TurnState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"


class VoiceModeState(str, Enum):
    OFF = "off"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"
    ENDED = "ended"


class ConversationController:
    """Ordered chat history for one user plus the listen → think → speak voice loop.

    At most one ``send`` is in flight at a time. Each voice session carries a
    generation number; work started by an ended session is discarded.
    """

    def __init__(
        self,
        context: SessionContext,
        gateway: GatewayClient,
        store: RecordStore,
        *,
        voice: VoiceAdapter | None = None,
        history_window: int = 10,
        rearm_delay: float = 1.0,
        resume_delay: float = 0.5,
    ) -> None:
        self._context = context
        self._gateway = gateway
        self._store = store
        self._voice = voice
        self._history_window = history_window
        self._rearm_delay = rearm_delay
        self._resume_delay = resume_delay

        self.messages: list[ChatMessage] = []
        self.turn_state = TurnState.IDLE
        self.voice_state = VoiceModeState.OFF
        self.last_error: AletheiaError | None = None

        self._voice_generation = 0
        self._voice_turns = 0
        self._voice_task: asyncio.Task[None] | None = None

    @property
    def voice_active(self) -> bool:
        return self.voice_state not in (VoiceModeState.OFF, VoiceModeState.ENDED)

    @property
    def voice_turns(self) -> int:
        return self._voice_turns

    async def load(self, *, context_message: str | None = None) -> list[ChatMessage]:
        """Fetch persisted history; an optional opening message is sent right after."""

        self.messages = await self._store.list_chat_messages(self._context.user_id)
        if context_message and context_message.strip():
            await self.send(context_message)
        return self.messages

    def history_window(self) -> list[dict[str, str]]:
        return [message.as_turn() for message in self.messages[-self._history_window :]]

    async def send(self, text: str) -> ChatMessage:
        if not text or not text.strip():
            raise InputValidationError("Please enter a message")
        if self.turn_state is TurnState.SENDING:
            raise SessionBusyError("Sol is still replying to your last message")

        voice_turn = self.voice_active
        self.turn_state = TurnState.SENDING
        try:
            history = self.history_window()
            user_message = await self._store.add_chat_message(
                ChatMessage(user_id=self._context.user_id, role="user", content=text)
            )
            self.messages.append(user_message)

            reply = await self._gateway.chat(text, history)
            assistant_message = await self._store.add_chat_message(
                ChatMessage(user_id=self._context.user_id, role="assistant", content=reply)
            )
            self.messages.append(assistant_message)
        finally:
            self.turn_state = TurnState.IDLE

        if voice_turn:
            self._voice_turns += 1
        return assistant_message

    async def clear(self) -> int:
        """Delete every persisted message for the user. There is no undo."""

        removed = await self._store.clear_chat_messages(self._context.user_id)
        self.messages = []
        LOGGER.info("Chat cleared", extra={"user_id": self._context.user_id, "removed": removed})
        return removed

    # -- voice mode --------------------------------------------------------

    def start_voice_mode(self) -> asyncio.Task[None]:
        if self._voice is None or not self._voice.supports_recognition:
            raise VoiceUnavailableError("Your device doesn't support voice input")
        if self.voice_active and self._voice_task is not None:
            return self._voice_task

        self._voice_generation += 1
        self._voice_turns = 0
        self.voice_state = VoiceModeState.LISTENING
        self._voice_task = asyncio.create_task(self._voice_loop(self._voice, self._voice_generation))
        return self._voice_task

    def _is_live(self, generation: int) -> bool:
        return generation == self._voice_generation and self.voice_active

    async def _voice_loop(self, voice: VoiceAdapter, generation: int) -> None:
        while self._is_live(generation):
            self.voice_state = VoiceModeState.LISTENING
            try:
                transcript = await voice.listen_once()
            except VoiceCaptureError:
                if not self._is_live(generation):
                    return
                await asyncio.sleep(self._rearm_delay)
                continue
            if not self._is_live(generation):
                return

            self.voice_state = VoiceModeState.PROCESSING
            try:
                reply = await self.send(transcript)
            except AletheiaError as exc:
                self.last_error = exc
                LOGGER.warning("Voice turn failed: %s", exc)
                if not self._is_live(generation):
                    return
                await asyncio.sleep(self._rearm_delay)
                continue
            if not self._is_live(generation):
                return

            if voice.supports_synthesis:
                self.voice_state = VoiceModeState.SPEAKING
                await voice.speak(reply.content, rate=SPEECH_RATE, pitch=1.0, volume=1.0)
                if not self._is_live(generation):
                    return
            await asyncio.sleep(self._resume_delay)

    async def end_voice_mode(self) -> ConversationSummary | None:
        """Stop the voice loop and store one summary if any turn was completed.

        A reply already being fetched is allowed to finish and is stored, but
        it is not spoken.
        """

        if not self.voice_active:
            return None

        reply_pending = self.voice_state is VoiceModeState.PROCESSING
        self._voice_generation += 1
        if self._voice is not None:
            self._voice.shutdown()
        self.voice_state = VoiceModeState.ENDED

        task, self._voice_task = self._voice_task, None
        if task is not None and not task.done():
            if reply_pending:
                await task
            else:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        turns, self._voice_turns = self._voice_turns, 0
        if turns == 0:
            return None

        result = await self._gateway.summarize(message.as_turn() for message in self.messages)
        summary = await self._store.add_summary(
            ConversationSummary(user_id=self._context.user_id, **result.model_dump())
        )
        LOGGER.info(
            "Conversation summary stored",
            extra={"user_id": self._context.user_id, "turns": turns},
        )
        return summary


__all__ = ["ConversationController", "TurnState", "VoiceModeState"]
