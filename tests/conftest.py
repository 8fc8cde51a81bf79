import asyncio
import itertools
import os
from datetime import datetime
from typing import Any, Callable, Dict, List

import pytest

os.environ.setdefault("ENV", "test")
os.environ.setdefault("ALETHEIA_ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "http://localhost")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-key")

from aletheia.apps.client.context import SessionContext  # noqa: E402
from aletheia.apps.client.errors import VoiceCaptureError  # noqa: E402
from aletheia.apps.client.store import (  # noqa: E402
    CHAT_TABLE,
    EMOTIONS_TABLE,
    JOURNAL_TABLE,
    MEDITATION_TABLE,
    SUMMARIES_TABLE,
)
from aletheia.libs.emotions import normalize_analysis  # noqa: E402
from aletheia.libs.llm_router import BaseProvider, LLMResponse, LLMRouter, Task  # noqa: E402
from aletheia.libs.realtime import DELETE, INSERT, ChangeEvent, ChangeFeed  # noqa: E402
from aletheia.libs.schemas.gateway import SummaryResult  # noqa: E402


class MemoryStore:
    """In-memory RecordStore; announces writes on an optional publisher."""

    def __init__(self, publisher=None):
        self.publisher = publisher
        self.emotions: List[Any] = []
        self.chat: List[Any] = []
        self.summaries: List[Any] = []
        self.journal: List[Any] = []
        self.meditations: List[Any] = []
        self._ids = itertools.count(1)

    async def _add(self, table: str, bucket: List[Any], model):
        stored = model.model_copy(update={"id": model.id or f"{table}-{next(self._ids)}"})
        bucket.append(stored)
        if self.publisher is not None:
            await self.publisher.publish(
                ChangeEvent(table=table, event=INSERT, user_id=stored.user_id, record=stored.model_dump(mode="json"))
            )
        return stored

    @staticmethod
    def _newest_first(items, key: str, limit=None):
        ordered = sorted(reversed(items), key=lambda item: getattr(item, key), reverse=True)
        return ordered[:limit] if limit is not None else ordered

    async def add_emotion(self, record):
        return await self._add(EMOTIONS_TABLE, self.emotions, record)

    async def list_emotions(self, user_id, *, limit=None, since: datetime | None = None):
        rows = [r for r in self.emotions if r.user_id == user_id and (since is None or r.created_at >= since)]
        return self._newest_first(rows, "created_at", limit)

    async def add_chat_message(self, message):
        return await self._add(CHAT_TABLE, self.chat, message)

    async def list_chat_messages(self, user_id):
        return [m for m in self.chat if m.user_id == user_id]

    async def clear_chat_messages(self, user_id):
        removed = [m for m in self.chat if m.user_id == user_id]
        self.chat = [m for m in self.chat if m.user_id != user_id]
        if self.publisher is not None:
            await self.publisher.publish(ChangeEvent(table=CHAT_TABLE, event=DELETE, user_id=user_id))
        return len(removed)

    async def add_summary(self, summary):
        return await self._add(SUMMARIES_TABLE, self.summaries, summary)

    async def list_summaries(self, user_id, *, limit=None):
        return self._newest_first([s for s in self.summaries if s.user_id == user_id], "created_at", limit)

    async def add_journal_entry(self, entry):
        return await self._add(JOURNAL_TABLE, self.journal, entry)

    async def list_journal_entries(self, user_id, *, limit=None):
        return self._newest_first([e for e in self.journal if e.user_id == user_id], "created_at", limit)

    async def delete_journal_entry(self, user_id, entry_id):
        before = len(self.journal)
        self.journal = [e for e in self.journal if not (e.user_id == user_id and e.id == entry_id)]
        deleted = len(self.journal) < before
        if deleted and self.publisher is not None:
            await self.publisher.publish(ChangeEvent(table=JOURNAL_TABLE, event=DELETE, user_id=user_id))
        return deleted

    async def add_meditation_session(self, session):
        return await self._add(MEDITATION_TABLE, self.meditations, session)

    async def list_meditation_sessions(self, user_id, *, limit=None):
        return self._newest_first([s for s in self.meditations if s.user_id == user_id], "completed_at", limit)


class FakeGateway:
    """Stands in for GatewayClient; records every call and its arguments."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.analysis: Dict[str, Any] = {"emotion": "calm", "intensity": 0.5, "summary": "Steady."}
        self.reply = "I'm here with you."
        self.summary = SummaryResult(dominant_emotion="tired", key_topics=["work"])
        self.script = "Breathe in.\n\nBreathe out."
        self.session_summary: str | None = "Well done."
        self.recommendation = "Try the calm meditation."
        self.errors: Dict[str, Exception] = {}
        self.chat_gate: asyncio.Event | None = None

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.errors:
            raise self.errors[name]

    def called(self, name):
        return [call[1:] for call in self.calls if call[0] == name]

    async def analyze(self, text):
        self._record("analyze", text)
        return normalize_analysis(self.analysis)

    async def chat(self, message, history):
        self._record("chat", message, list(history))
        if self.chat_gate is not None:
            await self.chat_gate.wait()
        return self.reply

    async def summarize(self, messages):
        self._record("summarize", list(messages))
        return self.summary

    async def meditation_script(self, meditation_type, duration):
        self._record("meditation_script", meditation_type, duration)
        return self.script

    async def meditation_summary(self, emotion_before, emotion_after):
        self._record("meditation_summary", emotion_before, emotion_after)
        return self.session_summary if emotion_before else None

    async def recommend_meditation(self, recent_emotions):
        self._record("recommend_meditation", list(recent_emotions))
        return self.recommendation


class FakeRecognizer:
    """Returns queued transcripts, then blocks until aborted."""

    def __init__(self, transcripts=()):
        self.transcripts = list(transcripts)
        self.aborts = 0
        self._aborted = asyncio.Event()

    async def recognize(self, *, lang="en-US"):
        if self.transcripts:
            await asyncio.sleep(0)
            return self.transcripts.pop(0)
        await self._aborted.wait()
        self._aborted.clear()
        raise VoiceCaptureError("aborted")

    def abort(self):
        self.aborts += 1
        self._aborted.set()


class FakeSynthesizer:
    def __init__(self):
        self.spoken: List[Any] = []
        self.gate: asyncio.Event | None = None
        self.paused = False
        self.cancels = 0

    async def speak(self, utterance):
        self.spoken.append(utterance)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def cancel(self):
        self.cancels += 1
        if self.gate is not None:
            self.gate.set()


class FakeAudio:
    def __init__(self):
        self.events: List[tuple] = []
        self.volume: float | None = None

    def play(self, source, *, volume, loop=True):
        self.volume = volume
        self.events.append(("play", source, loop))

    def set_volume(self, volume):
        self.volume = volume
        self.events.append(("volume", volume))

    def pause(self):
        self.events.append(("pause",))

    def resume(self):
        self.events.append(("resume",))

    def stop(self):
        self.events.append(("stop",))


class StubProvider(BaseProvider):
    """Provider that replays canned replies and keeps the messages it was sent."""

    def __init__(self, replies=None):
        super().__init__(name="stub")
        self.replies = list(replies or [])
        self.requests: List[Dict[str, Any]] = []

    async def chat(self, *, messages, model, **kwargs):
        self.requests.append({"messages": list(messages), "model": model, **kwargs})
        text = self.replies.pop(0) if self.replies else "ok"
        return LLMResponse(model=model, task=Task.CHAT, text=text, usage={"total_tokens": 3})


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def context():
    return SessionContext(user_id="user-1", access_token="token-1", email="user@example.com")


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def live_store(feed):
    return MemoryStore(publisher=feed)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def audio():
    return FakeAudio()


@pytest.fixture
def provider():
    return StubProvider()


@pytest.fixture
def llm_router(provider):
    router = LLMRouter()
    router.register_provider("stub", provider)
    router.set_policy(Task.CHAT, ["stub"])
    return router


@pytest.fixture
def waiter():
    return wait_until
