"""Persistence of user-scoped records in Postgres."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol, Type, TypeVar

import asyncpg
from pydantic import BaseModel
from redis.exceptions import RedisError

from aletheia.libs.json_utils import json_safe
from aletheia.libs.realtime import DELETE, INSERT, ChangeEvent, ChangePublisher
from aletheia.libs.schemas.db import get_async_pool
from aletheia.libs.schemas.records import (
    ChatMessage,
    ConversationSummary,
    EmotionRecord,
    JournalEntry,
    MeditationSession,
)

from .errors import StoreError

LOGGER = logging.getLogger(__name__)

EMOTIONS_TABLE = "emotion_analyses"
CHAT_TABLE = "chat_messages"
SUMMARIES_TABLE = "conversation_summaries"
JOURNAL_TABLE = "journal_entries"
MEDITATION_TABLE = "meditation_sessions"

M = TypeVar("M", bound=BaseModel)


class RecordStore(Protocol):
    """Insert-only appends plus scoped reads; every call is bound to one ``user_id``."""

    async def add_emotion(self, record: EmotionRecord) -> EmotionRecord: ...

    async def list_emotions(
        self, user_id: str, *, limit: int | None = None, since: datetime | None = None
    ) -> list[EmotionRecord]: ...

    async def add_chat_message(self, message: ChatMessage) -> ChatMessage: ...

    async def list_chat_messages(self, user_id: str) -> list[ChatMessage]: ...

    async def clear_chat_messages(self, user_id: str) -> int: ...

    async def add_summary(self, summary: ConversationSummary) -> ConversationSummary: ...

    async def list_summaries(self, user_id: str, *, limit: int | None = None) -> list[ConversationSummary]: ...

    async def add_journal_entry(self, entry: JournalEntry) -> JournalEntry: ...

    async def list_journal_entries(self, user_id: str, *, limit: int | None = None) -> list[JournalEntry]: ...

    async def delete_journal_entry(self, user_id: str, entry_id: str) -> bool: ...

    async def add_meditation_session(self, session: MeditationSession) -> MeditationSession: ...

    async def list_meditation_sessions(
        self, user_id: str, *, limit: int | None = None
    ) -> list[MeditationSession]: ...


def _to_model(model: Type[M], row: dict[str, Any]) -> M:
    data = dict(row)
    for key in ("id", "user_id"):
        if data.get(key) is not None:
            data[key] = str(data[key])
    return model.model_validate(data)


def _limit_clause(limit: int | None, position: int) -> tuple[str, list[Any]]:
    if limit is None:
        return "", []
    return f" LIMIT ${position}", [limit]


class PostgresRecordStore:
    """``RecordStore`` backed by asyncpg; writes are announced on ``publisher``.

    Lists come back newest first except chat history, which is chronological.
    """

    def __init__(self, pool: asyncpg.Pool | None = None, *, publisher: ChangePublisher | None = None) -> None:
        self._pool = pool
        self._publisher = publisher

    async def _get_pool(self) -> Any:
        if self._pool is None:
            self._pool = await get_async_pool()
        return self._pool

    async def _fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as connection:
                rows = await connection.fetch(query, *args)
        except (asyncpg.PostgresError, OSError) as exc:
            LOGGER.error("Store read failed: %s", exc)
            raise StoreError("Could not load your data") from exc
        return [dict(row) for row in rows]

    async def _fetchrow(self, query: str, *args: Any) -> dict[str, Any] | None:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as connection:
                row = await connection.fetchrow(query, *args)
        except (asyncpg.PostgresError, OSError) as exc:
            LOGGER.error("Store write failed: %s", exc)
            raise StoreError("Could not save your data") from exc
        return dict(row) if row is not None else None

    async def _execute(self, query: str, *args: Any) -> str:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as connection:
                return await connection.execute(query, *args)
        except (asyncpg.PostgresError, OSError) as exc:
            LOGGER.error("Store write failed: %s", exc)
            raise StoreError("Could not save your data") from exc

    async def _announce(self, table: str, event: str, user_id: str, record: BaseModel | None) -> None:
        if self._publisher is None:
            return
        payload = json_safe(record.model_dump(mode="json")) if record is not None else None
        try:
            await self._publisher.publish(ChangeEvent(table=table, event=event, user_id=user_id, record=payload))
        except (RedisError, OSError) as exc:
            LOGGER.warning("Change notification for %s %s not delivered: %s", table, event, exc)

    async def _insert(self, table: str, model: Type[M], values: dict[str, Any]) -> M:
        columns = list(values)
        placeholders = ", ".join(f"${idx}" for idx in range(1, len(columns) + 1))
        row = await self._fetchrow(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
            *values.values(),
        )
        if row is None:
            raise StoreError("Could not save your data")
        stored = _to_model(model, row)
        await self._announce(table, INSERT, values["user_id"], stored)
        return stored

    # -- emotions ----------------------------------------------------------

    async def add_emotion(self, record: EmotionRecord) -> EmotionRecord:
        return await self._insert(
            EMOTIONS_TABLE,
            EmotionRecord,
            {
                "user_id": record.user_id,
                "emotion": record.emotion.value,
                "intensity": record.intensity,
                "text": record.text,
                "summary": record.summary,
                "quote": record.quote,
                "song": record.song,
                "suggestion": record.suggestion,
            },
        )

    async def list_emotions(
        self, user_id: str, *, limit: int | None = None, since: datetime | None = None
    ) -> list[EmotionRecord]:
        args: list[Any] = [user_id]
        where = "user_id = $1"
        if since is not None:
            args.append(since)
            where += f" AND created_at >= ${len(args)}"
        limit_sql, limit_args = _limit_clause(limit, len(args) + 1)
        rows = await self._fetch(
            f"SELECT * FROM {EMOTIONS_TABLE} WHERE {where} ORDER BY created_at DESC{limit_sql}",
            *args,
            *limit_args,
        )
        return [_to_model(EmotionRecord, row) for row in rows]

    # -- chat --------------------------------------------------------------

    async def add_chat_message(self, message: ChatMessage) -> ChatMessage:
        return await self._insert(
            CHAT_TABLE,
            ChatMessage,
            {"user_id": message.user_id, "role": message.role, "content": message.content},
        )

    async def list_chat_messages(self, user_id: str) -> list[ChatMessage]:
        rows = await self._fetch(
            f"SELECT * FROM {CHAT_TABLE} WHERE user_id = $1 ORDER BY created_at ASC",
            user_id,
        )
        return [_to_model(ChatMessage, row) for row in rows]

    async def clear_chat_messages(self, user_id: str) -> int:
        status = await self._execute(f"DELETE FROM {CHAT_TABLE} WHERE user_id = $1", user_id)
        await self._announce(CHAT_TABLE, DELETE, user_id, None)
        return _affected(status)

    # -- summaries ---------------------------------------------------------

    async def add_summary(self, summary: ConversationSummary) -> ConversationSummary:
        return await self._insert(
            SUMMARIES_TABLE,
            ConversationSummary,
            {
                "user_id": summary.user_id,
                "dominant_emotion": summary.dominant_emotion,
                "key_topics": list(summary.key_topics),
                "worries": list(summary.worries),
                "reflective_suggestions": summary.reflective_suggestions,
                "positive_reinforcement": summary.positive_reinforcement,
                "recommended_next_steps": list(summary.recommended_next_steps),
            },
        )

    async def list_summaries(self, user_id: str, *, limit: int | None = None) -> list[ConversationSummary]:
        limit_sql, limit_args = _limit_clause(limit, 2)
        rows = await self._fetch(
            f"SELECT * FROM {SUMMARIES_TABLE} WHERE user_id = $1 ORDER BY created_at DESC{limit_sql}",
            user_id,
            *limit_args,
        )
        return [_to_model(ConversationSummary, row) for row in rows]

    # -- journal -----------------------------------------------------------

    async def add_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        return await self._insert(
            JOURNAL_TABLE,
            JournalEntry,
            {
                "user_id": entry.user_id,
                "title": entry.title,
                "content": entry.content,
                "emotion": entry.emotion,
                "intensity": entry.intensity,
            },
        )

    async def list_journal_entries(self, user_id: str, *, limit: int | None = None) -> list[JournalEntry]:
        limit_sql, limit_args = _limit_clause(limit, 2)
        rows = await self._fetch(
            f"SELECT * FROM {JOURNAL_TABLE} WHERE user_id = $1 ORDER BY created_at DESC{limit_sql}",
            user_id,
            *limit_args,
        )
        return [_to_model(JournalEntry, row) for row in rows]

    async def delete_journal_entry(self, user_id: str, entry_id: str) -> bool:
        status = await self._execute(
            f"DELETE FROM {JOURNAL_TABLE} WHERE id = $1 AND user_id = $2",
            entry_id,
            user_id,
        )
        deleted = _affected(status) > 0
        if deleted:
            await self._announce(JOURNAL_TABLE, DELETE, user_id, None)
        return deleted

    # -- meditation --------------------------------------------------------

    async def add_meditation_session(self, session: MeditationSession) -> MeditationSession:
        return await self._insert(
            MEDITATION_TABLE,
            MeditationSession,
            {
                "user_id": session.user_id,
                "meditation_type": session.meditation_type.value,
                "duration_minutes": session.duration_minutes,
                "emotion_before": session.emotion_before,
                "emotion_after": session.emotion_after,
                "ai_summary": session.ai_summary,
            },
        )

    async def list_meditation_sessions(
        self, user_id: str, *, limit: int | None = None
    ) -> list[MeditationSession]:
        limit_sql, limit_args = _limit_clause(limit, 2)
        rows = await self._fetch(
            f"SELECT * FROM {MEDITATION_TABLE} WHERE user_id = $1 ORDER BY completed_at DESC{limit_sql}",
            user_id,
            *limit_args,
        )
        return [_to_model(MeditationSession, row) for row in rows]


def _affected(status: str) -> int:
    # asyncpg statuses look like "DELETE 3".
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except ValueError:
        return 0


__all__ = [
    "CHAT_TABLE",
    "EMOTIONS_TABLE",
    "JOURNAL_TABLE",
    "MEDITATION_TABLE",
    "PostgresRecordStore",
    "RecordStore",
    "SUMMARIES_TABLE",
]
