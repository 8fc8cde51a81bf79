"""Read-only views that recompute whenever their tables change."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Generic, Iterable, TypeVar

from aletheia.libs.realtime import INSERT, ChangeEvent, ChangeFeed, Subscription
from aletheia.libs.schemas.records import (
    ConversationSummary,
    EmotionRecord,
    JournalEntry,
    MeditationSession,
)

from . import aggregation
from .context import SessionContext
from .store import (
    EMOTIONS_TABLE,
    JOURNAL_TABLE,
    MEDITATION_TABLE,
    SUMMARIES_TABLE,
    RecordStore,
)

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DashboardSnapshot:
    analyses: list[EmotionRecord]
    summaries: list[ConversationSummary]
    journals: list[JournalEntry]
    activity: list[aggregation.ActivityPoint]
    distribution: list[aggregation.EmotionShare]
    most_common: str

    @property
    def total_analyses(self) -> int:
        return len(self.analyses)

    @property
    def latest_summary(self) -> ConversationSummary | None:
        return self.summaries[0] if self.summaries else None


@dataclass(frozen=True)
class MeditationHistorySnapshot:
    sessions: list[MeditationSession]
    stats: aggregation.MeditationStats


class LiveView(Generic[T]):
    """Fetch-and-compute on mount, then re-fetch and replace on every change event."""

    tables: tuple[str, ...] = ()
    events: Iterable[str] | None = None

    def __init__(
        self,
        context: SessionContext,
        store: RecordStore,
        feed: ChangeFeed,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._context = context
        self._store = store
        self._feed = feed
        self._today = today
        self._subscriptions: list[Subscription] = []
        self.snapshot: T | None = None
        self.refresh_count = 0

    @property
    def mounted(self) -> bool:
        return bool(self._subscriptions)

    async def mount(self) -> T:
        snapshot = await self.refresh()
        if not self._subscriptions:
            self._subscriptions = [
                self._feed.subscribe(
                    table,
                    self._on_change,
                    events=self.events,
                    user_id=self._context.user_id,
                )
                for table in self.tables
            ]
        return snapshot

    def unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    async def refresh(self) -> T:
        self.snapshot = await self.compute()
        self.refresh_count += 1
        return self.snapshot

    async def _on_change(self, event: ChangeEvent) -> None:
        if not self.mounted:
            return
        LOGGER.debug("Refreshing %s after %s on %s", type(self).__name__, event.event, event.table)
        await self.refresh()

    async def compute(self) -> T:
        raise NotImplementedError


class DashboardView(LiveView[DashboardSnapshot]):
    tables = (EMOTIONS_TABLE, SUMMARIES_TABLE, JOURNAL_TABLE)

    def __init__(self, *args, analysis_limit: int = 100, recent_limit: int = 5, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._analysis_limit = analysis_limit
        self._recent_limit = recent_limit

    async def compute(self) -> DashboardSnapshot:
        user_id = self._context.user_id
        analyses = await self._store.list_emotions(user_id, limit=self._analysis_limit)
        summaries = await self._store.list_summaries(user_id, limit=self._recent_limit)
        journals = await self._store.list_journal_entries(user_id, limit=self._recent_limit)
        today = self._today()
        return DashboardSnapshot(
            analyses=analyses,
            summaries=summaries,
            journals=journals,
            activity=aggregation.activity_series(analyses, today),
            distribution=aggregation.emotion_distribution(analyses),
            most_common=aggregation.most_common_emotion(analyses),
        )


class MoodCalendarView(LiveView[list[aggregation.MoodDay]]):
    tables = (EMOTIONS_TABLE,)
    events = (INSERT,)

    async def compute(self) -> list[aggregation.MoodDay]:
        since = datetime.now(timezone.utc) - timedelta(days=aggregation.CALENDAR_DAYS)
        records = await self._store.list_emotions(self._context.user_id, since=since)
        return aggregation.mood_calendar(records, self._today())


class MeditationHistoryView(LiveView[MeditationHistorySnapshot]):
    tables = (MEDITATION_TABLE,)

    async def compute(self) -> MeditationHistorySnapshot:
        sessions = await self._store.list_meditation_sessions(self._context.user_id)
        return MeditationHistorySnapshot(
            sessions=sessions,
            stats=aggregation.meditation_stats(sessions, self._today()),
        )


__all__ = [
    "DashboardSnapshot",
    "DashboardView",
    "LiveView",
    "MeditationHistorySnapshot",
    "MeditationHistoryView",
    "MoodCalendarView",
]
