"""Pure read-and-reduce helpers behind the dashboard, calendar and history views.

Every function takes already-fetched records and a reference ``today``; dates are
bucketed by local calendar day (``tz`` defaults to the host zone).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Sequence

from aletheia.libs.schemas.records import EmotionRecord, MeditationSession

ACTIVITY_DAYS = 7
CALENDAR_DAYS = 30


@dataclass(frozen=True)
class ActivityPoint:
    day: date
    label: str
    count: int


@dataclass(frozen=True)
class MoodDay:
    day: date
    emotion: str | None
    intensity: float
    count: int


@dataclass(frozen=True)
class EmotionShare:
    emotion: str
    count: int
    proportion: float


@dataclass(frozen=True)
class MeditationDay:
    day: date
    label: str
    sessions: int
    minutes: int


@dataclass(frozen=True)
class MeditationStats:
    total_sessions: int
    total_minutes: int
    sessions_this_week: int
    weekly: list[MeditationDay] = field(default_factory=list)
    by_type: dict[str, int] = field(default_factory=dict)


def local_day(moment: datetime, tz: tzinfo | None = None) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


def trailing_days(today: date, count: int) -> list[date]:
    """``count`` consecutive days, oldest first, ending at ``today``."""

    return [today - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


def _weekday(day: date) -> str:
    return day.strftime("%a")


def _emotion_value(record: EmotionRecord) -> str:
    return record.emotion.value


def activity_series(
    records: Iterable[EmotionRecord], today: date, *, tz: tzinfo | None = None
) -> list[ActivityPoint]:
    counts = Counter(local_day(record.created_at, tz) for record in records)
    return [
        ActivityPoint(day=day, label=_weekday(day), count=counts.get(day, 0))
        for day in trailing_days(today, ACTIVITY_DAYS)
    ]


def _majority(labels: Sequence[str]) -> str:
    # Counter keeps first-seen order, and max() returns the first maximal key.
    counts = Counter(labels)
    return max(counts, key=lambda label: counts[label])


def mood_calendar(
    records: Iterable[EmotionRecord], today: date, *, tz: tzinfo | None = None
) -> list[MoodDay]:
    by_day: dict[date, list[EmotionRecord]] = {}
    for record in records:
        by_day.setdefault(local_day(record.created_at, tz), []).append(record)

    grid: list[MoodDay] = []
    for day in trailing_days(today, CALENDAR_DAYS):
        entries = by_day.get(day)
        if not entries:
            grid.append(MoodDay(day=day, emotion=None, intensity=0.0, count=0))
            continue
        grid.append(
            MoodDay(
                day=day,
                emotion=_majority([_emotion_value(entry) for entry in entries]),
                intensity=sum(entry.intensity or 0.0 for entry in entries) / len(entries),
                count=len(entries),
            )
        )
    return grid


def emotion_distribution(records: Iterable[EmotionRecord]) -> list[EmotionShare]:
    counts = Counter(_emotion_value(record) for record in records)
    total = sum(counts.values())
    if not total:
        return []
    return [
        EmotionShare(emotion=emotion, count=count, proportion=count / total)
        for emotion, count in counts.items()
    ]


def most_common_emotion(records: Iterable[EmotionRecord]) -> str:
    labels = [_emotion_value(record) for record in records]
    return _majority(labels) if labels else "N/A"


def meditation_stats(
    sessions: Iterable[MeditationSession], today: date, *, tz: tzinfo | None = None
) -> MeditationStats:
    sessions = list(sessions)
    per_day: dict[date, list[MeditationSession]] = {}
    for session in sessions:
        per_day.setdefault(local_day(session.completed_at, tz), []).append(session)

    weekly = []
    for day in trailing_days(today, ACTIVITY_DAYS):
        day_sessions = per_day.get(day, [])
        weekly.append(
            MeditationDay(
                day=day,
                label=_weekday(day),
                sessions=len(day_sessions),
                minutes=sum(item.duration_minutes for item in day_sessions),
            )
        )

    by_type: dict[str, int] = {}
    for session in sessions:
        kind = session.meditation_type.value
        by_type[kind] = by_type.get(kind, 0) + 1

    return MeditationStats(
        total_sessions=len(sessions),
        total_minutes=sum(session.duration_minutes for session in sessions),
        sessions_this_week=sum(point.sessions for point in weekly),
        weekly=weekly,
        by_type=by_type,
    )


__all__ = [
    "ActivityPoint",
    "EmotionShare",
    "MeditationDay",
    "MeditationStats",
    "MoodDay",
    "activity_series",
    "emotion_distribution",
    "local_day",
    "meditation_stats",
    "mood_calendar",
    "most_common_emotion",
    "trailing_days",
]
