from datetime import date, datetime, timedelta, timezone

import pytest

from aletheia.apps.client import aggregation
from aletheia.libs.schemas.records import EmotionLabel, EmotionRecord, MeditationSession, MeditationType

TODAY = date(2024, 5, 15)
UTC = timezone.utc


def at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=UTC)


def record(label, day, intensity=0.5, hour=12):
    return EmotionRecord(
        user_id="user-1", emotion=label, intensity=intensity, text="", summary="", created_at=at(day, hour)
    )


def session(kind, day, minutes):
    return MeditationSession(user_id="user-1", meditation_type=kind, duration_minutes=minutes, completed_at=at(day))


def test_trailing_days_oldest_first():
    days = aggregation.trailing_days(TODAY, 3)
    assert days == [date(2024, 5, 13), date(2024, 5, 14), TODAY]


def test_activity_series_has_seven_days():
    records = [
        record(EmotionLabel.HAPPY, TODAY),
        record(EmotionLabel.SAD, TODAY),
        record(EmotionLabel.CALM, TODAY - timedelta(days=6)),
        record(EmotionLabel.CALM, TODAY - timedelta(days=7)),
    ]
    series = aggregation.activity_series(records, TODAY, tz=UTC)

    assert len(series) == 7
    assert series[0].day == TODAY - timedelta(days=6)
    assert series[0].count == 1
    assert series[-1].count == 2
    assert series[-1].label == "Wed"
    assert sum(point.count for point in series) == 3


def test_mood_calendar_majority_and_mean():
    yesterday = TODAY - timedelta(days=1)
    records = [
        record(EmotionLabel.SAD, yesterday, 0.2),
        record(EmotionLabel.HAPPY, yesterday, 0.6),
        record(EmotionLabel.HAPPY, yesterday, 1.0),
    ]
    grid = aggregation.mood_calendar(records, TODAY, tz=UTC)

    assert len(grid) == 30
    assert grid[-1] == aggregation.MoodDay(day=TODAY, emotion=None, intensity=0.0, count=0)
    assert grid[-2].emotion == "happy"
    assert grid[-2].intensity == pytest.approx(0.6)
    assert grid[-2].count == 3


def test_mood_calendar_tie_goes_to_first_seen():
    records = [record(EmotionLabel.ANXIOUS, TODAY, hour=9), record(EmotionLabel.CALM, TODAY, hour=10)]
    assert aggregation.mood_calendar(records, TODAY, tz=UTC)[-1].emotion == "anxious"


def test_local_day_respects_timezone():
    late = datetime(2024, 5, 14, 23, 30, tzinfo=UTC)
    assert aggregation.local_day(late, timezone(timedelta(hours=2))) == TODAY
    assert aggregation.local_day(datetime(2024, 5, 14, 23, 30)) == date(2024, 5, 14)


def test_distribution_and_most_common():
    records = [
        record(EmotionLabel.HAPPY, TODAY),
        record(EmotionLabel.SAD, TODAY),
        record(EmotionLabel.HAPPY, TODAY),
        record(EmotionLabel.CALM, TODAY),
    ]
    shares = {share.emotion: share for share in aggregation.emotion_distribution(records)}
    assert shares["happy"].count == 2
    assert shares["happy"].proportion == 0.5
    assert sum(share.proportion for share in shares.values()) == 1.0
    assert aggregation.most_common_emotion(records) == "happy"


def test_empty_history():
    assert aggregation.emotion_distribution([]) == []
    assert aggregation.most_common_emotion([]) == "N/A"
    assert all(day.count == 0 for day in aggregation.mood_calendar([], TODAY))


def test_meditation_stats():
    sessions = [
        session(MeditationType.CALM, TODAY, 5),
        session(MeditationType.SLEEP, TODAY, 11),
        session(MeditationType.CALM, TODAY - timedelta(days=3), 4),
        session(MeditationType.ANXIETY, TODAY - timedelta(days=20), 8),
    ]
    stats = aggregation.meditation_stats(sessions, TODAY, tz=UTC)

    assert stats.total_sessions == 4
    assert stats.total_minutes == 28
    assert stats.sessions_this_week == 3
    assert len(stats.weekly) == 7
    assert stats.weekly[-1].sessions == 2
    assert stats.weekly[-1].minutes == 16
    assert stats.by_type == {"calm": 2, "sleep": 1, "anxiety": 1}
