from datetime import date

import pytest

from aletheia.apps.client.dashboard import DashboardView, MeditationHistoryView, MoodCalendarView
from aletheia.apps.client.store import EMOTIONS_TABLE, JOURNAL_TABLE
from aletheia.libs.realtime import DELETE, INSERT, ChangeEvent, ChangeFeed
from aletheia.libs.schemas.records import (
    ConversationSummary,
    EmotionLabel,
    EmotionRecord,
    JournalEntry,
    MeditationSession,
    MeditationType,
)


def emotion(label, user_id="user-1"):
    return EmotionRecord(user_id=user_id, emotion=label, intensity=0.7, text="t", summary="s")


@pytest.mark.asyncio
async def test_dashboard_refetches_on_own_changes(context, live_store, feed):
    view = DashboardView(context, live_store, feed)
    snapshot = await view.mount()
    assert snapshot.total_analyses == 0
    assert snapshot.most_common == "N/A"
    assert len(snapshot.activity) == 7
    assert feed.subscriber_count() == 3

    await live_store.add_emotion(emotion(EmotionLabel.HAPPY))
    await live_store.add_emotion(emotion(EmotionLabel.HAPPY, user_id="someone-else"))

    assert view.refresh_count == 2
    assert view.snapshot.total_analyses == 1
    assert view.snapshot.most_common == "happy"
    assert view.snapshot.activity[-1].count == 1


@pytest.mark.asyncio
async def test_dashboard_recent_lists(context, live_store, feed):
    view = DashboardView(context, live_store, feed, recent_limit=2)
    await view.mount()
    for i in range(3):
        await live_store.add_journal_entry(JournalEntry(user_id="user-1", title=f"t{i}", content="c"))
    await live_store.add_summary(ConversationSummary(user_id="user-1", dominant_emotion="hopeful"))

    assert [entry.title for entry in view.snapshot.journals] == ["t2", "t1"]
    assert view.snapshot.latest_summary.dominant_emotion == "hopeful"

    await live_store.delete_journal_entry("user-1", view.snapshot.journals[0].id)
    assert [entry.title for entry in view.snapshot.journals] == ["t1", "t0"]


@pytest.mark.asyncio
async def test_unmounted_view_stops_refreshing(context, live_store, feed):
    view = DashboardView(context, live_store, feed)
    await view.mount()
    view.unmount()
    await live_store.add_emotion(emotion(EmotionLabel.SAD))
    assert view.refresh_count == 1
    assert feed.subscriber_count() == 0


@pytest.mark.asyncio
async def test_mood_calendar_only_follows_inserts(context, live_store, feed):
    view = MoodCalendarView(context, live_store, feed, today=date.today)
    grid = await view.mount()
    assert len(grid) == 30

    await feed.publish(ChangeEvent(table=EMOTIONS_TABLE, event=DELETE, user_id="user-1"))
    assert view.refresh_count == 1

    await live_store.add_emotion(emotion(EmotionLabel.EXCITED))
    assert view.refresh_count == 2
    assert view.snapshot[-1].emotion == "excited"


@pytest.mark.asyncio
async def test_meditation_history_view(context, live_store, feed):
    view = MeditationHistoryView(context, live_store, feed)
    await view.mount()
    await live_store.add_meditation_session(
        MeditationSession(user_id="user-1", meditation_type=MeditationType.SLEEP, duration_minutes=9)
    )
    assert view.snapshot.stats.total_sessions == 1
    assert view.snapshot.stats.total_minutes == 9
    assert view.snapshot.stats.by_type == {"sleep": 1}


@pytest.mark.asyncio
async def test_change_feed_filters_and_isolates_failures():
    feed = ChangeFeed()
    received = []

    async def broken(event):
        raise RuntimeError("boom")

    async def collect(event):
        received.append(event)

    feed.subscribe(JOURNAL_TABLE, broken)
    subscription = feed.subscribe(JOURNAL_TABLE, collect, events=[INSERT], user_id="user-1")

    await feed.publish(ChangeEvent(table=JOURNAL_TABLE, event=INSERT, user_id="user-1"))
    await feed.publish(ChangeEvent(table=JOURNAL_TABLE, event=DELETE, user_id="user-1"))
    await feed.publish(ChangeEvent(table=JOURNAL_TABLE, event=INSERT, user_id="user-2"))
    await feed.publish(ChangeEvent(table=EMOTIONS_TABLE, event=INSERT, user_id="user-1"))
    subscription.unsubscribe()
    await feed.publish(ChangeEvent(table=JOURNAL_TABLE, event=INSERT, user_id="user-1"))

    assert len(received) == 1
    assert feed.subscriber_count(JOURNAL_TABLE) == 1


def test_change_event_json():
    event = ChangeEvent(table=EMOTIONS_TABLE, event=INSERT, user_id="user-1", record={"emotion": "calm"})
    assert ChangeEvent.from_json(event.to_json()) == event
