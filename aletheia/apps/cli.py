"""Command-line shell over the session layer."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from typing import Sequence

from aletheia.apps.client.analysis import AnalysisService
from aletheia.apps.client.context import AuthClient, SessionContext
from aletheia.apps.client.conversation import ConversationController
from aletheia.apps.client.dashboard import DashboardView, MeditationHistoryView, MoodCalendarView
from aletheia.apps.client.errors import AletheiaError
from aletheia.apps.client.gateway import GatewayClient
from aletheia.apps.client.journal import JournalService
from aletheia.apps.client.meditation import MeditationController
from aletheia.apps.client.store import PostgresRecordStore
from aletheia.libs.emotions import load_catalog
from aletheia.libs.logging_utils import colorize, configure_logging, log_context
from aletheia.libs.realtime import ChangeFeed, RedisChangeBridge
from aletheia.libs.schemas import close_async_pool
from aletheia.libs.schemas.settings import AppSettings, get_settings
from aletheia.libs.voice import Utterance, VoiceAdapter

LOGGER = logging.getLogger(__name__)


class ConsoleSynthesizer:
    """Prints utterances instead of speaking them."""

    def __init__(self, stream=None) -> None:
        self._stream = stream or sys.stdout

    async def speak(self, utterance: Utterance) -> None:
        print(utterance.text, file=self._stream, flush=True)

    def pause(self) -> None:
        pass

    def resume(self) -> None:
        pass

    def cancel(self) -> None:
        pass


@dataclass
class Runtime:
    settings: AppSettings
    context: SessionContext
    gateway: GatewayClient
    store: PostgresRecordStore
    feed: ChangeFeed
    bridge: RedisChangeBridge | None = None

    async def close(self) -> None:
        if self.bridge is not None:
            await self.bridge.close()


async def _authenticate(settings: AppSettings, args: argparse.Namespace) -> SessionContext:
    auth = AuthClient.from_settings(settings)
    token = os.getenv("ALETHEIA_ACCESS_TOKEN")
    if token:
        return await auth.restore(token)
    email = args.email or os.getenv("ALETHEIA_EMAIL")
    password = args.password or os.getenv("ALETHEIA_PASSWORD")
    if not email or not password:
        raise AletheiaError("Sign in with --email/--password or set ALETHEIA_ACCESS_TOKEN")
    return await auth.sign_in(email, password)


async def _runtime(args: argparse.Namespace) -> Runtime:
    settings = get_settings()
    context = await _authenticate(settings, args)
    feed = ChangeFeed()
    bridge = None
    if settings.redis_url:
        bridge = RedisChangeBridge(feed, settings.redis_url)
        bridge.start()
        LOGGER.debug("Change events routed through %s", settings.redis_url)
    return Runtime(
        settings=settings,
        context=context,
        gateway=GatewayClient.from_settings(settings, context=context),
        store=PostgresRecordStore(publisher=bridge or feed),
        feed=feed,
        bridge=bridge,
    )


async def cmd_analyze(rt: Runtime, args: argparse.Namespace) -> None:
    service = AnalysisService(rt.context, rt.gateway, rt.store)
    outcome = await service.analyze(" ".join(args.text))
    result = outcome.result
    print(f"{result.emoji} {colorize(result.emotion.value, 'cyan')} ({result.intensity:.0%})")
    print(result.summary)
    print(f'"{result.quote}"')
    print(f"Song: {result.song}")
    print(result.suggestion)


async def cmd_chat(rt: Runtime, args: argparse.Namespace) -> None:
    controller = ConversationController(
        rt.context, rt.gateway, rt.store, history_window=rt.settings.chat_history_window
    )
    if args.clear:
        removed = await controller.clear()
        print(f"Chat cleared ({removed} messages)")
        return
    await controller.load()
    if args.message:
        reply = await controller.send(" ".join(args.message))
        print(colorize("Sol:", "magenta"), reply.content)
        return

    print("Talk to Sol. An empty line ends the conversation.")
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, input, "> ")
        if not line.strip():
            break
        try:
            reply = await controller.send(line)
        except AletheiaError as exc:
            print(colorize(str(exc), "red"))
            continue
        print(colorize("Sol:", "magenta"), reply.content)


async def cmd_journal(rt: Runtime, args: argparse.Namespace) -> None:
    service = JournalService(rt.context, rt.store)
    if args.journal_command == "add":
        entry = await service.create(
            args.title, args.content, emotion=args.emotion, intensity=args.intensity
        )
        print(f"Saved entry {entry.id}")
    elif args.journal_command == "delete":
        deleted = await service.delete(args.entry_id)
        print("Entry deleted" if deleted else "No such entry")
    else:
        for entry in await service.list_entries(limit=args.limit):
            mood = f" [{entry.emotion}]" if entry.emotion else ""
            print(f"{entry.created_at:%Y-%m-%d} {entry.title}{mood}")


async def cmd_dashboard(rt: Runtime, args: argparse.Namespace) -> None:
    dashboard = DashboardView(
        rt.context, rt.store, rt.feed, analysis_limit=rt.settings.dashboard_fetch_limit
    )
    snapshot = await dashboard.refresh()
    print(colorize("Dashboard", "cyan"))
    print(f"Total analyses: {snapshot.total_analyses}  Most common: {snapshot.most_common}")
    print("This week:", "  ".join(f"{point.label} {point.count}" for point in snapshot.activity))
    for share in snapshot.distribution:
        print(f"  {share.emotion:<9} {share.count:>3} ({share.proportion:.0%})")
    if snapshot.latest_summary is not None:
        print("Latest conversation:", snapshot.latest_summary.dominant_emotion)
        print("  Topics:", ", ".join(snapshot.latest_summary.key_topics))

    calendar = await MoodCalendarView(rt.context, rt.store, rt.feed).refresh()
    catalog = load_catalog()
    print("30 days:", "".join(catalog.get(day.emotion).emoji if day.emotion else "·" for day in calendar))

    history = await MeditationHistoryView(rt.context, rt.store, rt.feed).refresh()
    print(
        f"Meditation: {history.stats.total_sessions} sessions, "
        f"{history.stats.total_minutes} minutes, {history.stats.sessions_this_week} this week"
    )


async def cmd_meditate(rt: Runtime, args: argparse.Namespace) -> None:
    controller = MeditationController(
        rt.context,
        rt.gateway,
        rt.store,
        VoiceAdapter(synthesizer=ConsoleSynthesizer()),
        segment_pause=0.0 if args.fast else rt.settings.meditation_segment_pause,
        volume_ratio=rt.settings.background_volume_ratio,
    )
    if args.type is None:
        for option in load_catalog().meditation_options():
            print(f"{option.emoji} {option.type.value:<10} {option.label} ({option.duration} min)")
        print()
        print(await controller.recommend())
        return

    await controller.start(args.type)
    session = await controller.wait()
    if session is not None:
        print(colorize(f"Session saved: {session.duration_minutes} min", "green"))
        if session.ai_summary:
            print(session.ai_summary)


COMMANDS = {
    "analyze": cmd_analyze,
    "chat": cmd_chat,
    "journal": cmd_journal,
    "dashboard": cmd_dashboard,
    "meditate": cmd_meditate,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aletheia", description="Aletheia emotional wellness companion.")
    parser.add_argument("--email", default=None, help="Account email (or ALETHEIA_EMAIL).")
    parser.add_argument("--password", default=None, help="Account password (or ALETHEIA_PASSWORD).")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze how a piece of text feels.")
    analyze.add_argument("text", nargs="+")

    chat = sub.add_parser("chat", help="Talk with Sol.")
    chat.add_argument("message", nargs="*")
    chat.add_argument("--clear", action="store_true", help="Delete the whole chat history.")

    journal = sub.add_parser("journal", help="Manage journal entries.")
    journal_sub = journal.add_subparsers(dest="journal_command")
    add = journal_sub.add_parser("add")
    add.add_argument("--title", required=True)
    add.add_argument("--content", required=True)
    add.add_argument("--emotion", default=None)
    add.add_argument("--intensity", type=float, default=None)
    listing = journal_sub.add_parser("list")
    listing.add_argument("--limit", type=int, default=20)
    delete = journal_sub.add_parser("delete")
    delete.add_argument("entry_id")
    journal.set_defaults(limit=20)

    sub.add_parser("dashboard", help="Show mood and meditation statistics.")

    meditate = sub.add_parser("meditate", help="Run a guided meditation or get a recommendation.")
    meditate.add_argument("type", nargs="?", choices=["calm", "stress", "sleep", "gratitude", "anxiety"])
    meditate.add_argument("--fast", action="store_true", help="Skip pauses between segments.")
    return parser


async def amain(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    rt: Runtime | None = None
    try:
        rt = await _runtime(args)
        with log_context(user_id=rt.context.user_id, command=args.command):
            await COMMANDS[args.command](rt, args)
    except AletheiaError as exc:
        print(colorize(str(exc), "red"), file=sys.stderr)
        return 1
    finally:
        if rt is not None:
            await rt.close()
        await close_async_pool()
    return 0


def main(argv: Sequence[str] | None = None) -> None:  # pragma: no cover - CLI entrypoint
    configure_logging(log_format="text")
    raise SystemExit(asyncio.run(amain(argv)))


__all__ = ["ConsoleSynthesizer", "build_parser", "main"]
