import pytest

from aletheia.apps import cli
from aletheia.apps.client.errors import AletheiaError
from aletheia.libs.realtime import ChangeFeed
from aletheia.libs.schemas.settings import AppSettings
from aletheia.libs.voice import Utterance


@pytest.fixture
def runtime(context, gateway, store):
    return cli.Runtime(settings=AppSettings(), context=context, gateway=gateway, store=store, feed=ChangeFeed())


def test_parser_commands():
    parser = cli.build_parser()
    args = parser.parse_args(["journal", "add", "--title", "Day", "--content", "Fine", "--intensity", "0.4"])
    assert (args.command, args.journal_command, args.intensity) == ("journal", "add", 0.4)
    assert parser.parse_args(["meditate"]).type is None
    with pytest.raises(SystemExit):
        parser.parse_args(["meditate", "yoga"])


@pytest.mark.asyncio
async def test_console_synthesizer_prints(capsys):
    await cli.ConsoleSynthesizer().speak(Utterance(text="Breathe in."))
    assert capsys.readouterr().out == "Breathe in.\n"


@pytest.mark.asyncio
async def test_analyze_command(runtime, gateway, store, capsys):
    gateway.analysis = {"emotion": "happy", "intensity": 0.8, "summary": "Bright."}
    await cli.cmd_analyze(runtime, cli.build_parser().parse_args(["analyze", "I", "can't", "stop", "smiling"]))
    out = capsys.readouterr().out
    assert "happy" in out and "80%" in out
    assert store.emotions[0].text == "I can't stop smiling"


@pytest.mark.asyncio
async def test_journal_commands(runtime, store, capsys):
    parser = cli.build_parser()
    await cli.cmd_journal(runtime, parser.parse_args(["journal", "add", "--title", "Day", "--content", "Fine"]))
    await cli.cmd_journal(runtime, parser.parse_args(["journal", "list"]))
    out = capsys.readouterr().out
    assert "Saved entry" in out
    assert "Day" in out
    assert store.journal[0].intensity == 0.5


@pytest.mark.asyncio
async def test_meditate_without_type_lists_options(runtime, gateway, capsys):
    await cli.cmd_meditate(runtime, cli.build_parser().parse_args(["meditate"]))
    out = capsys.readouterr().out
    assert "sleep" in out and "(10 min)" in out
    assert "Try the calm meditation." in out


@pytest.mark.asyncio
async def test_meditate_runs_a_session(runtime, gateway, store, capsys):
    await cli.cmd_meditate(runtime, cli.build_parser().parse_args(["meditate", "calm", "--fast"]))
    out = capsys.readouterr().out
    assert "Breathe in." in out and "Breathe out." in out
    assert len(store.meditations) == 1


@pytest.mark.asyncio
async def test_dashboard_command(runtime, capsys):
    await cli.cmd_dashboard(runtime, cli.build_parser().parse_args(["dashboard"]))
    out = capsys.readouterr().out
    assert "Total analyses: 0" in out
    assert "Meditation: 0 sessions" in out


@pytest.mark.asyncio
async def test_errors_exit_nonzero(monkeypatch, capsys):
    async def no_session(args):
        raise AletheiaError("Sign in with --email/--password or set ALETHEIA_ACCESS_TOKEN")

    monkeypatch.setattr(cli, "_runtime", no_session)
    assert await cli.amain(["dashboard"]) == 1
    assert "Sign in" in capsys.readouterr().err
