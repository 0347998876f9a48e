"""Summary: Tests for the command-line interface.

Importance: Ensures CLI commands wire through configuration and services.
Alternatives: Exercise the CLI manually.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from assistpilot.cli import build_parser, run_cli


def _prepare(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    defaults = json.loads((Path(__file__).resolve().parents[1] / "config" / "defaults.json").read_text(encoding="utf-8"))
    defaults["db_path"] = str(tmp_path / "cli.db")
    defaults["offline_mode"] = "true"
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "defaults.json").write_text(json.dumps(defaults), encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    for name in ("ASSISTPILOT_DB_PATH", "ASSISTPILOT_OFFLINE_MODE", "OPENWEATHER_API_KEY", "NEWSAPI_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parse_prints_command_json(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _prepare(tmp_path, monkeypatch)
    run_cli(["parse", "get my reminders"])
    payload = json.loads(capsys.readouterr().out)
    assert payload["domain"] == "reminder"
    assert payload["action"] == "get"


def test_ask_and_list_reminders(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Summary: Verify reminders created through ask are listed later.

    Importance: Confirms the CLI shares storage across invocations.
    Alternatives: Only test the dispatcher directly.
    """

    _prepare(tmp_path, monkeypatch)
    run_cli(["ask", "create task for laundry tomorrow"])
    assert 'Task "laundry" created successfully.' in capsys.readouterr().out
    run_cli(["list-reminders", "--kind", "task"])
    assert "[task] laundry" in capsys.readouterr().out


def test_weather_offline_fallback(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _prepare(tmp_path, monkeypatch)
    run_cli(["weather", "--city", "Paris"])
    assert "New York" in capsys.readouterr().out


def test_listen_replays_transcripts(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _prepare(tmp_path, monkeypatch)
    run_cli(["listen", "create note about ideas", "get my notes"])
    out = capsys.readouterr().out
    assert "You have 1 voice notes." in out
    assert "Processed 2 voice commands." in out
