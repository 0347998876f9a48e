"""Summary: Tests for the voice session.

Importance: Ensures transcripts flow through parsing and dispatch with correct state handling.
Alternatives: Test voice only on a device with a microphone.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from assistpilot.cache import ExpiringCache
from assistpilot.dispatcher import CommandDispatcher
from assistpilot.models import DispatchResult
from assistpilot.news import MockNewsGateway
from assistpilot.notifications import InMemoryNotificationScheduler
from assistpilot.parser import IntentParser
from assistpilot.storage.sqlite_store import SqliteStore
from assistpilot.voice import (
    KeywordWakeWordDetector,
    ScriptedSpeechRecognizer,
    SpeechRecognitionError,
    VoiceSession,
)
from assistpilot.weather import MockWeatherGateway

NOW = datetime(2026, 3, 10, 9, 0)


class BrokenRecognizer(ScriptedSpeechRecognizer):
    def start(self, language: str = "en-US") -> None:
        raise SpeechRecognitionError("microphone unavailable")


def _session(
    tmp_path: Path,
    recognizer: ScriptedSpeechRecognizer,
    heard: list[tuple[str, DispatchResult]],
    wake_word: KeywordWakeWordDetector | None = None,
) -> tuple[VoiceSession, CommandDispatcher]:
    store = SqliteStore(str(tmp_path / "voice.db"), clock=lambda: NOW)
    store.initialize()
    dispatcher = CommandDispatcher(
        store=store,
        weather=MockWeatherGateway(),
        news=MockNewsGateway(clock=lambda: NOW),
        cache=ExpiringCache(clock=lambda: NOW),
        notifier=InMemoryNotificationScheduler(clock=lambda: NOW),
        user_id=1,
        clock=lambda: NOW,
    )
    session = VoiceSession(
        recognizer=recognizer,
        parser=IntentParser(clock=lambda: NOW),
        dispatcher=dispatcher,
        on_result=lambda text, result: heard.append((text, result)),
        wake_word=wake_word,
    )
    return session, dispatcher


def test_run_processes_every_transcript(tmp_path: Path) -> None:
    """Summary: Verify each final transcript is parsed, dispatched, and reported.

    Importance: Core voice round trip.
    Alternatives: Only process the first transcript.
    """

    heard: list[tuple[str, DispatchResult]] = []
    recognizer = ScriptedSpeechRecognizer(
        ["Create reminder for dentist tomorrow", "", "weather in Paris"]
    )
    session, dispatcher = _session(tmp_path, recognizer, heard)
    results = session.run()
    assert [result.success for result in results] == [True, True]
    assert [text for text, _ in heard] == ["create reminder for dentist tomorrow", "weather in paris"]
    assert len(dispatcher.store.list_reminders(1)) == 1
    assert session.is_listening is False
    assert recognizer.active is False
    assert recognizer.language == "en-US"


def test_wake_word_gates_commands(tmp_path: Path) -> None:
    """Summary: Verify speech is ignored until the wake word is heard.

    Importance: Hands-free sessions must not act on background speech.
    Alternatives: Act on every utterance.
    """

    heard: list[tuple[str, DispatchResult]] = []
    recognizer = ScriptedSpeechRecognizer(
        [
            "create reminder for ignored tomorrow",
            "Hey Assistant, create task for laundry",
            "create task for also ignored",
            "hey assistant",
            "latest news",
        ]
    )
    session, dispatcher = _session(
        tmp_path, recognizer, heard, wake_word=KeywordWakeWordDetector("hey assistant")
    )
    results = session.run()
    assert len(results) == 2
    assert [text for text, _ in heard] == ["create task for laundry", "latest news"]
    assert [item.title for item in dispatcher.store.list_reminders(1)] == ["laundry"]


def test_start_listening_refuses_overlap(tmp_path: Path) -> None:
    heard: list[tuple[str, DispatchResult]] = []
    session, _ = _session(tmp_path, ScriptedSpeechRecognizer([]), heard)
    assert session.start_listening() is True
    assert session.start_listening() is False
    session.stop_listening()
    assert session.is_listening is False


def test_recognizer_failure_keeps_session_idle(tmp_path: Path) -> None:
    heard: list[tuple[str, DispatchResult]] = []
    session, _ = _session(tmp_path, BrokenRecognizer(["weather"]), heard)
    assert session.start_listening() is False
    assert session.run() == []
    assert heard == []


def test_max_commands_limit(tmp_path: Path) -> None:
    heard: list[tuple[str, DispatchResult]] = []
    recognizer = ScriptedSpeechRecognizer(["latest news", "weather here", "get my reminders"])
    session, _ = _session(tmp_path, recognizer, heard)
    assert len(session.run(max_commands=2)) == 2
    assert recognizer.listen() == "get my reminders"
