"""Summary: Tests for SQLite storage layer.

Importance: Ensures persistence behaves as expected for core workflows.
Alternatives: Rely on manual testing for storage operations.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from assistpilot.models import Reminder, User, VoiceNote
from assistpilot.storage.sqlite_store import SqliteStore, StoredReminder

NOW = datetime(2026, 3, 10, 9, 0)


def _store(tmp_path: Path) -> SqliteStore:
    store = SqliteStore(str(tmp_path / "test.db"), clock=lambda: NOW)
    store.initialize()
    return store


def test_ensure_user_is_idempotent(tmp_path: Path) -> None:
    """Summary: Verify the same email maps to one user record.

    Importance: The default user is ensured on every startup.
    Alternatives: Create a new user per process.
    """

    store = _store(tmp_path)
    first = store.ensure_user(User(display_name="Ada", email="ada@example.com"))
    second = store.ensure_user(User(display_name="Ada", email="ada@example.com"))
    assert first == second
    stored = store.get_user_by_email("ada@example.com")
    assert stored is not None and stored.display_name == "Ada"
    assert store.update_user(first, display_name="Ada L.")
    updated = store.get_user(first)
    assert updated is not None and updated.display_name == "Ada L."


def test_reminders_are_ordered_by_due_date(tmp_path: Path) -> None:
    store = _store(tmp_path)
    late = store.create_reminder(Reminder(user_id=1, title="Late", due_date=NOW + timedelta(days=2)))
    early = store.create_reminder(
        Reminder(user_id=1, title="Early", due_date=NOW + timedelta(hours=1), kind="meeting")
    )
    store.create_reminder(Reminder(user_id=2, title="Other user", due_date=NOW))
    reminders = store.list_reminders(1)
    assert [item.id for item in reminders] == [early, late]
    assert [item.title for item in store.list_reminders(1, kind="meeting")] == ["Early"]
    assert reminders[0].due_datetime == NOW + timedelta(hours=1)
    assert reminders[0].created_at == NOW.isoformat()


def test_update_and_delete_reminder(tmp_path: Path) -> None:
    """Summary: Verify completion updates and deletion.

    Importance: Completion and deletion keep lists accurate.
    Alternatives: Recreate reminders on every change.
    """

    store = _store(tmp_path)
    reminder_id = store.create_reminder(Reminder(user_id=1, title="Pay rent", due_date=NOW))
    assert store.update_reminder(reminder_id, completed=True, priority="high")
    stored = store.get_reminder(reminder_id)
    assert stored is not None and stored.completed is True and stored.priority == "high"
    with pytest.raises(ValueError):
        store.update_reminder(reminder_id, owner="someone")
    assert store.delete_reminder(reminder_id) is True
    assert store.delete_reminder(reminder_id) is False
    assert store.update_reminder(reminder_id, completed=False) is False


def test_voice_notes_newest_first(tmp_path: Path) -> None:
    clock_values = iter([NOW, NOW + timedelta(minutes=1)])
    store = SqliteStore(str(tmp_path / "notes.db"), clock=lambda: next(clock_values))
    store.initialize()
    first = store.create_voice_note(VoiceNote(user_id=1, title="First", transcript="one"))
    second = store.create_voice_note(VoiceNote(user_id=1, title="Second", transcript="two"))
    notes = store.list_voice_notes(1)
    assert [note.id for note in notes] == [second, first]
    assert store.delete_voice_note(first) is True
    assert [note.title for note in store.list_voice_notes(1)] == ["Second"]


def test_batch_create_rolls_back_on_error(tmp_path: Path) -> None:
    """Summary: Verify batches are all-or-nothing.

    Importance: Imports must not leave half-written data.
    Alternatives: Insert items one by one.
    """

    store = _store(tmp_path)
    ids = store.batch_create(
        [
            Reminder(user_id=1, title="One", due_date=NOW),
            VoiceNote(user_id=1, title="Note"),
        ]
    )
    assert len(ids) == 2
    with pytest.raises(sqlite3.IntegrityError):
        store.batch_create(
            [
                Reminder(user_id=1, title="Two", due_date=NOW),
                Reminder(user_id=1, title=None, due_date=NOW),  # type: ignore[arg-type]
            ]
        )
    assert [item.title for item in store.list_reminders(1)] == ["One"]


def test_subscriptions_receive_updates(tmp_path: Path) -> None:
    store = _store(tmp_path)
    snapshots: list[list[StoredReminder]] = []
    unsubscribe = store.subscribe_reminders(1, snapshots.append)
    assert snapshots == [[]]
    store.create_reminder(Reminder(user_id=1, title="Walk", due_date=NOW))
    store.create_reminder(Reminder(user_id=2, title="Not mine", due_date=NOW))
    assert [len(snapshot) for snapshot in snapshots] == [0, 1]
    unsubscribe()
    store.create_reminder(Reminder(user_id=1, title="Run", due_date=NOW))
    assert len(snapshots) == 2

    notes: list[int] = []
    store.subscribe_voice_notes(1, lambda items: notes.append(len(items)))
    store.create_voice_note(VoiceNote(user_id=1, title="Idea"))
    assert notes == [0, 1]


def test_failing_listener_does_not_undo_write(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """Summary: Verify a listener error after commit is logged and other listeners still run.

    Importance: The reminder is already saved, so the writer must not see a failure.
    Alternatives: Propagate listener errors to the writer.
    """

    store = _store(tmp_path)
    received: list[int] = []

    def broken(items: list[StoredReminder]) -> None:
        if items:
            raise RuntimeError("listener exploded")

    store.subscribe_reminders(1, broken)
    store.subscribe_reminders(1, lambda items: received.append(len(items)))
    with caplog.at_level("ERROR", logger="assistpilot.storage.sqlite_store"):
        reminder_id = store.create_reminder(Reminder(user_id=1, title="Rent", due_date=NOW))
    assert store.get_reminder(reminder_id) is not None
    assert received == [0, 1]
    assert "Reminder listener failed" in caplog.text
