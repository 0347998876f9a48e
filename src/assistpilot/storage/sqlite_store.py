"""Summary: SQLite storage implementation for AssistPilot.

Importance: Provides a local-first persistence layer for users, reminders, and voice notes.
Alternatives: Use a hosted document store such as Firestore.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator

from assistpilot.models import Clock, Reminder, User, VoiceNote

logger = logging.getLogger(__name__)

REMINDER_COLUMNS = (
    "id, user_id, kind, title, description, due_date, completed, priority, created_at, updated_at"
)
VOICE_NOTE_COLUMNS = "id, user_id, title, audio_url, transcript, duration, due_date, created_at"
UPDATABLE_REMINDER_FIELDS = ("title", "description", "due_date", "completed", "priority", "kind")


@dataclass(frozen=True)
class StoredUser:
    """Summary: User record with database identifier.

    Importance: Enables per-user ownership of reminders and notes.
    Alternatives: Keep only a single implicit user without records.
    """

    id: int
    display_name: str
    email: str
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class StoredReminder:
    """Summary: Reminder, meeting, or task record with database identifier.

    Importance: Supports listing, completion, and deletion by id.
    Alternatives: Store each kind in its own table.
    """

    id: int
    user_id: int
    kind: str
    title: str
    description: str | None
    due_date: str
    completed: bool
    priority: str
    created_at: str
    updated_at: str

    @property
    def due_datetime(self) -> datetime:
        return datetime.fromisoformat(self.due_date)

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kind": self.kind,
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date,
            "completed": self.completed,
            "priority": self.priority,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class StoredVoiceNote:
    """Summary: Voice note record with database identifier.

    Importance: Supports listing and deleting dictated notes.
    Alternatives: Store notes as reminders.
    """

    id: int
    user_id: int
    title: str
    audio_url: str
    transcript: str | None
    duration: int
    due_date: str | None
    created_at: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "audio_url": self.audio_url,
            "transcript": self.transcript,
            "duration": self.duration,
            "due_date": self.due_date,
            "created_at": self.created_at,
        }


ReminderListener = Callable[[list[StoredReminder]], None]
VoiceNoteListener = Callable[[list[StoredVoiceNote]], None]


class SqliteStore:
    """Summary: SQLite-backed storage for AssistPilot.

    Importance: Enables local-first persistence with minimal dependencies.
    Alternatives: Use Postgres and SQLAlchemy from day one.
    """

    def __init__(self, db_path: str, clock: Clock = datetime.now) -> None:
        """Summary: Initialize the storage with a database path.

        Importance: Allows configurable database location per environment.
        Alternatives: Hardcode a default path in the class.
        """

        self._db_path = Path(db_path)
        self._clock = clock
        self._reminder_listeners: dict[int, list[ReminderListener]] = {}
        self._voice_note_listeners: dict[int, list[VoiceNoteListener]] = {}

    def initialize(self) -> None:
        """Summary: Create tables if they do not exist.

        Importance: Ensures the database is ready for reads and writes.
        Alternatives: Run migrations using a dedicated migration tool.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    display_name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS reminders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    kind TEXT NOT NULL DEFAULT 'reminder',
                    title TEXT NOT NULL,
                    description TEXT,
                    due_date TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    priority TEXT NOT NULL DEFAULT 'medium',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS voice_notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    audio_url TEXT NOT NULL DEFAULT '',
                    transcript TEXT,
                    duration INTEGER NOT NULL DEFAULT 0,
                    due_date TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_reminders_user_due ON reminders (user_id, due_date)"
            )
            connection.commit()

    def ensure_user(self, user: User) -> int:
        """Summary: Ensure a user exists and return their ID.

        Importance: Provides a stable user record for data ownership.
        Alternatives: Omit user records in single-user mode.
        """

        now = self._timestamp()
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO users (display_name, email, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (user.display_name, user.email, now, now),
            )
            if cursor.rowcount:
                user_id = cursor.lastrowid
            else:
                cursor.execute("SELECT id FROM users WHERE email = ?", (user.email,))
                row = cursor.fetchone()
                user_id = int(row[0]) if row else 0
            connection.commit()
        return int(user_id)

    def get_user(self, user_id: int) -> StoredUser | None:
        """Summary: Fetch a user by ID."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT id, display_name, email, created_at, updated_at FROM users WHERE id = ?",
                (user_id,),
            )
            row = cursor.fetchone()
        return StoredUser(*row) if row else None

    def get_user_by_email(self, email: str) -> StoredUser | None:
        """Summary: Fetch a user by email.

        Importance: Resolves the configured default user at startup.
        Alternatives: Use user IDs only.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT id, display_name, email, created_at, updated_at FROM users WHERE email = ?",
                (email,),
            )
            row = cursor.fetchone()
        return StoredUser(*row) if row else None

    def update_user(
        self, user_id: int, display_name: str | None = None, email: str | None = None
    ) -> bool:
        """Summary: Update profile fields and stamp updated_at.

        Importance: Supports profile edits.
        Alternatives: Recreate the user record.
        """

        updates: dict[str, Any] = {}
        if display_name is not None:
            updates["display_name"] = display_name
        if email is not None:
            updates["email"] = email
        updates["updated_at"] = self._timestamp()
        assignments = ", ".join(f"{column} = ?" for column in updates)
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                f"UPDATE users SET {assignments} WHERE id = ?", (*updates.values(), user_id)
            )
            connection.commit()
            return cursor.rowcount > 0

    def create_reminder(self, reminder: Reminder) -> int:
        """Summary: Persist a reminder, meeting, or task.

        Importance: Stores voice-created items for listing and alerts.
        Alternatives: Keep items only in memory.
        """

        with self._connection() as connection:
            reminder_id = self._insert_reminder(connection.cursor(), reminder)
            connection.commit()
        logger.info("Created %s %s for user %s.", reminder.kind, reminder_id, reminder.user_id)
        self._notify_reminders(reminder.user_id)
        return reminder_id

    def get_reminder(self, reminder_id: int) -> StoredReminder | None:
        """Summary: Fetch a single reminder by ID."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                f"SELECT {REMINDER_COLUMNS} FROM reminders WHERE id = ?", (reminder_id,)
            )
            row = cursor.fetchone()
        return _reminder_from_row(row) if row else None

    def list_reminders(self, user_id: int, kind: str | None = None) -> list[StoredReminder]:
        """Summary: List a user's reminders ordered by due date ascending.

        Importance: Drives listing commands and notification scheduling.
        Alternatives: Sort client-side.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            if kind is None:
                cursor.execute(
                    f"SELECT {REMINDER_COLUMNS} FROM reminders WHERE user_id = ? "
                    "ORDER BY due_date ASC, id ASC",
                    (user_id,),
                )
            else:
                cursor.execute(
                    f"SELECT {REMINDER_COLUMNS} FROM reminders WHERE user_id = ? AND kind = ? "
                    "ORDER BY due_date ASC, id ASC",
                    (user_id, kind),
                )
            rows = cursor.fetchall()
        return [_reminder_from_row(row) for row in rows]

    def update_reminder(self, reminder_id: int, **fields: Any) -> bool:
        """Summary: Update selected reminder fields and stamp updated_at.

        Importance: Supports completion and rescheduling.
        Alternatives: Delete and recreate reminders.
        """

        unknown = set(fields) - set(UPDATABLE_REMINDER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown reminder fields: {', '.join(sorted(unknown))}")
        values: dict[str, Any] = {}
        for name, value in fields.items():
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, bool):
                value = int(value)
            values[name] = value
        values["updated_at"] = self._timestamp()
        assignments = ", ".join(f"{column} = ?" for column in values)
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT user_id FROM reminders WHERE id = ?", (reminder_id,))
            row = cursor.fetchone()
            if not row:
                return False
            cursor.execute(
                f"UPDATE reminders SET {assignments} WHERE id = ?", (*values.values(), reminder_id)
            )
            connection.commit()
        self._notify_reminders(int(row[0]))
        return True

    def delete_reminder(self, reminder_id: int) -> bool:
        """Summary: Delete a reminder by ID.

        Importance: Backs "delete reminder" commands.
        Alternatives: Soft-delete with a flag.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT user_id FROM reminders WHERE id = ?", (reminder_id,))
            row = cursor.fetchone()
            if not row:
                return False
            cursor.execute("DELETE FROM reminders WHERE id = ?", (reminder_id,))
            connection.commit()
        self._notify_reminders(int(row[0]))
        return True

    def create_voice_note(self, note: VoiceNote) -> int:
        """Summary: Persist a voice note.

        Importance: Stores dictated notes and their transcripts.
        Alternatives: Store notes in a file per user.
        """

        with self._connection() as connection:
            note_id = self._insert_voice_note(connection.cursor(), note)
            connection.commit()
        logger.info("Created voice note %s for user %s.", note_id, note.user_id)
        self._notify_voice_notes(note.user_id)
        return note_id

    def list_voice_notes(self, user_id: int) -> list[StoredVoiceNote]:
        """Summary: List a user's voice notes, newest first."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                f"SELECT {VOICE_NOTE_COLUMNS} FROM voice_notes WHERE user_id = ? "
                "ORDER BY created_at DESC, id DESC",
                (user_id,),
            )
            rows = cursor.fetchall()
        return [StoredVoiceNote(*row) for row in rows]

    def delete_voice_note(self, note_id: int) -> bool:
        """Summary: Delete a voice note by ID."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT user_id FROM voice_notes WHERE id = ?", (note_id,))
            row = cursor.fetchone()
            if not row:
                return False
            cursor.execute("DELETE FROM voice_notes WHERE id = ?", (note_id,))
            connection.commit()
        self._notify_voice_notes(int(row[0]))
        return True

    def batch_create(self, items: list[Reminder | VoiceNote]) -> list[int]:
        """Summary: Insert reminders and voice notes in one transaction.

        Importance: Imports either land completely or not at all.
        Alternatives: Insert items one by one.
        """

        ids: list[int] = []
        with self._connection() as connection:
            cursor = connection.cursor()
            try:
                for item in items:
                    if isinstance(item, Reminder):
                        ids.append(self._insert_reminder(cursor, item))
                    else:
                        ids.append(self._insert_voice_note(cursor, item))
                connection.commit()
            except sqlite3.Error:
                connection.rollback()
                raise
        for user_id in {item.user_id for item in items if isinstance(item, Reminder)}:
            self._notify_reminders(user_id)
        for user_id in {item.user_id for item in items if isinstance(item, VoiceNote)}:
            self._notify_voice_notes(user_id)
        return ids

    def subscribe_reminders(self, user_id: int, listener: ReminderListener) -> Callable[[], None]:
        """Summary: Watch a user's reminders for changes.

        Importance: Lets clients refresh lists after every write without polling.
        Alternatives: Poll list_reminders on a timer.
        """

        self._reminder_listeners.setdefault(user_id, []).append(listener)
        listener(self.list_reminders(user_id))

        def unsubscribe() -> None:
            listeners = self._reminder_listeners.get(user_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def subscribe_voice_notes(
        self, user_id: int, listener: VoiceNoteListener
    ) -> Callable[[], None]:
        """Summary: Watch a user's voice notes for changes."""

        self._voice_note_listeners.setdefault(user_id, []).append(listener)
        listener(self.list_voice_notes(user_id))

        def unsubscribe() -> None:
            listeners = self._voice_note_listeners.get(user_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _insert_reminder(self, cursor: sqlite3.Cursor, reminder: Reminder) -> int:
        now = self._timestamp()
        cursor.execute(
            """
            INSERT INTO reminders (
                user_id, kind, title, description, due_date, completed, priority,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                reminder.user_id,
                reminder.kind,
                reminder.title,
                reminder.description,
                reminder.due_date.isoformat(),
                int(reminder.completed),
                reminder.priority,
                now,
                now,
            ),
        )
        return int(cursor.lastrowid)

    def _insert_voice_note(self, cursor: sqlite3.Cursor, note: VoiceNote) -> int:
        cursor.execute(
            """
            INSERT INTO voice_notes (
                user_id, title, audio_url, transcript, duration, due_date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                note.user_id,
                note.title,
                note.audio_url,
                note.transcript,
                note.duration,
                note.due_date.isoformat() if note.due_date else None,
                self._timestamp(),
            ),
        )
        return int(cursor.lastrowid)

    def _notify_reminders(self, user_id: int) -> None:
        listeners = list(self._reminder_listeners.get(user_id, []))
        if not listeners:
            return
        self._deliver(listeners, self.list_reminders(user_id), "reminder")

    def _notify_voice_notes(self, user_id: int) -> None:
        listeners = list(self._voice_note_listeners.get(user_id, []))
        if not listeners:
            return
        self._deliver(listeners, self.list_voice_notes(user_id), "voice note")

    def _deliver(self, listeners: list[Callable[[Any], None]], snapshot: list[Any], kind: str) -> None:
        """Summary: Hand a post-write snapshot to every listener.

        Importance: The write is already committed, so a failing listener must not fail it or starve the others.
        Alternatives: Let listener errors propagate to the writer.
        """

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("%s listener failed; continuing with remaining listeners.", kind.capitalize())

    def _timestamp(self) -> str:
        return self._clock().isoformat()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Summary: Context manager for SQLite connections.

        Importance: Ensures connections are closed cleanly after use.
        Alternatives: Keep a single long-lived connection.
        """

        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
        finally:
            connection.close()


def _reminder_from_row(row: tuple[Any, ...]) -> StoredReminder:
    return StoredReminder(
        id=int(row[0]),
        user_id=int(row[1]),
        kind=row[2],
        title=row[3],
        description=row[4],
        due_date=row[5],
        completed=bool(row[6]),
        priority=row[7],
        created_at=row[8],
        updated_at=row[9],
    )
