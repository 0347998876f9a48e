"""Summary: User-facing assistant services built on the parser and dispatcher.

Importance: Gives the CLI and API one path from free text to a result.
Alternatives: Let each entry point parse and dispatch on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from assistpilot.dispatcher import CommandDispatcher, alert_key
from assistpilot.models import Command, DispatchResult
from assistpilot.notifications import NotificationScheduler
from assistpilot.parser import IntentParser
from assistpilot.storage.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssistantService:
    """Summary: Parses utterances and executes them.

    Importance: Central ask workflow shared by every client.
    Alternatives: Expose the parser and dispatcher separately.
    """

    parser: IntentParser
    dispatcher: CommandDispatcher

    def parse(self, text: str) -> Command:
        return self.parser.parse(text)

    def ask(self, text: str, force_refresh: bool = False) -> tuple[Command, DispatchResult]:
        """Summary: Parse free text and dispatch the resulting command.

        Importance: Backs the ask endpoint, the CLI, and voice replay.
        Alternatives: Require clients to send structured commands.
        """

        command = self.parser.parse(text)
        result = self.dispatcher.dispatch(command, force_refresh=force_refresh)
        logger.info("Handled %r as %s/%s: success=%s", text, command.domain, command.action, result.success)
        return command, result


@dataclass(frozen=True)
class ReminderService:
    """Summary: Reminder housekeeping that keeps alerts in sync with storage.

    Importance: Completing or deleting a reminder must also silence its alerts.
    Alternatives: Let alerts fire for finished items.
    """

    store: SqliteStore
    notifier: NotificationScheduler
    user_id: int

    def list_items(self, kind: str | None = None) -> list[dict[str, Any]]:
        return [item.as_dict() for item in self.store.list_reminders(self.user_id, kind=kind)]

    def complete(self, reminder_id: int) -> bool:
        """Summary: Mark a reminder completed and cancel its pending alerts.

        Importance: Backs the completion action on reminder lists.
        Alternatives: Delete completed reminders outright.
        """

        reminder = self.store.get_reminder(reminder_id)
        if reminder is None or reminder.user_id != self.user_id:
            return False
        self.store.update_reminder(reminder_id, completed=True)
        self.notifier.cancel_for(alert_key(reminder.kind, reminder_id))
        return True

    def delete(self, reminder_id: int) -> bool:
        reminder = self.store.get_reminder(reminder_id)
        if reminder is None or reminder.user_id != self.user_id:
            return False
        self.store.delete_reminder(reminder_id)
        self.notifier.cancel_for(alert_key(reminder.kind, reminder_id))
        return True
