"""Summary: Local notification scheduling.

Importance: Turns reminder due dates into time-triggered alerts.
Alternatives: Delegate scheduling to a platform notification SDK.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Iterable

from assistpilot.models import Clock, ScheduledNotification

logger = logging.getLogger(__name__)

DEFAULT_ALERT_MINUTES = (15, 5, 0)
SNOOZE_MINUTES = 10


class NotificationError(RuntimeError):
    """Summary: Raised when a notification cannot be scheduled.

    Importance: Lets callers keep a saved reminder while reporting the alert failure.
    Alternatives: Return None from schedule calls.
    """


class NotificationScheduler(ABC):
    """Summary: Abstract interface for one-shot local notifications.

    Importance: Keeps delivery mechanics outside the core.
    Alternatives: Call a vendor SDK from the dispatcher.
    """

    @abstractmethod
    def schedule(
        self,
        notification_id: str | None,
        title: str,
        body: str,
        fire_at: datetime,
        data: dict[str, str] | None = None,
    ) -> str:
        """Summary: Schedule a notification and return its identifier."""

    @abstractmethod
    def cancel(self, notification_id: str) -> bool:
        """Summary: Cancel a pending notification."""

    @abstractmethod
    def pending(self) -> list[ScheduledNotification]:
        """Summary: List pending notifications ordered by fire time."""

    def schedule_with_alerts(
        self,
        reminder_id: str,
        title: str,
        body: str,
        due: datetime,
        alert_minutes: Iterable[int] | None = None,
        now: datetime | None = None,
    ) -> list[str]:
        """Summary: Schedule alerts at several offsets before a due time.

        Importance: Gives users lead time (15/5/0 minutes by default) before an item is due.
        Alternatives: Schedule a single alert at the due time.
        """

        offsets = list(alert_minutes) if alert_minutes is not None else list(DEFAULT_ALERT_MINUTES)
        reference = now or datetime.now()
        scheduled: list[str] = []
        for minutes_before in offsets:
            fire_at = due - timedelta(minutes=minutes_before)
            if fire_at <= reference:
                continue
            if minutes_before == 0:
                alert_title, alert_body = title, body
            else:
                alert_title = f"Reminder in {minutes_before} minutes"
                alert_body = f"{title} is coming up in {minutes_before} minutes"
            scheduled.append(
                self.schedule(
                    f"{reminder_id}_alert_{minutes_before}",
                    alert_title,
                    alert_body,
                    fire_at,
                    data={"reminder_id": reminder_id, "title": title, "body": body},
                )
            )
        if not scheduled:
            raise NotificationError(f"Due time {due.isoformat()} leaves no alert in the future")
        logger.info("Scheduled %s alerts for reminder %s.", len(scheduled), reminder_id)
        return scheduled

    def cancel_for(self, reminder_id: str) -> int:
        """Summary: Cancel every pending alert linked to a reminder.

        Importance: Keeps alerts in sync when reminders are deleted.
        Alternatives: Track alert identifiers on the reminder record.
        """

        matching = [
            item.id
            for item in self.pending()
            if item.data.get("reminder_id") == reminder_id or item.id.startswith(f"{reminder_id}_")
        ]
        for notification_id in matching:
            self.cancel(notification_id)
        return len(matching)

    def status_for(self, reminder_id: str) -> dict[str, Any]:
        """Summary: Report pending alerts for a reminder.

        Importance: Lets clients show whether alerts are armed.
        Alternatives: Query the platform scheduler directly.
        """

        matching = [
            item
            for item in self.pending()
            if item.data.get("reminder_id") == reminder_id or item.id.startswith(f"{reminder_id}_")
        ]
        return {"scheduled": len(matching), "pending": matching}


class InMemoryNotificationScheduler(NotificationScheduler):
    """Summary: Process-local notification scheduler.

    Importance: Backs tests, the CLI, and headless deployments.
    Alternatives: Persist schedules in SQLite or a job queue.
    """

    def __init__(self, clock: Clock = datetime.now) -> None:
        self._clock = clock
        self._pending: dict[str, ScheduledNotification] = {}

    def schedule(
        self,
        notification_id: str | None,
        title: str,
        body: str,
        fire_at: datetime,
        data: dict[str, str] | None = None,
    ) -> str:
        """Summary: Register a notification to fire at a future time.

        Importance: Rejects past timestamps so stale alerts never fire.
        Alternatives: Fire past-due notifications immediately.
        """

        now = self._clock()
        if fire_at <= now:
            raise NotificationError(f"Cannot schedule notification in the past: {fire_at.isoformat()}")
        identifier = notification_id or f"reminder_{int(now.timestamp() * 1000)}"
        self._pending[identifier] = ScheduledNotification(
            id=identifier,
            title=title,
            body=body,
            fire_at=fire_at,
            data=dict(data or {}),
        )
        logger.debug("Notification %s scheduled for %s.", identifier, fire_at.isoformat())
        return identifier

    def schedule_with_alerts(
        self,
        reminder_id: str,
        title: str,
        body: str,
        due: datetime,
        alert_minutes: Iterable[int] | None = None,
        now: datetime | None = None,
    ) -> list[str]:
        return super().schedule_with_alerts(
            reminder_id, title, body, due, alert_minutes, now=now or self._clock()
        )

    def cancel(self, notification_id: str) -> bool:
        removed = self._pending.pop(notification_id, None) is not None
        if removed:
            logger.info("Notification cancelled: %s", notification_id)
        return removed

    def cancel_all(self) -> None:
        self._pending.clear()

    def pending(self) -> list[ScheduledNotification]:
        return sorted(self._pending.values(), key=lambda item: item.fire_at)

    def snooze(self, notification_id: str, minutes: int = SNOOZE_MINUTES) -> str:
        """Summary: Cancel a notification and reschedule it later.

        Importance: Backs the snooze action on delivered alerts.
        Alternatives: Let users create a new reminder instead.
        """

        original = self._pending.pop(notification_id, None)
        if original is None:
            raise NotificationError(f"Unknown notification: {notification_id}")
        reminder_id = original.data.get("reminder_id", notification_id)
        return self.schedule(
            f"{reminder_id}_snoozed",
            original.data.get("title", "Snoozed Reminder"),
            original.data.get("body", "Your snoozed reminder is due now!"),
            self._clock() + timedelta(minutes=minutes),
            data=original.data,
        )

    def pop_due(self, now: datetime | None = None) -> list[ScheduledNotification]:
        """Summary: Remove and return notifications whose fire time has passed.

        Importance: Lets a polling loop deliver alerts.
        Alternatives: Run a timer per notification.
        """

        reference = now or self._clock()
        due = [item for item in self.pending() if item.fire_at <= reference]
        for item in due:
            del self._pending[item.id]
        return due
