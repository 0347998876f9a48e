"""Summary: Domain model dataclasses for AssistPilot.

Importance: Defines the core entities shared across parsing, dispatch, and storage.
Alternatives: Use Pydantic models or ORM classes directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

Clock = Callable[[], datetime]

DOMAINS = ("reminder", "meeting", "task", "note", "weather", "news", "unknown")
ACTIONS = ("create", "get", "update", "delete")
PRIORITIES = ("low", "medium", "high")
REMINDER_KINDS = ("reminder", "meeting", "task")
CURRENT_LOCATION = "current location"


@dataclass(frozen=True)
class CommandEntities:
    """Summary: Slots extracted from a single utterance.

    Importance: Carries the details needed to build persistence payloads and lookups.
    Alternatives: Pass a free-form dict of extracted values.
    """

    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    priority: str = "medium"
    location: str | None = None
    category: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Summary: Render the entities as a JSON-friendly dict.

        Importance: Lets the API and CLI echo parse results.
        Alternatives: Serialize with dataclasses.asdict and a custom encoder.
        """

        payload: dict[str, Any] = {"priority": self.priority}
        for name in ("title", "description", "location", "category"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.due_date is not None:
            payload["due_date"] = self.due_date.isoformat()
        return payload


@dataclass(frozen=True)
class Command:
    """Summary: Structured representation of one user utterance.

    Importance: Single hand-off object between the parser and the dispatcher.
    Alternatives: Dispatch directly on raw text with ad-hoc checks.
    """

    domain: str
    action: str
    entities: CommandEntities
    confidence: float
    text: str = ""
    domain_ties: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        """Summary: Render the command as a JSON-friendly dict.

        Importance: Supports debugging parse output over HTTP and CLI.
        Alternatives: Return the dataclass and let callers serialize it.
        """

        return {
            "domain": self.domain,
            "action": self.action,
            "entities": self.entities.as_dict(),
            "confidence": round(self.confidence, 2),
            "text": self.text,
            "domain_ties": list(self.domain_ties),
        }


@dataclass(frozen=True)
class User:
    """Summary: Represents an assistant user.

    Importance: Owns reminders and voice notes in storage.
    Alternatives: Keep a single implicit user.
    """

    display_name: str
    email: str


@dataclass(frozen=True)
class Reminder:
    """Summary: Creation payload for a reminder, meeting, or task.

    Importance: Describes time-bound items that also drive notifications.
    Alternatives: Keep separate tables per item kind.
    """

    user_id: int
    title: str
    due_date: datetime
    kind: str = "reminder"
    description: str | None = None
    completed: bool = False
    priority: str = "medium"


@dataclass(frozen=True)
class VoiceNote:
    """Summary: Creation payload for a voice note.

    Importance: Captures dictated notes and their transcripts.
    Alternatives: Store notes as reminders without a due date.
    """

    user_id: int
    title: str
    audio_url: str = ""
    transcript: str | None = None
    duration: int = 0
    due_date: datetime | None = None


@dataclass(frozen=True)
class WeatherSnapshot:
    """Summary: Current weather conditions for one place.

    Importance: Normalized shape returned by every weather gateway.
    Alternatives: Pass the raw provider JSON to callers.
    """

    temperature: int
    description: str
    humidity: int
    wind_speed: int
    city: str
    country: str
    icon: str
    feels_like: int
    pressure: int
    visibility: float


@dataclass(frozen=True)
class NewsArticle:
    """Summary: A single news article.

    Importance: Normalized shape returned by every news gateway.
    Alternatives: Pass the raw provider JSON to callers.
    """

    title: str
    description: str
    url: str
    url_to_image: str | None
    published_at: str
    source_name: str
    content: str | None = None


@dataclass(frozen=True)
class GatewayFailure:
    """Summary: Failure variant returned by external gateways.

    Importance: Keeps network and payload errors out of the exception path.
    Alternatives: Raise provider exceptions and catch them in the dispatcher.
    """

    message: str
    status_code: int | None = None


@dataclass(frozen=True)
class DispatchResult:
    """Summary: Uniform outcome of dispatching a command.

    Importance: Callers branch on success instead of catching exceptions.
    Alternatives: Raise typed exceptions per failure path.
    """

    success: bool
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Summary: Render the result as a dict.

        Importance: Keeps the HTTP layer free of result-specific logic.
        Alternatives: Define a parallel Pydantic response model.
        """

        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "error": self.error,
        }


@dataclass(frozen=True)
class ScheduledNotification:
    """Summary: A pending time-triggered local notification.

    Importance: Lets callers inspect and cancel upcoming alerts.
    Alternatives: Track only notification identifiers.
    """

    id: str
    title: str
    body: str
    fire_at: datetime
    data: dict[str, str] = field(default_factory=dict)
