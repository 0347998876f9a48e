"""Summary: Routes parsed commands to gateways, storage, and notifications.

Importance: Central request/response step between the parser and external services.
Alternatives: Let each client call gateways and storage directly.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

from assistpilot.cache import ExpiringCache
from assistpilot.location import LocationProvider
from assistpilot.models import (
    CURRENT_LOCATION,
    Clock,
    Command,
    DispatchResult,
    GatewayFailure,
    Reminder,
    VoiceNote,
)
from assistpilot.news import NewsGateway, mock_articles
from assistpilot.notifications import DEFAULT_ALERT_MINUTES, NotificationError, NotificationScheduler
from assistpilot.storage.sqlite_store import SqliteStore
from assistpilot.weather import WeatherGateway, format_weather, mock_weather_snapshot

logger = logging.getLogger(__name__)

DEFAULT_DUE_OFFSETS = {
    "reminder": timedelta(hours=24),
    "task": timedelta(hours=24),
    "note": timedelta(hours=24),
    "meeting": timedelta(hours=1),
}
COLLECTION_NAMES = {
    "reminder": "reminders",
    "meeting": "meetings",
    "task": "tasks",
    "note": "notes",
}


@dataclass(frozen=True)
class CommandDispatcher:
    """Summary: Executes one command and returns a uniform result.

    Importance: Keeps failure handling in one place so callers never see exceptions.
    Alternatives: Raise typed exceptions and let the UI catch them.
    """

    store: SqliteStore
    weather: WeatherGateway
    news: NewsGateway
    cache: ExpiringCache
    notifier: NotificationScheduler
    user_id: int
    location: LocationProvider | None = None
    offline_mode: bool = False
    alert_minutes: tuple[int, ...] = DEFAULT_ALERT_MINUTES
    news_country: str = "us"
    news_language: str = "en"
    clock: Clock = field(default=datetime.now)

    def dispatch(self, command: Command, force_refresh: bool = False) -> DispatchResult:
        """Summary: Route a command to the matching handler.

        Importance: Single entry point used by the API, CLI, and voice session.
        Alternatives: Expose one method per domain to callers.
        """

        logger.info(
            "Dispatching %s/%s (confidence %.2f).",
            command.domain,
            command.action,
            command.confidence,
        )
        if command.domain == "weather":
            return self._weather(command, force_refresh)
        if command.domain == "news":
            return self._news(command, force_refresh)
        if command.domain not in COLLECTION_NAMES:
            return DispatchResult(
                success=False,
                message="I did not understand that command. Please try again.",
                error="Unknown command type",
            )
        try:
            if command.action == "create":
                return self._create(command)
            if command.action == "get":
                return self._list(command.domain)
            if command.action == "delete":
                return self._delete(command)
        except sqlite3.Error as exc:
            logger.error("Persistence failure for %s/%s: %s", command.domain, command.action, exc)
            return DispatchResult(
                success=False,
                message="Sorry, there was an error processing your request.",
                error=str(exc),
            )
        return DispatchResult(
            success=False,
            message=f"That action is not supported for {COLLECTION_NAMES[command.domain]}.",
            error="Unsupported action",
        )

    def lookup_weather(self, location: str | None, force_refresh: bool = False) -> DispatchResult:
        """Summary: Fetch weather for a city or the current location through the cache.

        Importance: Shared by weather commands and the HTTP weather endpoint.
        Alternatives: Duplicate cache handling in each caller.
        """

        if not location or location == CURRENT_LOCATION:
            fix = self.location.current_location() if self.location else None
            if fix is None:
                return DispatchResult(
                    success=False,
                    message="I could not determine your current location.",
                    error="Location unavailable",
                )
            return self._cached_lookup(
                "weather",
                fix.cache_identifier(),
                lambda: self.weather.fetch_by_coordinates(fix.latitude, fix.longitude),
                force_refresh,
            )
        return self._cached_lookup(
            "weather", location, lambda: self.weather.fetch_by_city(location), force_refresh
        )

    def lookup_forecast(self, city: str, force_refresh: bool = False) -> DispatchResult:
        """Summary: Fetch a multi-day forecast for a city through the cache."""

        return self._cached_lookup(
            "weather", f"forecast_{city}", lambda: self.weather.fetch_forecast(city), force_refresh
        )

    def lookup_news(
        self, category: str | None = None, query: str | None = None, force_refresh: bool = False
    ) -> DispatchResult:
        """Summary: Fetch headlines or search results through the cache.

        Importance: Category requests use headlines, free-text topics use search.
        Alternatives: Always search by keyword.
        """

        if category:
            identifier = f"headlines_{category}_{self.news_country}"
            fetch = lambda: self.news.fetch_headlines(category, self.news_country)  # noqa: E731
        elif query:
            identifier = f"search_{query}_{self.news_language}"
            fetch = lambda: self.news.search(query, self.news_language)  # noqa: E731
        else:
            identifier = f"headlines_general_{self.news_country}"
            fetch = lambda: self.news.fetch_headlines(None, self.news_country)  # noqa: E731
        return self._cached_lookup("news", identifier, fetch, force_refresh)

    def _weather(self, command: Command, force_refresh: bool) -> DispatchResult:
        location = command.entities.location
        wants_forecast = "forecast" in command.text.split()
        if wants_forecast and location and location != CURRENT_LOCATION:
            return self.lookup_forecast(location, force_refresh)
        return self.lookup_weather(location, force_refresh)

    def _news(self, command: Command, force_refresh: bool) -> DispatchResult:
        entities = command.entities
        query = None
        if entities.location and entities.location != CURRENT_LOCATION:
            query = entities.location
        elif entities.title:
            query = entities.title
        return self.lookup_news(entities.category, query, force_refresh)

    def _cached_lookup(
        self,
        domain: str,
        identifier: str,
        fetch: Callable[[], Any],
        force_refresh: bool,
    ) -> DispatchResult:
        if force_refresh:
            self.cache.force_refresh(domain, identifier)
        cached = self.cache.get(domain, identifier)
        if cached is not None:
            age = self.cache.get_cache_age(domain, identifier) or timedelta(0)
            logger.info("Using cached %s data for %s.", domain, identifier)
            return DispatchResult(
                success=True,
                message=_lookup_message(domain, cached),
                data={
                    domain: cached,
                    "identifier": identifier,
                    "cached": True,
                    "cache_age_seconds": age.total_seconds(),
                },
            )
        result = fetch()
        if isinstance(result, GatewayFailure):
            return self._gateway_failure(domain, identifier, result)
        self.cache.set(domain, identifier, result)
        return DispatchResult(
            success=True,
            message=_lookup_message(domain, result),
            data={domain: result, "identifier": identifier, "cached": False, "cache_age_seconds": 0.0},
        )

    def _gateway_failure(
        self, domain: str, identifier: str, failure: GatewayFailure
    ) -> DispatchResult:
        logger.warning("%s lookup for %s failed: %s", domain, identifier, failure.message)
        if not self.offline_mode:
            return DispatchResult(
                success=False,
                message=f"Sorry, I could not get the {domain} right now.",
                error=failure.message,
            )
        payload: Any
        if domain == "weather":
            payload = mock_weather_snapshot()
        else:
            payload = mock_articles(self.clock())
        return DispatchResult(
            success=True,
            message=f"Showing offline {domain} data. {_lookup_message(domain, payload)}",
            data={domain: payload, "identifier": identifier, "cached": False, "mock": True},
            error=failure.message,
        )

    def _create(self, command: Command) -> DispatchResult:
        kind = command.domain
        entities = command.entities
        now = self.clock()
        due = entities.due_date or now + DEFAULT_DUE_OFFSETS[kind]
        title = entities.title or f"Voice {kind.title()}"
        if kind == "note":
            item_id = self.store.create_voice_note(
                VoiceNote(
                    user_id=self.user_id,
                    title=title,
                    transcript=entities.description or command.text,
                    due_date=due,
                )
            )
        else:
            description = entities.description
            if description is None and kind == "meeting":
                description = "Meeting scheduled via voice"
            item_id = self.store.create_reminder(
                Reminder(
                    user_id=self.user_id,
                    title=title,
                    due_date=due,
                    kind=kind,
                    description=description,
                    priority=entities.priority,
                )
            )
        data: dict[str, Any] = {f"{kind}_id": item_id, "due_date": due.isoformat()}
        try:
            data["notifications"] = self.notifier.schedule_with_alerts(
                alert_key(kind, item_id),
                title,
                entities.description or f"{kind.title()} due: {title}",
                due,
                self.alert_minutes,
                now=now,
            )
        except NotificationError as exc:
            logger.warning("Could not schedule alerts for %s %s: %s", kind, item_id, exc)
            data["notification_error"] = str(exc)
        verb = "scheduled" if kind == "meeting" else "created"
        return DispatchResult(
            success=True,
            message=f'{kind.title()} "{title}" {verb} successfully.',
            data=data,
        )

    def _list(self, kind: str) -> DispatchResult:
        collection = COLLECTION_NAMES[kind]
        if kind == "note":
            items: list[Any] = self.store.list_voice_notes(self.user_id)
            message = f"You have {len(items)} voice notes."
        else:
            items = self.store.list_reminders(self.user_id, kind=kind)
            if kind == "meeting":
                now = self.clock()
                items = [item for item in items if not item.completed and item.due_datetime > now]
                message = f"You have {len(items)} upcoming meetings."
            elif kind == "task":
                items = [item for item in items if not item.completed]
                message = f"You have {len(items)} pending tasks."
            else:
                message = f"You have {len(items)} reminders."
        return DispatchResult(success=True, message=message, data={collection: items})

    def _delete(self, command: Command) -> DispatchResult:
        kind = command.domain
        title = command.entities.title
        if not title:
            return DispatchResult(
                success=False,
                message=f"Please tell me which {kind} to delete.",
                error="Missing title",
            )
        if kind == "note":
            candidates: list[Any] = self.store.list_voice_notes(self.user_id)
        else:
            candidates = self.store.list_reminders(self.user_id, kind=kind)
        match = _find_by_title(candidates, title)
        if match is None:
            return DispatchResult(
                success=False,
                message=f'I could not find a {kind} called "{title}".',
                error="Not found",
            )
        if kind == "note":
            self.store.delete_voice_note(match.id)
        else:
            self.store.delete_reminder(match.id)
        cancelled = self.notifier.cancel_for(alert_key(kind, match.id))
        return DispatchResult(
            success=True,
            message=f'{kind.title()} "{match.title}" deleted.',
            data={f"{kind}_id": match.id, "cancelled_notifications": cancelled},
        )


def alert_key(kind: str, item_id: int) -> str:
    return f"note_{item_id}" if kind == "note" else f"reminder_{item_id}"


def _find_by_title(items: list[Any], title: str) -> Any | None:
    wanted = title.casefold()
    for item in items:
        if item.title.casefold() == wanted:
            return item
    for item in items:
        if wanted in item.title.casefold():
            return item
    return None


def _lookup_message(domain: str, payload: Any) -> str:
    if domain == "weather" and not isinstance(payload, list):
        return format_weather(payload)
    if domain == "weather":
        return f"Forecast has {len(payload)} entries."
    return f"Here are {len(payload)} news articles."
