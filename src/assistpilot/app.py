"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for the CLI and API layers.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from assistpilot.cache import CacheConfig, ExpiringCache
from assistpilot.config import AppConfig
from assistpilot.dispatcher import CommandDispatcher
from assistpilot.location import LocationFix, LocationProvider, StaticLocationProvider
from assistpilot.models import Clock, User
from assistpilot.news import NewsApiGateway, NewsGateway
from assistpilot.notifications import InMemoryNotificationScheduler, NotificationScheduler
from assistpilot.parser import IntentParser
from assistpilot.services import AssistantService, ReminderService
from assistpilot.storage.sqlite_store import SqliteStore
from assistpilot.weather import OpenWeatherGateway, WeatherGateway


@dataclass(frozen=True)
class AppContext:
    """Summary: Shared application context for building user services.

    Importance: Reuses storage, gateways, and the cache across user sessions.
    Alternatives: Rebuild dependencies for every request.
    """

    store: SqliteStore
    weather: WeatherGateway
    news: NewsGateway
    cache: ExpiringCache
    notifier: NotificationScheduler
    location: LocationProvider
    config: AppConfig
    clock: Clock

    def services_for_user(self, user_id: int) -> "AppServices":
        """Summary: Build user-scoped services from shared context.

        Importance: Keeps reminders and notes bound to one user.
        Alternatives: Pass user ids through every call.
        """

        parser = IntentParser(clock=self.clock, same_weekday_policy=self.config.same_weekday_policy)
        dispatcher = CommandDispatcher(
            store=self.store,
            weather=self.weather,
            news=self.news,
            cache=self.cache,
            notifier=self.notifier,
            user_id=user_id,
            location=self.location,
            offline_mode=self.config.offline_mode,
            alert_minutes=tuple(self.config.alert_minutes),
            news_country=self.config.news_country,
            news_language=self.config.news_language,
            clock=self.clock,
        )
        return AppServices(
            assistant=AssistantService(parser=parser, dispatcher=dispatcher),
            reminders=ReminderService(store=self.store, notifier=self.notifier, user_id=user_id),
            parser=parser,
            dispatcher=dispatcher,
            cache=self.cache,
            notifier=self.notifier,
            store=self.store,
            user_id=user_id,
        )


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for AssistPilot.

    Importance: Simplifies passing dependencies to UI or API layers.
    Alternatives: Use a dependency injection container.
    """

    assistant: AssistantService
    reminders: ReminderService
    parser: IntentParser
    dispatcher: CommandDispatcher
    cache: ExpiringCache
    notifier: NotificationScheduler
    store: SqliteStore
    user_id: int


def build_context(
    config: AppConfig,
    weather: WeatherGateway | None = None,
    news: NewsGateway | None = None,
    clock: Clock = datetime.now,
) -> AppContext:
    """Summary: Build shared context from configuration.

    Importance: Gateways can be swapped for fakes in tests and demos.
    Alternatives: Construct dependencies separately per request.
    """

    store = SqliteStore(config.db_path, clock=clock)
    store.initialize()
    cache = ExpiringCache(
        CacheConfig(
            weather_ttl=timedelta(seconds=config.weather_ttl_seconds),
            news_ttl=timedelta(seconds=config.news_ttl_seconds),
            max_items=config.cache_max_items,
        ),
        clock=clock,
    )
    location = StaticLocationProvider(
        LocationFix(
            latitude=config.default_latitude,
            longitude=config.default_longitude,
            city=config.default_city,
        ),
        clock=clock,
    )
    return AppContext(
        store=store,
        weather=weather or OpenWeatherGateway(config.weather_api_key, config.weather_base_url),
        news=news or NewsApiGateway(config.news_api_key, config.news_base_url, config.news_country),
        cache=cache,
        notifier=InMemoryNotificationScheduler(clock=clock),
        location=location,
        config=config,
        clock=clock,
    )


def build_services(
    config: AppConfig,
    weather: WeatherGateway | None = None,
    news: NewsGateway | None = None,
    clock: Clock = datetime.now,
) -> AppServices:
    """Summary: Build core services for the default user.

    Importance: Provides a single construction path for the application.
    Alternatives: Instantiate services directly within the CLI entrypoint.
    """

    context = build_context(config, weather=weather, news=news, clock=clock)
    user = User(display_name=config.default_user_name, email=config.default_user_email)
    user_id = context.store.ensure_user(user)
    return context.services_for_user(user_id)
