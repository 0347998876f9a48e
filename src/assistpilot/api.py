"""Summary: FastAPI application for AssistPilot.

Importance: Exposes HTTP endpoints for voice clients and integrations.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from assistpilot.app import AppServices, build_services
from assistpilot.cache import CACHE_DOMAINS
from assistpilot.config import AppConfig
from assistpilot.models import REMINDER_KINDS, DispatchResult
from assistpilot.parser import NEWS_CATEGORIES


class ParseRequest(BaseModel):
    """Summary: Request payload for intent parsing.

    Importance: Lets clients inspect how an utterance is understood.
    Alternatives: Pass text as a query parameter.
    """

    text: str = Field(min_length=1)


class AskRequest(BaseModel):
    """Summary: Request payload for the parse-and-execute workflow.

    Importance: Provides the central assistant workflow over HTTP.
    Alternatives: Require clients to send structured commands.
    """

    text: str = Field(min_length=1)
    force_refresh: bool = False


class CacheRefreshRequest(BaseModel):
    """Summary: Request payload for invalidating one cache entry.

    Importance: Backs pull-to-refresh in clients.
    Alternatives: Only allow clearing the whole cache.
    """

    domain: str
    identifier: str


def create_app(config: AppConfig, services: AppServices | None = None) -> FastAPI:
    """Summary: Create a FastAPI app wired to AssistPilot services.

    Importance: Ensures the API layer shares the same configuration, cache, and storage.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=config.log_level.upper(), format="%(levelname)s %(name)s: %(message)s"
        )
    app = FastAPI(title="AssistPilot API", version="0.1.0")
    services = services or build_services(config)

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Adds a minimal security layer for local and private deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    def _lookup_payload(result: DispatchResult) -> dict[str, Any]:
        if not result.success:
            raise HTTPException(status_code=502, detail=result.error or result.message)
        return jsonable_encoder(result.as_dict())

    def _check_domain(domain: str) -> None:
        if domain not in CACHE_DOMAINS:
            raise HTTPException(status_code=400, detail=f"Unknown cache domain: {domain}")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Summary: Health check endpoint.

        Importance: Supports uptime checks in local and cloud deployments.
        Alternatives: Use a metrics endpoint only.
        """

        return {"status": "ok"}

    @app.post("/parse", dependencies=[Depends(require_api_key)])
    def parse(payload: ParseRequest) -> dict[str, Any]:
        """Summary: Parse an utterance without executing it."""

        return services.assistant.parse(payload.text).as_dict()

    @app.post("/ask", dependencies=[Depends(require_api_key)])
    def ask(payload: AskRequest) -> dict[str, Any]:
        """Summary: Parse an utterance and execute it.

        Importance: Single endpoint for voice and chat clients.
        Alternatives: Expose one endpoint per command domain.
        """

        command, result = services.assistant.ask(payload.text, force_refresh=payload.force_refresh)
        return {"command": command.as_dict(), "result": jsonable_encoder(result.as_dict())}

    @app.get("/weather", dependencies=[Depends(require_api_key)])
    def weather(city: str | None = None, force_refresh: bool = False) -> dict[str, Any]:
        """Summary: Current weather for a city, or the configured location when omitted."""

        return _lookup_payload(services.dispatcher.lookup_weather(city, force_refresh=force_refresh))

    @app.get("/weather/forecast", dependencies=[Depends(require_api_key)])
    def forecast(city: str, force_refresh: bool = False) -> dict[str, Any]:
        return _lookup_payload(services.dispatcher.lookup_forecast(city, force_refresh=force_refresh))

    @app.get("/news", dependencies=[Depends(require_api_key)])
    def news(
        category: str | None = None, q: str | None = None, force_refresh: bool = False
    ) -> dict[str, Any]:
        """Summary: Headlines for a category, or search results for a query.

        Importance: Shares the cache with voice news requests.
        Alternatives: Proxy the news API without caching.
        """

        if category is not None and category not in {name for name, _ in NEWS_CATEGORIES}:
            raise HTTPException(status_code=400, detail=f"Unknown news category: {category}")
        return _lookup_payload(
            services.dispatcher.lookup_news(category, q, force_refresh=force_refresh)
        )

    @app.get("/reminders", dependencies=[Depends(require_api_key)])
    def list_reminders(kind: str | None = None) -> list[dict[str, Any]]:
        """Summary: List reminders, meetings, and tasks ordered by due date."""

        if kind is not None and kind not in REMINDER_KINDS:
            raise HTTPException(status_code=400, detail=f"Unknown reminder kind: {kind}")
        return services.reminders.list_items(kind)

    @app.post("/reminders/{reminder_id}/complete", dependencies=[Depends(require_api_key)])
    def complete_reminder(reminder_id: int) -> dict[str, Any]:
        """Summary: Mark a reminder completed and cancel its alerts."""

        if not services.reminders.complete(reminder_id):
            raise HTTPException(status_code=404, detail="Reminder not found")
        return {"id": reminder_id, "completed": True}

    @app.delete("/reminders/{reminder_id}", dependencies=[Depends(require_api_key)])
    def delete_reminder(reminder_id: int) -> dict[str, Any]:
        if not services.reminders.delete(reminder_id):
            raise HTTPException(status_code=404, detail="Reminder not found")
        return {"id": reminder_id, "deleted": True}

    @app.get("/notes", dependencies=[Depends(require_api_key)])
    def list_notes() -> list[dict[str, Any]]:
        """Summary: List voice notes, newest first."""

        return [note.as_dict() for note in services.store.list_voice_notes(services.user_id)]

    @app.get("/notifications", dependencies=[Depends(require_api_key)])
    def list_notifications() -> list[dict[str, Any]]:
        """Summary: List pending alerts ordered by fire time.

        Importance: Lets clients show which alerts are armed.
        Alternatives: Query the platform scheduler directly.
        """

        return [
            {
                "id": item.id,
                "title": item.title,
                "body": item.body,
                "fire_at": item.fire_at.isoformat(),
                "data": item.data,
            }
            for item in services.notifier.pending()
        ]

    @app.get("/cache/stats", dependencies=[Depends(require_api_key)])
    def cache_stats() -> dict[str, Any]:
        return services.cache.stats()

    @app.get("/cache/{domain}/{identifier}", dependencies=[Depends(require_api_key)])
    def cache_entry(domain: str, identifier: str) -> dict[str, Any]:
        """Summary: Inspect a single cache entry with its age and remaining lifetime.

        Importance: Helps diagnose stale weather or news replies.
        Alternatives: Log cache hits only.
        """

        _check_domain(domain)
        value = services.cache.get(domain, identifier)
        if value is None:
            raise HTTPException(status_code=404, detail="Cache entry not found")
        age = services.cache.get_cache_age(domain, identifier)
        remaining = services.cache.get_time_until_expiration(domain, identifier)
        return {
            "domain": domain,
            "identifier": identifier,
            "age_seconds": age.total_seconds() if age else 0.0,
            "expires_in_seconds": remaining.total_seconds() if remaining else 0.0,
            "value": jsonable_encoder(value),
        }

    @app.post("/cache/refresh", dependencies=[Depends(require_api_key)])
    def cache_refresh(payload: CacheRefreshRequest) -> dict[str, Any]:
        _check_domain(payload.domain)
        services.cache.force_refresh(payload.domain, payload.identifier)
        return {"domain": payload.domain, "identifier": payload.identifier, "refreshed": True}

    @app.delete("/cache", dependencies=[Depends(require_api_key)])
    def cache_clear() -> dict[str, Any]:
        services.cache.clear()
        return {"cleared": True}

    return app
