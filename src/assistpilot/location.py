"""Summary: Device location providers.

Importance: Resolves "weather here" requests to coordinates.
Alternatives: Require users to name a city every time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta

from assistpilot.models import Clock


@dataclass(frozen=True)
class LocationFix:
    """Summary: A resolved coordinate pair with an optional place name.

    Importance: Feeds coordinate-based weather lookups.
    Alternatives: Pass bare (lat, lon) tuples.
    """

    latitude: float
    longitude: float
    city: str | None = None
    country: str | None = None

    def cache_identifier(self) -> str:
        """Summary: Build a stable cache identifier from rounded coordinates.

        Importance: Nearby fixes share one cached weather entry.
        Alternatives: Key by reverse-geocoded city name.
        """

        return f"{self.latitude:.2f},{self.longitude:.2f}"


class LocationProvider(ABC):
    """Summary: Abstract interface for current-location lookups.

    Importance: Keeps platform geolocation outside the core.
    Alternatives: Read coordinates from configuration only.
    """

    @abstractmethod
    def current_location(self) -> LocationFix | None:
        """Summary: Return the current location, or None when unavailable."""


class StaticLocationProvider(LocationProvider):
    """Summary: Location provider that reports a configured position.

    Importance: Serves headless deployments without GPS.
    Alternatives: Geolocate by IP address.
    """

    def __init__(
        self,
        fix: LocationFix,
        clock: Clock = datetime.now,
        validity: timedelta = timedelta(minutes=5),
    ) -> None:
        self._fix = fix
        self._clock = clock
        self._validity = validity
        self._cached: LocationFix | None = None
        self._cached_at: datetime | None = None

    def current_location(self) -> LocationFix | None:
        """Summary: Return the last fix while it is fresh, otherwise locate again.

        Importance: Device-backed subclasses override `_locate`, which can be slow,
        and reuse a fix for the validity window.
        Alternatives: Locate on every request.
        """

        now = self._clock()
        if self._cached is not None and self._cached_at is not None:
            if now - self._cached_at < self._validity:
                return self._cached
        fix = self._locate()
        if fix is not None:
            self._cached = fix
            self._cached_at = now
        return fix

    def _locate(self) -> LocationFix | None:
        return self._fix
