"""Summary: Application configuration for AssistPilot.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for gateways, cache, and storage.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    db_path: str
    weather_api_key: str | None
    weather_base_url: str
    news_api_key: str | None
    news_base_url: str
    news_country: str
    news_language: str
    weather_ttl_seconds: int
    news_ttl_seconds: int
    cache_max_items: int
    offline_mode: bool
    default_latitude: float
    default_longitude: float
    default_city: str
    alert_minutes: list[int]
    same_weekday_policy: str
    api_host: str
    api_port: int
    api_key: str
    default_user_name: str
    default_user_email: str
    log_level: str

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            db_path=os.getenv("ASSISTPILOT_DB_PATH", defaults["db_path"]),
            weather_api_key=os.getenv("OPENWEATHER_API_KEY") or defaults["weather_api_key"] or None,
            weather_base_url=os.getenv("ASSISTPILOT_WEATHER_URL", defaults["weather_base_url"]),
            news_api_key=os.getenv("NEWSAPI_KEY") or defaults["news_api_key"] or None,
            news_base_url=os.getenv("ASSISTPILOT_NEWS_URL", defaults["news_base_url"]),
            news_country=os.getenv("ASSISTPILOT_NEWS_COUNTRY", defaults["news_country"]),
            news_language=os.getenv("ASSISTPILOT_NEWS_LANGUAGE", defaults["news_language"]),
            weather_ttl_seconds=int(
                os.getenv("ASSISTPILOT_WEATHER_TTL_SECONDS", defaults["weather_ttl_seconds"])
            ),
            news_ttl_seconds=int(
                os.getenv("ASSISTPILOT_NEWS_TTL_SECONDS", defaults["news_ttl_seconds"])
            ),
            cache_max_items=int(
                os.getenv("ASSISTPILOT_CACHE_MAX_ITEMS", defaults["cache_max_items"])
            ),
            offline_mode=parse_bool(
                os.getenv("ASSISTPILOT_OFFLINE_MODE", defaults["offline_mode"])
            ),
            default_latitude=float(
                os.getenv("ASSISTPILOT_DEFAULT_LATITUDE", defaults["default_latitude"])
            ),
            default_longitude=float(
                os.getenv("ASSISTPILOT_DEFAULT_LONGITUDE", defaults["default_longitude"])
            ),
            default_city=os.getenv("ASSISTPILOT_DEFAULT_CITY", defaults["default_city"]),
            alert_minutes=parse_int_list(
                os.getenv("ASSISTPILOT_ALERT_MINUTES", defaults["alert_minutes"])
            ),
            same_weekday_policy=os.getenv(
                "ASSISTPILOT_SAME_WEEKDAY_POLICY", defaults["same_weekday_policy"]
            ),
            api_host=os.getenv("ASSISTPILOT_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("ASSISTPILOT_API_PORT", defaults["api_port"])),
            api_key=os.getenv("ASSISTPILOT_API_KEY", defaults["api_key"]),
            default_user_name=os.getenv(
                "ASSISTPILOT_DEFAULT_USER_NAME", defaults["default_user_name"]
            ),
            default_user_email=os.getenv(
                "ASSISTPILOT_DEFAULT_USER_EMAIL", defaults["default_user_email"]
            ),
            log_level=os.getenv("ASSISTPILOT_LOG_LEVEL", defaults["log_level"]),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps API keys out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def parse_bool(value: str | bool) -> bool:
    """Summary: Interpret common truthy strings.

    Importance: Lets flags be set as 1/true/yes in the environment.
    Alternatives: Require JSON booleans only.
    """

    if isinstance(value, bool):
        return value
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_int_list(value: str | list[int]) -> list[int]:
    """Summary: Parse a comma-separated list of integers.

    Importance: Keeps alert offsets configurable from a single variable.
    Alternatives: Store offsets as a JSON array.
    """

    if isinstance(value, list):
        return [int(item) for item in value]
    return [int(item) for item in value.split(",") if item.strip()]
