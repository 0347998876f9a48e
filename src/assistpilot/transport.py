"""Summary: Minimal JSON-over-HTTP helper for REST gateways.

Importance: Keeps weather and news clients free of transport boilerplate.
Alternatives: Use requests or httpx sessions.
"""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any


class GatewayError(RuntimeError):
    """Summary: Raised when a REST call fails or returns an unusable body.

    Importance: Gives gateways one exception type to convert into failures.
    Alternatives: Let urllib exceptions leak to gateway callers.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def build_url(base_url: str, path: str, params: dict[str, Any]) -> str:
    """Summary: Join a base URL, path, and encoded query parameters.

    Importance: Ensures user-provided cities and queries are escaped.
    Alternatives: Format URLs by hand.
    """

    query = urllib.parse.urlencode(
        {key: value for key, value in params.items() if value not in (None, "")}
    )
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}?{query}"


def fetch_json(url: str, timeout: float = 10) -> dict[str, Any]:
    """Summary: GET a URL and decode its JSON body.

    Importance: Normalizes HTTP, network, and decoding errors into GatewayError.
    Alternatives: Return the raw response and let callers decode it.
    """

    request = urllib.request.Request(
        url,
        headers={"Accept": "application/json", "User-Agent": "assistpilot"},
        method="GET",
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            body = response.read()
    except urllib.error.HTTPError as exc:
        raise GatewayError(f"HTTP {exc.code}: {exc.reason}", status_code=exc.code) from exc
    except (OSError, http.client.HTTPException) as exc:
        raise GatewayError(f"Network error: {exc}") from exc
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise GatewayError("Malformed JSON payload") from exc
    if not isinstance(payload, dict):
        raise GatewayError("Unexpected JSON payload shape")
    return payload
