"""Summary: News gateway interfaces and implementations.

Importance: Encapsulates headline and search lookups behind a tagged result type.
Alternatives: Call the news REST API directly from the dispatcher.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any

from assistpilot.models import Clock, GatewayFailure, NewsArticle
from assistpilot.transport import GatewayError, build_url, fetch_json

logger = logging.getLogger(__name__)

NewsResult = list[NewsArticle] | GatewayFailure

REMOVED_SENTINEL = "[Removed]"
MAX_ARTICLES = 10
CATEGORY_EMOJI = {
    "general": "📰",
    "business": "💼",
    "technology": "💻",
    "entertainment": "🎬",
    "health": "🏥",
    "science": "🔬",
    "sports": "⚽",
}


class NewsGateway(ABC):
    """Summary: Abstract interface for news lookups.

    Importance: Lets the dispatcher work against real and fake providers alike.
    Alternatives: Couple lookups to a single news API.
    """

    @abstractmethod
    def fetch_headlines(self, category: str | None = None, country: str | None = None) -> NewsResult:
        """Summary: Fetch top headlines, optionally for a category."""

    @abstractmethod
    def search(self, query: str, language: str = "en") -> NewsResult:
        """Summary: Search articles by keyword."""


class NewsApiGateway(NewsGateway):
    """Summary: News gateway backed by the NewsAPI REST service.

    Importance: Provides live headlines and keyword search.
    Alternatives: Aggregate RSS feeds.
    """

    def __init__(
        self, api_key: str | None, base_url: str, country: str = "us", timeout: float = 10
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._country = country
        self._timeout = timeout

    def fetch_headlines(self, category: str | None = None, country: str | None = None) -> NewsResult:
        """Summary: Fetch top headlines for a country and optional category.

        Importance: Backs "latest news" and "tech news" requests.
        Alternatives: Always search by keyword.
        """

        params: dict[str, Any] = {"country": country or self._country}
        if category and category != "general":
            params["category"] = category
        return self._articles("top-headlines", params)

    def search(self, query: str, language: str = "en") -> NewsResult:
        """Summary: Search all articles for a keyword, newest first.

        Importance: Backs "news about <topic>" requests.
        Alternatives: Filter headlines client-side.
        """

        return self._articles(
            "everything", {"q": query, "language": language, "sortBy": "publishedAt"}
        )

    def _articles(self, path: str, params: dict[str, Any]) -> NewsResult:
        if not self._api_key:
            return GatewayFailure("News API key is not configured")
        url = build_url(self._base_url, path, {**params, "apiKey": self._api_key})
        try:
            data = fetch_json(url, timeout=self._timeout)
        except GatewayError as exc:
            if exc.status_code == 429:
                logger.warning("News API rate limit exceeded")
                return GatewayFailure("News API rate limit exceeded", status_code=429)
            logger.error("News request failed: %s", exc)
            return GatewayFailure(f"News API error: {exc}", status_code=exc.status_code)
        return parse_articles(data)


class MockNewsGateway(NewsGateway):
    """Summary: Deterministic news gateway for demos and tests.

    Importance: Enables offline workflows and repeatable tests.
    Alternatives: Record and replay real API responses.
    """

    def __init__(self, clock: Clock = datetime.now) -> None:
        self._clock = clock

    def fetch_headlines(self, category: str | None = None, country: str | None = None) -> NewsResult:
        return mock_articles(self._clock())

    def search(self, query: str, language: str = "en") -> NewsResult:
        return mock_articles(self._clock())


def parse_articles(data: dict[str, Any]) -> NewsResult:
    """Summary: Normalize a NewsAPI payload into articles.

    Importance: Drops removed entries and keeps the first ten usable articles.
    Alternatives: Return every article unfiltered.
    """

    raw_articles = data.get("articles")
    if raw_articles is None:
        raw_articles = []
    if not isinstance(raw_articles, list):
        return GatewayFailure("Malformed news payload")
    articles: list[NewsArticle] = []
    for item in raw_articles:
        if not isinstance(item, dict):
            continue
        title = item.get("title")
        description = item.get("description")
        if not title or title == REMOVED_SENTINEL or description == REMOVED_SENTINEL:
            continue
        articles.append(
            NewsArticle(
                title=title,
                description=description or "",
                url=item.get("url") or "",
                url_to_image=item.get("urlToImage"),
                published_at=item.get("publishedAt") or "",
                source_name=_source_name(item.get("source")),
                content=item.get("content"),
            )
        )
        if len(articles) == MAX_ARTICLES:
            break
    return articles


def _source_name(source: Any) -> str:
    if isinstance(source, dict):
        return source.get("name") or "Unknown"
    return "Unknown"


def mock_articles(now: datetime) -> list[NewsArticle]:
    """Summary: Return the fixed demo article list.

    Importance: Backs offline mode when the live API is unreachable.
    Alternatives: Return no data while offline.
    """

    samples = [
        ("AI Technology Advances in Healthcare",
         "New developments in artificial intelligence are revolutionizing medical diagnosis and treatment.",
         "ai-healthcare", "Tech News", 0),
        ("Global Climate Summit Reaches New Agreement",
         "World leaders have agreed on new measures to combat climate change.",
         "climate-summit", "World News", 2),
        ("SpaceX Launches New Satellite Constellation",
         "SpaceX successfully launches another batch of Starlink satellites.",
         "spacex-launch", "Space News", 4),
        ("New Electric Vehicle Battery Breakthrough",
         "Scientists develop battery technology that charges in minutes.",
         "ev-battery", "Science Daily", 6),
        ("Major Tech Company Announces New AI Assistant",
         "Leading technology company unveils next-generation AI assistant.",
         "ai-assistant", "Tech Insider", 8),
    ]
    return [
        NewsArticle(
            title=title,
            description=description,
            url=f"https://example.com/{slug}",
            url_to_image=f"https://example.com/{slug}.jpg",
            published_at=(now - timedelta(hours=hours)).isoformat(),
            source_name=source,
            content=description,
        )
        for title, description, slug, source, hours in samples
    ]


def format_published(published_at: str, now: datetime | None = None) -> str:
    """Summary: Render a publish timestamp as a relative age.

    Importance: Keeps headline summaries short.
    Alternatives: Show absolute timestamps.
    """

    try:
        published = datetime.fromisoformat(published_at.replace("Z", "+00:00"))
    except ValueError:
        return published_at
    if published.tzinfo is not None:
        reference = now.astimezone(timezone.utc) if now else datetime.now(timezone.utc)
        published = published.astimezone(timezone.utc)
    else:
        reference = now or datetime.now()
    hours = int((reference - published).total_seconds() // 3600)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def format_news_summary(articles: list[NewsArticle], count: int = 5, now: datetime | None = None) -> str:
    """Summary: Render a numbered headline list.

    Importance: Used for chat and CLI replies.
    Alternatives: Let clients render article lists.
    """

    if not articles:
        return "No news available at the moment."
    lines = ["Latest News Headlines:", ""]
    for index, article in enumerate(articles[:count], start=1):
        title = re.sub(r"\[.*?\]", "", article.title).strip()
        lines.append(f"{index}. {title}")
        lines.append(f"   {article.source_name} • {format_published(article.published_at, now)}")
    return "\n".join(lines)


def category_emoji(category: str) -> str:
    return CATEGORY_EMOJI.get(category, "📰")
