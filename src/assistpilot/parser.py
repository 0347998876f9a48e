"""Summary: Rule-based intent parser for assistant utterances.

Importance: Turns free text into structured commands without network calls.
Alternatives: Use an LLM or a trained intent classifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from assistpilot.models import CURRENT_LOCATION, Clock, Command, CommandEntities

BASE_CONFIDENCE = 0.5
ACTION_WEIGHT = 0.2
DOMAIN_WEIGHT = 0.3
TITLE_WEIGHT = 0.2
DATE_WEIGHT = 0.2

ACTION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("create", ("create", "add", "set", "make", "new")),
    ("get", ("get", "show", "find", "list", "what")),
    ("update", ("update", "change", "modify", "edit")),
    ("delete", ("delete", "remove", "cancel", "clear")),
)

DOMAIN_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("reminder", ("reminder", "remind")),
    ("meeting", ("meeting", "appointment")),
    ("task", ("task", "todo")),
    ("note", ("note", "memo")),
    ("weather", ("weather", "temperature", "forecast")),
    ("news", ("news", "headlines", "latest")),
)

HIGH_PRIORITY = ("urgent", "important", "high priority", "critical")
LOW_PRIORITY = ("low priority", "not urgent")
HERE_PHRASES = ("my location", "current location", "here")

NEWS_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("business", ("business", "finance")),
    ("technology", ("technology", "tech")),
    ("entertainment", ("entertainment",)),
    ("health", ("health",)),
    ("science", ("science",)),
    ("sports", ("sports", "sport")),
    ("general", ("general",)),
)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
WEEKDAY_POLICIES = ("next_week", "same_day")

_TIME_WORDS = (
    r"(?:on|at|by|in|today|tomorrow|tonight|next|this|every|"
    + "|".join(WEEKDAYS)
    + r"|\d{1,2}(?::\d{2})?\s*(?:am|pm)?)"
)
_DESCRIPTION_MARKERS = r"(?:saying|that says|with description)"
_TITLE_PATTERN = re.compile(
    rf"\b(?:for|about|regarding)\s+(.+?)(?=\s+{_TIME_WORDS}\b|\s+{_DESCRIPTION_MARKERS}\b|$)"
)
_LOCATION_PATTERN = re.compile(rf"\b(?:in|at|for|from)\s+(.+?)(?=\s+{_TIME_WORDS}\b|$)")
_DESCRIPTION_PATTERN = re.compile(rf"\b{_DESCRIPTION_MARKERS}\s+(.+)$")
_CLOCK_PATTERN = re.compile(
    r"(?:\b(at)\s+)?\b(\d{1,2})(?!\d)(?::(\d{2})(?!\d))?(?:\s*(am|pm)\b)?"
)
_DATE_VOCABULARY = frozenset(
    ("today", "tomorrow", "tonight", "next", "this", "week", "morning", "afternoon",
     "evening", "at", "on", "by", "am", "pm") + WEEKDAYS
)
_CLOCK_TOKEN = re.compile(r"\d{1,2}(?::\d{2})?(?:am|pm)?")


@dataclass(frozen=True)
class IntentParser:
    """Summary: Deterministic keyword and regex intent classifier.

    Importance: Produces a command for every utterance, ranked by a heuristic score.
    Alternatives: Route every utterance through an AI provider.
    """

    clock: Clock = datetime.now
    same_weekday_policy: str = "next_week"

    def __post_init__(self) -> None:
        if self.same_weekday_policy not in WEEKDAY_POLICIES:
            raise ValueError(f"Unknown weekday policy: {self.same_weekday_policy}")

    def parse(self, text: str) -> Command:
        """Summary: Classify an utterance into a command.

        Importance: Entry point for both typed chat and voice transcripts.
        Alternatives: Split parsing into separate action and slot passes.
        """

        normalized = normalize_text(text)
        score = 0.0

        action = _detect_action(normalized)
        if action:
            score += ACTION_WEIGHT
        domain, ties = _detect_domain(normalized)
        if domain != "unknown":
            score += DOMAIN_WEIGHT
        title = extract_title(normalized)
        if title:
            score += TITLE_WEIGHT
        due_date = self.extract_datetime(normalized)
        if due_date is not None:
            score += DATE_WEIGHT

        location = None
        category = None
        if domain in ("weather", "news"):
            location = extract_location(normalized)
        if domain == "news":
            category = extract_news_category(normalized)

        entities = CommandEntities(
            title=title,
            description=_extract_description(normalized),
            due_date=due_date,
            priority=extract_priority(normalized),
            location=location,
            category=category,
        )
        confidence = min(1.0, max(BASE_CONFIDENCE, round(score, 2)))
        return Command(
            domain=domain,
            action=action or "create",
            entities=entities,
            confidence=confidence,
            text=normalized,
            domain_ties=ties,
        )

    def extract_datetime(self, text: str) -> datetime | None:
        """Summary: Resolve a relative date or clock time mentioned in text.

        Importance: Gives reminders and meetings a due date without a date picker.
        Alternatives: Use a natural-language date library such as dateparser.
        """

        now = self.clock()
        if _has_phrase(text, "today"):
            return now
        if _has_phrase(text, "tomorrow"):
            return now + timedelta(days=1)
        if _has_phrase(text, "next week"):
            return now + timedelta(days=7)
        clock_time = _match_clock_time(text)
        if clock_time is not None:
            hour, minute = clock_time
            return now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        for index, name in enumerate(WEEKDAYS):
            if _has_phrase(text, name):
                days_ahead = (index - now.weekday()) % 7
                if days_ahead == 0 and self.same_weekday_policy == "next_week":
                    days_ahead = 7
                return now + timedelta(days=days_ahead)
        return None


def normalize_text(text: str) -> str:
    """Summary: Lower-case and tidy an utterance before matching.

    Importance: Keeps keyword matching independent of casing and punctuation.
    Alternatives: Require callers to normalize input.
    """

    cleaned = text.lower().replace("a.m.", "am").replace("p.m.", "pm")
    cleaned = re.sub(r"[,;!?]", " ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned.rstrip(".").strip()


def extract_title(text: str) -> str | None:
    """Summary: Capture the subject that follows for, about, or regarding.

    Importance: Names created reminders, tasks, and notes.
    Alternatives: Use the whole utterance as the title.
    """

    for match in _TITLE_PATTERN.finditer(text):
        title = match.group(1).strip()
        if title and not _is_time_phrase(title):
            return title
    return None


def extract_priority(text: str) -> str:
    """Summary: Map urgency phrases to a priority level.

    Importance: Lets users flag important reminders by voice.
    Alternatives: Ask for priority explicitly in a follow-up.
    """

    if any(_has_phrase(text, phrase) for phrase in LOW_PRIORITY):
        return "low"
    if any(_has_phrase(text, phrase) for phrase in HIGH_PRIORITY):
        return "high"
    return "medium"


def extract_location(text: str) -> str | None:
    """Summary: Capture the place a weather or news request refers to.

    Importance: Selects the city or region for external lookups.
    Alternatives: Always use the device location.
    """

    if any(_has_phrase(text, phrase) for phrase in HERE_PHRASES):
        return CURRENT_LOCATION
    for match in _LOCATION_PATTERN.finditer(text):
        location = match.group(1).strip()
        if location and not _is_time_phrase(location):
            return location
    return None


def extract_news_category(text: str) -> str | None:
    """Summary: Detect a known headline category.

    Importance: Routes news requests to category headlines instead of search.
    Alternatives: Treat every topic as a free-text search.
    """

    for category, keywords in NEWS_CATEGORIES:
        if any(_has_phrase(text, keyword) for keyword in keywords):
            return category
    return None


def _detect_action(text: str) -> str | None:
    for action, keywords in ACTION_KEYWORDS:
        if any(_has_phrase(text, keyword) for keyword in keywords):
            return action
    return None


def _detect_domain(text: str) -> tuple[str, tuple[str, ...]]:
    """Summary: Score every domain by keyword hits and pick the best.

    Importance: Avoids check-order bias while keeping ties visible to callers.
    Alternatives: Return the first domain whose keyword appears.
    """

    scores = [
        (domain, sum(1 for keyword in keywords if _has_phrase(text, keyword, plural=True)))
        for domain, keywords in DOMAIN_KEYWORDS
    ]
    best = max(score for _, score in scores)
    if best == 0:
        return "unknown", ()
    leaders = [domain for domain, score in scores if score == best]
    return leaders[0], tuple(leaders[1:])


def _extract_description(text: str) -> str | None:
    match = _DESCRIPTION_PATTERN.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def _match_clock_time(text: str) -> tuple[int, int] | None:
    """Summary: Find an H[:MM] [am|pm] clock time and convert it to 24-hour.

    Importance: Supports "at 3 pm" style reminders.
    Alternatives: Parse with time.strptime against several formats.
    """

    for match in _CLOCK_PATTERN.finditer(text):
        at_prefix, hour_text, minute_text, period = match.groups()
        if not (minute_text or period or at_prefix):
            continue
        hour = int(hour_text)
        minute = int(minute_text) if minute_text else 0
        if minute > 59:
            continue
        if period:
            if not 1 <= hour <= 12:
                continue
            if period == "pm" and hour != 12:
                hour += 12
            elif period == "am" and hour == 12:
                hour = 0
        elif hour > 23:
            continue
        return hour, minute
    return None


def _is_time_phrase(value: str) -> bool:
    return all(
        token in _DATE_VOCABULARY or _CLOCK_TOKEN.fullmatch(token)
        for token in value.split()
    )


def _has_phrase(text: str, phrase: str, plural: bool = False) -> bool:
    suffix = r"(?:s|es)?" if plural else ""
    return re.search(rf"\b{re.escape(phrase)}{suffix}\b", text) is not None
