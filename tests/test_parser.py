"""Summary: Tests for the intent parser.

Importance: Ensures utterances map to the expected domain, action, and slots.
Alternatives: Validate parsing only through end-to-end voice tests.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from assistpilot.models import CURRENT_LOCATION
from assistpilot.parser import IntentParser, extract_priority, extract_title, normalize_text

# Tuesday
NOW = datetime(2026, 3, 10, 9, 0)


def _parser(policy: str = "next_week") -> IntentParser:
    return IntentParser(clock=lambda: NOW, same_weekday_policy=policy)


def test_parse_create_reminder_with_title_and_date() -> None:
    """Summary: Verify a full create utterance fills every slot.

    Importance: This is the most common voice command.
    Alternatives: Check only the detected domain.
    """

    command = _parser().parse("Create reminder for team meeting tomorrow")
    assert command.domain == "reminder"
    assert command.action == "create"
    assert command.entities.title == "team meeting"
    assert command.entities.due_date == datetime(2026, 3, 11, 9, 0)
    assert command.confidence == pytest.approx(0.9)
    assert command.domain_ties == ("meeting",)


def test_parse_get_reminders_uses_base_confidence() -> None:
    command = _parser().parse("get my reminders")
    assert command.domain == "reminder"
    assert command.action == "get"
    assert command.entities.title is None
    assert command.confidence == pytest.approx(0.5)


def test_parse_unknown_utterance() -> None:
    """Summary: Verify unmatched text still produces a command.

    Importance: The dispatcher relies on an unknown domain to answer politely.
    Alternatives: Raise an exception for unparseable input.
    """

    command = _parser().parse("hello there")
    assert command.domain == "unknown"
    assert command.action == "create"
    assert command.confidence == pytest.approx(0.5)
    assert command.domain_ties == ()


def test_parse_weather_location() -> None:
    command = _parser().parse("What's the weather in Paris?")
    assert command.domain == "weather"
    assert command.action == "get"
    assert command.entities.location == "paris"


def test_parse_weather_here_uses_current_location() -> None:
    command = _parser().parse("show the weather here")
    assert command.entities.location == CURRENT_LOCATION


def test_parse_news_category_and_topic() -> None:
    """Summary: Verify news requests carry either a category or a topic.

    Importance: Categories use headlines while topics use search.
    Alternatives: Treat all news requests as searches.
    """

    tech = _parser().parse("latest tech news")
    assert tech.domain == "news"
    assert tech.entities.category == "technology"

    topic = _parser().parse("news about climate")
    assert topic.domain == "news"
    assert topic.entities.category is None
    assert topic.entities.title == "climate"


def test_new_does_not_trigger_news_domain() -> None:
    command = _parser().parse("new task for quarterly report")
    assert command.domain == "task"
    assert command.action == "create"
    assert command.entities.title == "quarterly report"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("remind me to call mom at 3 pm", (15, 0)),
        ("set reminder at 10:30 am", (10, 30)),
        ("set reminder at 12 am", (0, 0)),
        ("set reminder 12 pm", (12, 0)),
        ("set reminder at 18:45", (18, 45)),
    ],
)
def test_clock_times_resolve_today(text: str, expected: tuple[int, int]) -> None:
    due = _parser().parse(text).entities.due_date
    assert due is not None
    assert (due.year, due.month, due.day) == (2026, 3, 10)
    assert (due.hour, due.minute) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("create task for laundry today", NOW),
        ("create task for laundry tomorrow", datetime(2026, 3, 11, 9, 0)),
        ("create task for laundry next week", datetime(2026, 3, 17, 9, 0)),
    ],
)
def test_relative_days(text: str, expected: datetime) -> None:
    command = _parser().parse(text)
    assert command.entities.due_date == expected
    assert command.entities.title == "laundry"


def test_bare_number_is_not_a_time() -> None:
    command = _parser().parse("add task for 3 reports")
    assert command.entities.due_date is None
    assert command.entities.title == "3 reports"


def test_weekday_resolution() -> None:
    """Summary: Verify weekday names resolve forward from today.

    Importance: "on friday" must never land in the past.
    Alternatives: Resolve weekdays within the current calendar week.
    """

    friday = _parser().parse("schedule meeting on friday").entities.due_date
    assert friday == datetime(2026, 3, 13, 9, 0)


def test_same_weekday_policy() -> None:
    next_week = _parser("next_week").parse("meeting on tuesday").entities.due_date
    same_day = _parser("same_day").parse("meeting on tuesday").entities.due_date
    assert next_week == datetime(2026, 3, 17, 9, 0)
    assert same_day == NOW


def test_unknown_weekday_policy_rejected() -> None:
    with pytest.raises(ValueError):
        IntentParser(same_weekday_policy="last_week")


def test_priority_and_description() -> None:
    command = _parser().parse("Create urgent note saying buy milk")
    assert command.domain == "note"
    assert command.entities.priority == "high"
    assert command.entities.description == "buy milk"
    assert extract_priority("this is not urgent") == "low"
    assert extract_priority("plain reminder") == "medium"


def test_title_skips_pure_time_phrases() -> None:
    assert extract_title("remind me for tomorrow") is None
    assert extract_title("add task for this report") == "this report"


def test_normalize_text() -> None:
    assert normalize_text("  Remind ME, at 3 P.M.!  ") == "remind me at 3 pm"


@pytest.mark.parametrize(
    ("text", "domain", "ties"),
    [
        ("weather news", "weather", ("news",)),
        ("latest news about the weather", "news", ()),
        ("add note for the meeting", "meeting", ("note",)),
    ],
)
def test_competing_domains_are_scored(text: str, domain: str, ties: tuple[str, ...]) -> None:
    command = _parser().parse(text)
    assert command.domain == domain
    assert command.domain_ties == ties


@pytest.mark.parametrize(
    ("text", "confidence"),
    [
        ("get my reminders", 0.5),
        ("create reminder for rent", 0.7),
        ("create reminder for rent tomorrow", 0.9),
        ("remind me about rent tomorrow", 0.7),
        ("hello there", 0.5),
    ],
)
def test_confidence_is_the_floored_signal_sum(text: str, confidence: float) -> None:
    """Summary: Pin the additive confidence rule.

    Importance: Action and domain alone sum to 0.5, so they sit at the floor;
    a title or date is what lifts a command above it.
    Alternatives: Give action plus domain a 0.7 minimum.
    """

    assert _parser().parse(text).confidence == pytest.approx(confidence)
