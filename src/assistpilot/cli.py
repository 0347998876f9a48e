"""Summary: Command-line interface for AssistPilot.

Importance: Provides a local entry point for typed and replayed voice commands.
Alternatives: Build a mobile or desktop client first.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Sequence

import uvicorn

from assistpilot.api import create_app
from assistpilot.app import build_services
from assistpilot.config import AppConfig
from assistpilot.models import REMINDER_KINDS, DispatchResult
from assistpilot.news import format_news_summary
from assistpilot.voice import KeywordWakeWordDetector, ScriptedSpeechRecognizer, VoiceSession
from assistpilot.weather import describe_weather


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="AssistPilot CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse = subparsers.add_parser("parse", help="Show how an utterance is understood")
    parse.add_argument("text", type=str)

    ask = subparsers.add_parser("ask", help="Parse and execute an utterance")
    ask.add_argument("text", type=str)
    ask.add_argument("--force-refresh", action="store_true")

    weather = subparsers.add_parser("weather", help="Show current weather")
    weather.add_argument("--city", type=str, default=None)
    weather.add_argument("--force-refresh", action="store_true")

    news = subparsers.add_parser("news", help="Show news headlines")
    news.add_argument("--category", type=str, default=None)
    news.add_argument("--query", type=str, default=None)
    news.add_argument("--count", type=int, default=5)

    list_reminders = subparsers.add_parser("list-reminders", help="List reminders")
    list_reminders.add_argument("--kind", choices=REMINDER_KINDS, default=None)

    subparsers.add_parser("list-notes", help="List voice notes")
    subparsers.add_parser("list-notifications", help="List pending alerts")
    subparsers.add_parser("cache-stats", help="Show cache statistics")

    listen = subparsers.add_parser("listen", help="Replay transcripts through a voice session")
    listen.add_argument("transcripts", nargs="+", type=str)
    listen.add_argument("--wake-word", type=str, default=None)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def print_result(result: DispatchResult) -> None:
    status = "ok" if result.success else "error"
    print(f"[{status}] {result.message}")
    if result.error and not result.success:
        print(f"  reason: {result.error}")


def echo_voice_result(text: str, result: DispatchResult) -> None:
    print(f"> {text}")
    print_result(result)


def run_cli(argv: Sequence[str] | None = None) -> None:
    """Summary: Execute CLI commands based on arguments.

    Importance: Drives the assistant without a UI.
    Alternatives: Invoke services via the HTTP API.
    """

    parser = build_parser()
    args = parser.parse_args(argv)
    config = AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level.upper(), format="%(levelname)s %(name)s: %(message)s"
    )

    if args.command == "serve":
        uvicorn.run(
            create_app(config),
            host=args.host or config.api_host,
            port=args.port or config.api_port,
        )
        return

    services = build_services(config)

    if args.command == "parse":
        command = services.assistant.parse(args.text)
        print(json.dumps(command.as_dict(), indent=2))
        return

    if args.command == "ask":
        _, result = services.assistant.ask(args.text, force_refresh=args.force_refresh)
        print_result(result)
        return

    if args.command == "weather":
        result = services.dispatcher.lookup_weather(args.city, force_refresh=args.force_refresh)
        if result.success and result.data:
            print(describe_weather(result.data["weather"]))
            return
        print_result(result)
        return

    if args.command == "news":
        result = services.dispatcher.lookup_news(args.category, args.query)
        if result.success and result.data:
            print(format_news_summary(result.data["news"], count=args.count))
            return
        print_result(result)
        return

    if args.command == "list-reminders":
        for reminder in services.store.list_reminders(services.user_id, kind=args.kind):
            status = "done" if reminder.completed else reminder.priority
            print(f"{reminder.id}: [{reminder.kind}] {reminder.title} ({reminder.due_date}) {status}")
        return

    if args.command == "list-notes":
        for note in services.store.list_voice_notes(services.user_id):
            print(f"{note.id}: {note.title} - {note.transcript or ''}")
        return

    if args.command == "list-notifications":
        for item in services.notifier.pending():
            print(f"{item.fire_at.isoformat()} {item.id}: {item.title}")
        return

    if args.command == "cache-stats":
        for key, value in services.cache.stats().items():
            print(f"{key}: {value}")
        return

    if args.command == "listen":
        session = VoiceSession(
            recognizer=ScriptedSpeechRecognizer(args.transcripts),
            parser=services.parser,
            dispatcher=services.dispatcher,
            on_result=echo_voice_result,
            wake_word=KeywordWakeWordDetector(args.wake_word) if args.wake_word else None,
        )
        results = session.run()
        print(f"Processed {len(results)} voice commands.")
        return


if __name__ == "__main__":
    run_cli()
