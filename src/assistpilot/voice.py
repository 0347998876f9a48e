"""Summary: Voice capture session that turns transcripts into dispatched commands.

Importance: Connects speech recognition, wake word detection, parsing, and dispatch.
Alternatives: Accept typed commands only.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Iterable

from assistpilot.dispatcher import CommandDispatcher
from assistpilot.models import DispatchResult
from assistpilot.parser import IntentParser

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en-US"
DEFAULT_WAKE_WORD = "hey assistant"

ResultCallback = Callable[[str, DispatchResult], None]


class SpeechRecognitionError(RuntimeError):
    """Summary: Raised when the recognizer cannot start or stop.

    Importance: Lets the session reset its listening state on engine failures.
    Alternatives: Return status flags from recognizer calls.
    """


class SpeechRecognizer(ABC):
    """Summary: Abstract interface for speech-to-text engines.

    Importance: Keeps platform audio capture outside the core.
    Alternatives: Bind the session to one speech SDK.
    """

    @abstractmethod
    def start(self, language: str = DEFAULT_LANGUAGE) -> None:
        """Summary: Begin capturing audio."""

    @abstractmethod
    def stop(self) -> None:
        """Summary: Stop capturing audio."""

    @abstractmethod
    def listen(self) -> str | None:
        """Summary: Return the next final transcript, or None when input is exhausted."""


class WakeWordDetector(ABC):
    """Summary: Abstract interface for wake word engines.

    Importance: Lets hands-free sessions ignore speech until addressed.
    Alternatives: Require a push-to-talk trigger.
    """

    @abstractmethod
    def detect(self, transcript: str) -> bool:
        """Summary: Return True when the transcript contains the wake word."""

    @abstractmethod
    def strip(self, transcript: str) -> str:
        """Summary: Remove the wake word and return the remaining command text."""


class ScriptedSpeechRecognizer(SpeechRecognizer):
    """Summary: Recognizer that replays a fixed list of transcripts.

    Importance: Drives the CLI listen command and tests without a microphone.
    Alternatives: Replay recorded audio through a real engine.
    """

    def __init__(self, transcripts: Iterable[str]) -> None:
        self._queue = deque(transcripts)
        self.active = False
        self.language: str | None = None

    def start(self, language: str = DEFAULT_LANGUAGE) -> None:
        self.active = True
        self.language = language

    def stop(self) -> None:
        self.active = False

    def listen(self) -> str | None:
        while self._queue:
            transcript = self._queue.popleft().strip()
            if transcript:
                return transcript
        return None


class KeywordWakeWordDetector(WakeWordDetector):
    """Summary: Wake word detector that matches a phrase in transcribed text.

    Importance: Works on top of any recognizer without an audio model.
    Alternatives: Run a dedicated keyword-spotting engine.
    """

    def __init__(self, wake_word: str = DEFAULT_WAKE_WORD) -> None:
        self._pattern = re.compile(rf"\b{re.escape(wake_word.lower())}\b[\s,.!]*")

    def detect(self, transcript: str) -> bool:
        return self._pattern.search(transcript.lower()) is not None

    def strip(self, transcript: str) -> str:
        return self._pattern.sub("", transcript.lower(), count=1).strip()


class VoiceSession:
    """Summary: Tracks listening and processing state for one voice user.

    Importance: Prevents overlapping captures and routes each transcript once.
    Alternatives: Handle recognizer callbacks directly in the UI.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        parser: IntentParser,
        dispatcher: CommandDispatcher,
        on_result: ResultCallback | None = None,
        wake_word: WakeWordDetector | None = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self._recognizer = recognizer
        self._parser = parser
        self._dispatcher = dispatcher
        self._on_result = on_result
        self._wake_word = wake_word
        self._language = language
        self.is_listening = False
        self.is_processing = False

    def start_listening(self) -> bool:
        """Summary: Start the recognizer unless a capture or command is in progress.

        Importance: Mirrors the single-capture rule of mobile speech engines.
        Alternatives: Queue overlapping capture requests.
        """

        if self.is_listening or self.is_processing:
            return False
        try:
            self._recognizer.start(self._language)
        except SpeechRecognitionError as exc:
            logger.error("Failed to start voice recognition: %s", exc)
            return False
        self.is_listening = True
        logger.info("Voice recognition started.")
        return True

    def stop_listening(self) -> None:
        if not self.is_listening:
            return
        try:
            self._recognizer.stop()
        except SpeechRecognitionError as exc:
            logger.error("Failed to stop voice recognition: %s", exc)
        finally:
            self.is_listening = False

    def handle_transcript(self, transcript: str) -> DispatchResult | None:
        """Summary: Parse and dispatch one final transcript.

        Importance: Core voice round trip from words to an executed command.
        Alternatives: Forward raw transcripts to a remote assistant.
        """

        text = transcript.strip().lower()
        if not text:
            return None
        logger.info("Voice transcript: %s", text)
        self.is_processing = True
        try:
            command = self._parser.parse(text)
            result = self._dispatcher.dispatch(command)
        finally:
            self.is_processing = False
        if self._on_result is not None:
            self._on_result(text, result)
        return result

    def run(self, max_commands: int | None = None) -> list[DispatchResult]:
        """Summary: Consume transcripts until input ends or the command limit is reached.

        Importance: Drives hands-free sessions, gated by the wake word when configured.
        Alternatives: Process a single utterance per call.
        """

        results: list[DispatchResult] = []
        if self._wake_word is None and not self.start_listening():
            return results
        while max_commands is None or len(results) < max_commands:
            utterance = self._recognizer.listen()
            if utterance is None:
                break
            if self._wake_word is not None and not self.is_listening:
                if not self._wake_word.detect(utterance):
                    logger.debug("Ignoring speech without wake word.")
                    continue
                if not self.start_listening():
                    continue
                utterance = self._wake_word.strip(utterance)
                if not utterance:
                    continue
            result = self.handle_transcript(utterance)
            if result is not None:
                results.append(result)
            if self._wake_word is not None:
                self.stop_listening()
        self.stop_listening()
        return results
