"""Text console stand-ins for the speech services.

Typed lines play the role of recognised speech and "spoken" text is only
logged, which makes the whole dialogue loop usable in a terminal.
"""

from __future__ import annotations

import asyncio
import sys
import threading
from typing import Callable, Optional

from ..core.errors import RecognitionAlreadyStartedError
from ..core.languages import SUPPORTED_LANGUAGES
from ..core.logger import get_logger
from ..services.speech import (
    ABORTED,
    CANCELED,
    NO_SPEECH,
    RecognitionAlternative,
    RecognitionError,
    RecognitionEvent,
    RecognitionResult,
    Utterance,
    Voice,
)


logger = get_logger("speech")


def _noop(*_args: object) -> None:
    return None


class ConsoleRecognizer:
    """Each typed line is one final transcript; an empty line means no speech."""

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        *,
        readline: Callable[[], str] | None = None,
        on_eof: Callable[[], None] | None = None,
    ) -> None:
        self.loop = loop or asyncio.get_running_loop()
        self.lang = ""
        self.interim_results = True
        self.continuous = False
        self._readline = readline or sys.stdin.readline
        self._on_eof = on_eof
        self._running = False
        self._eof = False
        self._buffered: list[str] = []
        self._reader: threading.Thread | None = None
        self._on_start: Callable[[], None] = _noop
        self._on_result: Callable[[RecognitionEvent], None] = _noop
        self._on_error: Callable[[RecognitionError], None] = _noop
        self._on_end: Callable[[], None] = _noop

    def bind(self, *, on_start, on_result, on_error, on_end) -> None:
        self._on_start = on_start
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            raise RecognitionAlreadyStartedError("recognition already started")
        self._running = True
        self.loop.call_soon(self._on_start)
        if self._buffered:
            self.loop.call_soon(self._deliver, self._buffered.pop(0))
        elif self._eof:
            self.loop.call_soon(self._deliver, "")
        self._ensure_reader()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self.loop.call_soon(self._on_end)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _ensure_reader(self) -> None:
        if self._reader is not None:
            return
        self._reader = threading.Thread(target=self._read_lines, name="console-recognizer", daemon=True)
        self._reader.start()

    def _read_lines(self) -> None:
        """Reader thread: forward each line (and EOF as "") to the loop."""
        while True:
            try:
                line = self._readline()
            except (OSError, ValueError):
                line = ""
            try:
                self.loop.call_soon_threadsafe(self._deliver, line)
            except RuntimeError:  # loop closed
                return
            if line == "":
                return

    def _deliver(self, line: str) -> None:
        if not self._running:
            self._buffered.append(line)
            return
        if line == "":
            self._eof = True
            self._finish(RecognitionError(ABORTED, "end of console input"))
            if self._on_eof is not None:
                self._on_eof()
            return
        text = line.strip()
        if not text:
            self._finish(RecognitionError(NO_SPEECH))
            return
        alternative = RecognitionAlternative(transcript=text, confidence=1.0)
        self._on_result(RecognitionEvent(result_index=0, results=[RecognitionResult(True, [alternative])]))
        self._finish()

    def _finish(self, error: RecognitionError | None = None) -> None:
        if error is not None:
            self._on_error(error)
        if self._running:
            self._running = False
            self._on_end()


class ConsoleSynthesizer:
    """Pretends to speak: completes after ``len(text) / chars_per_second`` seconds."""

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        *,
        chars_per_second: float = 0.0,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self.loop = loop or asyncio.get_running_loop()
        self.chars_per_second = chars_per_second
        self._echo = echo
        self._voices = [Voice(name=f"console-{lang.speech_locale}", lang=lang.speech_locale) for lang in SUPPORTED_LANGUAGES]
        self._current: Utterance | None = None
        self._handle: asyncio.TimerHandle | None = None

    def voices(self) -> list[Voice]:
        return list(self._voices)

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon(callback)

    def speak(self, utterance: Utterance) -> None:
        self.cancel()
        self._current = utterance
        voice = utterance.voice.name if utterance.voice else "default"
        logger.debug("Speaking [%s/%s]: %s", utterance.lang, voice, utterance.text)
        if self._echo is not None:
            self._echo(utterance.text)
        delay = len(utterance.text) / self.chars_per_second if self.chars_per_second > 0 else 0.0
        self._handle = self.loop.call_later(delay, self._done, utterance)

    def cancel(self) -> None:
        utterance = self._current
        if utterance is None:
            return
        self._current = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if utterance.on_error is not None:
            self.loop.call_soon(utterance.on_error, CANCELED)

    def _done(self, utterance: Utterance) -> None:
        if self._current is not utterance:
            return
        self._current = None
        self._handle = None
        if utterance.on_end is not None:
            utterance.on_end()
