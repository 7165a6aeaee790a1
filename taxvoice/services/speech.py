"""Contracts of the speech-to-text and text-to-speech services.

Both services are opaque: the engine only sets options, issues commands and
reacts to the events they emit. Implementations that do work on other threads
must hand events back to the event loop before calling the bound handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence


# Error kinds a recognition service may report. Only the first two are transient.
NO_SPEECH = "no-speech"
AUDIO_CAPTURE = "audio-capture"
ABORTED = "aborted"
NOT_ALLOWED = "not-allowed"

TRANSIENT_RECOGNITION_ERRORS = frozenset({NO_SPEECH, AUDIO_CAPTURE})

# Synthesis error kinds produced by cancellation, not by failures.
INTERRUPTED = "interrupted"
CANCELED = "canceled"

# Synthesis failures reported by services and by the playback controller.
SYNTHESIS_UNAVAILABLE = "synthesis-unavailable"
SYNTHESIS_FAILED = "synthesis-failed"


@dataclass(frozen=True, slots=True)
class RecognitionAlternative:
    transcript: str
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class RecognitionResult:
    is_final: bool
    alternatives: Sequence[RecognitionAlternative]


@dataclass(frozen=True, slots=True)
class RecognitionEvent:
    """Result event: results from ``result_index`` on are new or updated."""

    result_index: int
    results: Sequence[RecognitionResult]


@dataclass(frozen=True, slots=True)
class RecognitionError:
    kind: str
    message: str = ""


class RecognitionService(Protocol):
    """Speech-to-text service as consumed by the capture controller."""

    lang: str
    interim_results: bool
    continuous: bool

    def bind(
        self,
        *,
        on_start: Callable[[], None],
        on_result: Callable[[RecognitionEvent], None],
        on_error: Callable[[RecognitionError], None],
        on_end: Callable[[], None],
    ) -> None: ...

    def start(self) -> None:
        """Begin a recognition run; raises RecognitionAlreadyStartedError if running."""

    def stop(self) -> None:
        """Finish the current run; ``on_end`` follows. No-op when stopped."""


@dataclass(frozen=True, slots=True)
class Voice:
    name: str
    lang: str


@dataclass(slots=True)
class Utterance:
    """One request to the synthesis service."""

    text: str
    lang: str
    voice: Voice | None = None
    on_end: Callable[[], None] | None = None
    on_error: Callable[[str], None] | None = None


class SynthesisService(Protocol):
    """Text-to-speech service as consumed by the playback controller."""

    def voices(self) -> list[Voice]: ...

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` once when the voice list (re)loads."""

    def speak(self, utterance: Utterance) -> None: ...

    def cancel(self) -> None:
        """Drop the live and queued utterances; they report ``canceled``."""
