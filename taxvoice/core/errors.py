"""Exception types shared across the assistant."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Fatal startup problem, such as a missing service credential."""


class StateTransitionError(RuntimeError):
    """Raised when the conversation would enter a forbidden phase/status pair."""


class RecognitionAlreadyStartedError(RuntimeError):
    """The speech recognition service was asked to start while running."""


class SpeechBackendUnavailableError(RuntimeError):
    """A speech backend cannot be initialised in this runtime."""
