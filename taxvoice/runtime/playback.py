"""Drives the speech synthesis service, one live utterance at a time."""

from __future__ import annotations

import itertools
import re
from typing import Callable, Sequence

from ..core.logger import get_logger
from ..services.speech import CANCELED, INTERRUPTED, SYNTHESIS_FAILED, SynthesisService, Utterance, Voice
from ..state.session import Session


logger = get_logger("playback")

_tokens = itertools.count(1)


def sanitize_for_speech(text: str) -> str:
    """Drop markdown emphasis characters the synthesizer would read aloud."""
    cleaned = re.sub(r"[*#`]", "", text)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


def select_voice(voices: Sequence[Voice], locale: str) -> Voice | None:
    """Exact locale match, else same language family, else None."""
    for voice in voices:
        if voice.lang == locale:
            return voice
    family = locale.split("-")[0].lower()
    for voice in voices:
        if voice.lang.lower().startswith(family):
            return voice
    return None


class SpeechPlaybackController:
    """Speaks text and reports completion of the latest utterance only."""

    def __init__(self, service: SynthesisService | None, session: Session) -> None:
        self._service = service
        self.session = session

    @property
    def supported(self) -> bool:
        return self._service is not None

    @property
    def speaking(self) -> bool:
        return self.session.utterance_token is not None

    def speak(self, text: str, locale: str, on_complete: Callable[[], None] | None = None) -> None:
        if self._service is None:
            logger.warning("Speech synthesis not supported.")
            if on_complete:
                on_complete()
            return

        token = next(_tokens)
        self.session.utterance_token = token
        try:
            self._service.cancel()
        except Exception:
            logger.warning("Previous utterance couldn't be cancelled.", exc_info=True)

        utterance = Utterance(text=sanitize_for_speech(text), lang=locale)

        def finish() -> None:
            if self.session.utterance_token != token:
                return
            self.session.utterance_token = None
            if on_complete:
                on_complete()

        def failed(kind: str) -> None:
            if kind not in (INTERRUPTED, CANCELED):
                logger.error("Speech synthesis error: %s", kind)
            finish()

        utterance.on_end = finish
        utterance.on_error = failed

        try:
            if self._service.voices():
                self._speak_with_voice(utterance, locale)
            else:
                self._service.on_voices_changed(lambda: self._voices_loaded(utterance, locale, token))
        except Exception:
            logger.exception("Speech synthesis could not start")
            failed(SYNTHESIS_FAILED)

    def cancel(self) -> None:
        """Silence the live utterance without running its completion."""
        self.session.utterance_token = None
        if self._service is not None:
            self._service.cancel()

    def _voices_loaded(self, utterance: Utterance, locale: str, token: int) -> None:
        if self.session.utterance_token != token:
            return
        try:
            if not self._service.voices():
                logger.warning("Voice list still empty after loading; using the default voice.")
            self._speak_with_voice(utterance, locale)
        except Exception:
            logger.exception("Speech synthesis could not start")
            utterance.on_error(SYNTHESIS_FAILED)

    def _speak_with_voice(self, utterance: Utterance, locale: str) -> None:
        voice = select_voice(self._service.voices(), locale)
        if voice is None:
            logger.warning("No voice found for language: %s. Using the default voice.", locale)
        utterance.voice = voice
        self._service.speak(utterance)
