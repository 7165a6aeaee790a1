"""Drives the speech recognition service and its auto-restart policy."""

from __future__ import annotations

from typing import Protocol

from ..core.errors import RecognitionAlreadyStartedError
from ..core.logger import get_logger
from ..services.speech import (
    TRANSIENT_RECOGNITION_ERRORS,
    RecognitionError,
    RecognitionEvent,
    RecognitionService,
)
from ..state.session import Session


logger = get_logger("capture")


class CaptureListener(Protocol):
    """What the capture controller needs from the conversation."""

    def capture_locale(self) -> str: ...

    def capture_allowed(self) -> bool: ...

    def on_capture_started(self) -> None: ...

    def on_capture_stopped(self) -> None: ...

    def on_capture_failed(self, kind: str) -> None: ...

    def on_interim_transcript(self, text: str) -> None: ...

    def on_final_transcript(self, text: str) -> None: ...


class SpeechCaptureController:
    """Start/stop wrapper that keeps the assistant listening across pauses."""

    def __init__(
        self,
        service: RecognitionService | None,
        session: Session,
        listener: CaptureListener,
    ) -> None:
        self._service = service
        self.session = session
        self._listener = listener
        self._active = False
        self._delivered_index = -1
        if service is not None:
            service.interim_results = True
            service.continuous = False
            service.bind(
                on_start=self._on_start,
                on_result=self._on_result,
                on_error=self._on_error,
                on_end=self._on_end,
            )

    @property
    def supported(self) -> bool:
        return self._service is not None

    @property
    def active(self) -> bool:
        """True while a recognition run is live and no stop was requested."""
        return self._active

    def start(self) -> None:
        if self._service is None:
            return
        self.session.stop_deliberate = False
        if self._active:
            return
        self._service.lang = self._listener.capture_locale()
        try:
            self._service.start()
        except RecognitionAlreadyStartedError:
            logger.warning("Speech recognition already started, ignoring request.")
        except Exception:
            logger.exception("Could not start speech recognition")
            self.session.stop_deliberate = True
            self._listener.on_capture_failed("start-failed")
        else:
            logger.debug("Recognition requested (lang=%r)", self._service.lang)

    def stop(self) -> None:
        if self._service is None:
            return
        self.session.stop_deliberate = True
        self._active = False
        try:
            self._service.stop()
        except Exception:
            logger.warning("Speech recognition couldn't be stopped.", exc_info=True)
        self._listener.on_capture_stopped()

    # ------------------------------------------------------------------ #
    # Service events
    # ------------------------------------------------------------------ #
    def _on_start(self) -> None:
        self._active = True
        self._delivered_index = -1
        self._listener.on_capture_started()

    def _on_result(self, event: RecognitionEvent) -> None:
        final_parts: list[str] = []
        interim_parts: list[str] = []
        last_final = self._delivered_index
        for index in range(event.result_index, len(event.results)):
            result = event.results[index]
            if not result.alternatives:
                continue
            transcript = result.alternatives[0].transcript
            if result.is_final:
                if index <= self._delivered_index:
                    continue
                final_parts.append(transcript)
                last_final = index
            else:
                interim_parts.append(transcript)

        self._listener.on_interim_transcript("".join(interim_parts))
        final_text = "".join(final_parts).strip()
        if final_text:
            self._delivered_index = last_final
            self._listener.on_interim_transcript("")
            self._listener.on_final_transcript(final_text)

    def _on_error(self, error: RecognitionError) -> None:
        if error.kind in TRANSIENT_RECOGNITION_ERRORS:
            logger.info("Speech recognition: %s (will restart)", error.kind)
            return
        logger.error("Speech recognition error: %s %s", error.kind, error.message)
        self.session.stop_deliberate = True
        self._active = False
        self._listener.on_capture_failed(error.kind)

    def _on_end(self) -> None:
        self._active = False
        self._listener.on_capture_stopped()
        if not self.session.stop_deliberate and self._listener.capture_allowed():
            self.start()
