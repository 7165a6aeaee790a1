"""Local recognition service: microphone + WebRTC VAD endpointing + faster-whisper.

Each run listens until speech is followed by a pause (non-continuous mode),
transcribes the utterance off the event loop and reports one final result.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, Optional

from ..core.config import Settings, get_settings
from ..core.errors import RecognitionAlreadyStartedError
from ..core.logger import get_logger
from ..services.speech import (
    NO_SPEECH,
    RecognitionAlternative,
    RecognitionError,
    RecognitionEvent,
    RecognitionResult,
)
from .capture import CaptureConfig, MicrophoneStream
from .transcriber import FasterWhisperEngine, WhisperConfig
from .vad import Endpoint, Endpointer, VADConfig, VoiceActivityDetector


logger = get_logger("speech")

TRANSCRIPTION_FAILED = "transcription-failed"


def _noop(*_args: object) -> None:
    return None


class LocalRecognizer:
    """RecognitionService backed by the local microphone."""

    def __init__(
        self,
        settings: Settings | None = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        *,
        microphone: MicrophoneStream | None = None,
        detector: VoiceActivityDetector | None = None,
        engine: FasterWhisperEngine | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.loop = loop or asyncio.get_running_loop()
        self.lang = ""
        self.interim_results = True
        self.continuous = False

        self.microphone = microphone or MicrophoneStream(
            CaptureConfig(device_name=self.settings.audio_input_device), self.loop
        )
        vad_config = VADConfig(
            aggressiveness=self.settings.vad_aggressiveness,
            silence_ms=self.settings.vad_silence_ms,
            no_speech_timeout_ms=int(self.settings.asr_no_speech_timeout_sec * 1000),
            max_utterance_ms=int(self.settings.asr_max_utterance_sec * 1000),
        )
        self.endpointer = Endpointer(vad_config, detector or VoiceActivityDetector(vad_config))
        self._engine = engine
        self._engine_lock = threading.Lock()

        self._running = False
        self._run_id = 0

        self._on_start: Callable[[], None] = _noop
        self._on_result: Callable[[RecognitionEvent], None] = _noop
        self._on_error: Callable[[RecognitionError], None] = _noop
        self._on_end: Callable[[], None] = _noop

    def bind(self, *, on_start, on_result, on_error, on_end) -> None:
        self._on_start = on_start
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    def start(self) -> None:
        if self._running:
            raise RecognitionAlreadyStartedError("recognition already started")
        self._run_id += 1
        self.endpointer.reset()
        self.microphone.open(self._on_frame)
        self._running = True
        self.loop.call_soon(self._on_start)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._run_id += 1
        self.microphone.close()
        self.loop.call_soon(self._on_end)

    def _on_frame(self, frame: bytes) -> None:
        config = self.microphone.config
        endpoint = self.endpointer.feed(frame, config.sample_rate, config.frame_duration_ms)
        if endpoint is Endpoint.UTTERANCE:
            self._transcribe_utterance()
        elif endpoint is Endpoint.NO_SPEECH:
            self._finish(RecognitionError(NO_SPEECH))

    def _transcribe_utterance(self) -> None:
        self.microphone.close()
        pcm = bytes(self.endpointer.audio)
        locale = self.lang
        run_id = self._run_id
        future = self.loop.run_in_executor(None, self._transcribe, pcm, locale)
        future.add_done_callback(lambda done: self._transcribed(done, run_id))

    def _transcribe(self, pcm: bytes, locale: str) -> str:
        return self._ensure_engine().transcribe_pcm16(pcm, locale=locale)

    def _ensure_engine(self) -> FasterWhisperEngine:
        with self._engine_lock:
            if self._engine is None:
                self._engine = FasterWhisperEngine(
                    WhisperConfig(
                        model=self.settings.asr_model,
                        device=self.settings.asr_device,
                        compute_type=self.settings.asr_compute_type,
                    )
                )
            return self._engine

    def _transcribed(self, future: asyncio.Future[str], run_id: int) -> None:
        if run_id != self._run_id or not self._running:
            return
        try:
            text = future.result()
        except Exception as exc:
            logger.exception("Transcription failed")
            self._finish(RecognitionError(TRANSCRIPTION_FAILED, str(exc)))
            return
        if not text:
            self._finish(RecognitionError(NO_SPEECH))
            return
        alternative = RecognitionAlternative(transcript=text)
        self._on_result(RecognitionEvent(result_index=0, results=[RecognitionResult(True, [alternative])]))
        self._finish()

    def _finish(self, error: RecognitionError | None = None) -> None:
        self.microphone.close()
        if error is not None:
            self._on_error(error)
        if self._running:
            self._running = False
            self._on_end()
