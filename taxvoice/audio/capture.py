"""Microphone input for the local recognizer."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

import sounddevice as sd

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class CaptureConfig:
    """Microphone capture configuration (PCM16, 30 ms frames by default)."""

    sample_rate: int = 16_000
    channels: int = 1
    frame_duration_ms: int = 30
    device_name: str | None = None

    @property
    def frame_samples(self) -> int:
        return self.sample_rate * self.frame_duration_ms // 1000


class MicrophoneStream:
    """One input stream at a time; frames reach the consumer on the event loop.

    Frames still in flight from a closed stream are dropped, so a consumer
    never sees audio from an earlier ``open``.
    """

    def __init__(self, config: CaptureConfig | None, loop: asyncio.AbstractEventLoop) -> None:
        self.config = config or CaptureConfig()
        self.loop = loop
        self._stream: sd.RawInputStream | None = None
        self._consumer: Callable[[bytes], None] | None = None
        self._generation = 0

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self, consumer: Callable[[bytes], None]) -> None:
        self.close()
        self._generation += 1
        generation = self._generation
        self._consumer = consumer

        def on_audio(indata, frames, time, status) -> None:  # noqa: ANN001
            if status:  # pragma: no cover
                LOGGER.warning("Microphone status: %s", status)
            try:
                self.loop.call_soon_threadsafe(self._dispatch, generation, bytes(indata))
            except RuntimeError:  # pragma: no cover - loop closed
                pass

        stream = sd.RawInputStream(
            samplerate=self.config.sample_rate,
            channels=self.config.channels,
            dtype="int16",
            blocksize=self.config.frame_samples,
            callback=on_audio,
            device=self.config.device_name,
        )
        stream.start()
        self._stream = stream
        LOGGER.debug("Microphone opened (%s Hz)", self.config.sample_rate)

    def close(self) -> None:
        self._generation += 1
        self._consumer = None
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()
        LOGGER.debug("Microphone closed")

    def _dispatch(self, generation: int, frame: bytes) -> None:
        if generation != self._generation or self._consumer is None:
            return
        self._consumer(frame)
