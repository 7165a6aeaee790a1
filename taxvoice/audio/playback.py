"""Speaker output for synthesized PCM."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable

import sounddevice as sd

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PlaybackConfig:
    """Playback configuration."""

    channels: int = 1
    device_name: str | None = None


class SpeechPlayback:
    """Plays one PCM16 buffer at a time and reports when it has drained.

    ``on_done`` runs on the sounddevice callback thread.
    """

    def __init__(self, config: PlaybackConfig | None = None) -> None:
        self.config = config or PlaybackConfig()
        self._buffer = deque[bytes]()
        self._lock = threading.RLock()
        self._stream: sd.RawOutputStream | None = None
        self._sample_rate = 0
        self._on_done: Callable[[], None] | None = None

    def play(self, pcm_data: bytes, sample_rate: int, on_done: Callable[[], None] | None = None) -> None:
        """Replace whatever is playing with ``pcm_data``."""
        with self._lock:
            self._buffer.clear()
            self._on_done = None
            if not pcm_data:
                done = on_done
            else:
                self._ensure_stream(sample_rate)
                self._buffer.append(pcm_data)
                self._on_done = on_done
                done = None
        if done is not None:
            done()

    def stop(self) -> None:
        """Stop playback and drop the buffer; the pending ``on_done`` never runs."""
        with self._lock:
            self._buffer.clear()
            self._on_done = None
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None

    def _ensure_stream(self, sample_rate: int) -> None:
        if self._stream is not None and self._sample_rate != sample_rate:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        if self._stream is not None:
            if not self._stream.active:
                self._stream.start()
            return
        self._sample_rate = sample_rate
        self._stream = sd.RawOutputStream(
            samplerate=sample_rate,
            channels=self.config.channels,
            dtype="int16",
            callback=self._on_write,
            device=self.config.device_name,
        )
        self._stream.start()

    def _on_write(self, outdata: bytearray, frames: int, time, status) -> None:  # type: ignore[override]  # noqa: ANN401
        if status:  # pragma: no cover
            LOGGER.warning("Speaker status: %s", status)
        done = None
        with self._lock:
            if not self._buffer:
                outdata[:] = b"\x00" * len(outdata)
                return
            chunk = self._buffer.popleft()
            if len(chunk) >= len(outdata):
                outdata[:] = chunk[: len(outdata)]
                remainder = chunk[len(outdata) :]
                if remainder:
                    self._buffer.appendleft(remainder)
            else:
                outdata[: len(chunk)] = chunk
                outdata[len(chunk) :] = b"\x00" * (len(outdata) - len(chunk))
            if not self._buffer:
                done, self._on_done = self._on_done, None
        if done is not None:
            done()
