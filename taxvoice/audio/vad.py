"""Voice activity detection and utterance endpointing for the local recognizer."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum

import webrtcvad


_VALID_SAMPLE_RATES = (8000, 16_000, 32_000, 48_000)
_VALID_FRAME_DURATIONS_MS = (10, 20, 30)


@dataclass(slots=True)
class VADConfig:
    """WebRTC VAD and endpointing windows."""

    aggressiveness: int = 2  # 0 (sensitive) to 3 (strict)
    silence_ms: int = 800
    no_speech_timeout_ms: int = 8000
    max_utterance_ms: int = 20_000
    preroll_frames: int = 10


class VoiceActivityDetector:
    """Wrapper around the WebRTC VAD implementation."""

    def __init__(self, config: VADConfig | None = None) -> None:
        self.config = config or VADConfig()
        self._vad = webrtcvad.Vad(max(0, min(3, self.config.aggressiveness)))

    def is_speech(self, frame: bytes, sample_rate: int) -> bool:
        return self._vad.is_speech(fit_frame(frame, sample_rate), sample_rate)


def fit_frame(frame: bytes, sample_rate: int) -> bytes:
    """Pad or trim a PCM16 mono frame to the nearest 10/20/30 ms length."""
    samples = len(frame) // 2
    if not samples or sample_rate not in _VALID_SAMPLE_RATES:
        return frame
    allowed = [sample_rate * duration // 1000 for duration in _VALID_FRAME_DURATIONS_MS]
    target = min(allowed, key=lambda size: abs(size - samples)) * 2
    if len(frame) >= target:
        return frame[:target]
    return frame + bytes(target - len(frame))


class Endpoint(str, Enum):
    UTTERANCE = "utterance"
    NO_SPEECH = "no-speech"


class Endpointer:
    """Collects frames of one utterance and decides when it is over.

    Speech followed by ``silence_ms`` of silence (or ``max_utterance_ms`` of
    audio) ends the utterance; ``no_speech_timeout_ms`` without any speech
    ends the run empty. A few frames before the first voiced one are kept so
    the first syllable is not clipped.
    """

    def __init__(self, config: VADConfig, detector) -> None:
        self.config = config
        self._detector = detector
        self.reset()

    def reset(self) -> None:
        self.audio = bytearray()
        self._preroll: deque[bytes] = deque(maxlen=self.config.preroll_frames)
        self.speech_started = False
        self._silence_ms = 0
        self._heard_ms = 0
        self._elapsed_ms = 0

    def feed(self, frame: bytes, sample_rate: int, frame_ms: int) -> Endpoint | None:
        self._elapsed_ms += frame_ms
        if self._detector.is_speech(frame, sample_rate):
            if not self.speech_started:
                self.speech_started = True
                for earlier in self._preroll:
                    self.audio += earlier
                self._preroll.clear()
            self._silence_ms = 0
        elif not self.speech_started:
            self._preroll.append(frame)
            if self._elapsed_ms >= self.config.no_speech_timeout_ms:
                return Endpoint.NO_SPEECH
            return None
        else:
            self._silence_ms += frame_ms

        self.audio += frame
        self._heard_ms += frame_ms
        if self._silence_ms >= self.config.silence_ms or self._heard_ms >= self.config.max_utterance_ms:
            return Endpoint.UTTERANCE
        return None
