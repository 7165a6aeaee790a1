"""Speech-to-text with faster-whisper."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from faster_whisper import WhisperModel


@dataclass(slots=True)
class WhisperConfig:
    """Configuration for the faster-whisper engine."""

    model: str = "small"
    device: str = "cpu"
    compute_type: str = "int8"


def whisper_language(locale: str) -> str | None:
    """Map "zh-TW" to "zh"; an empty locale lets Whisper detect the language."""
    if not locale:
        return None
    return locale.split("-")[0].lower()


class FasterWhisperEngine:
    """Thin wrapper around WhisperModel for PCM16 audio."""

    def __init__(self, config: WhisperConfig) -> None:
        self.config = config
        self.model = WhisperModel(
            config.model,
            device=config.device,
            compute_type=config.compute_type,
        )

    def transcribe_pcm16(self, pcm_data: bytes, *, locale: str = "") -> str:
        """Transcribe raw PCM16 mono 16 kHz audio."""
        if not pcm_data:
            return ""
        audio = np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0
        if not len(audio):
            return ""
        segments, _info = self.model.transcribe(
            audio,
            language=whisper_language(locale),
            vad_filter=True,
            vad_parameters={"min_silence_duration_ms": 250},
        )
        return " ".join(segment.text.strip() for segment in segments if segment.text.strip()).strip()
