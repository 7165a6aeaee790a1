"""Piper voices for the local synthesis service."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from piper import PiperVoice, SynthesisConfig


@dataclass(slots=True)
class PiperConfig:
    """One Piper voice on disk."""

    model_path: Path
    config_path: Path
    length_scale: float = 1.0
    speaker_id: int | None = None


def voice_locale(model_path: Path) -> str:
    """``en_US-lessac-medium.onnx`` -> ``en-US``; ``zh_CN-huayan`` -> ``zh-CN``."""
    prefix = model_path.name.split("-", 1)[0]
    return prefix.replace("_", "-")


def discover_voices(directory: Path) -> list[PiperConfig]:
    """Every ``*.onnx`` model in ``directory`` that has its ``.onnx.json`` beside it."""
    if not directory.is_dir():
        return []
    found: list[PiperConfig] = []
    for model in sorted(directory.glob("*.onnx")):
        config = model.with_name(model.name + ".json")
        if config.exists():
            found.append(PiperConfig(model_path=model, config_path=config))
    return found


class PiperTTS:
    """Thin wrapper around PiperVoice."""

    def __init__(self, config: PiperConfig) -> None:
        self.config = config
        self._voice = self._load_voice(config)

    def synthesize(self, text: str) -> tuple[bytes, int]:
        """Generate PCM16 audio for ``text``; empty text gives ``(b"", 0)``."""
        pcm = bytearray()
        sample_rate = 0
        for chunk, rate in self._stream(self._sanitize_text(text)):
            sample_rate = rate
            pcm += chunk
        return bytes(pcm), sample_rate

    def _stream(self, text: str) -> Iterator[tuple[bytes, int]]:
        if not text.strip():
            return
        kwargs: dict[str, object] = {}
        if self.config.speaker_id is not None:
            kwargs["speaker_id"] = self.config.speaker_id
        if self.config.length_scale != 1.0:
            kwargs["length_scale"] = self.config.length_scale
        syn_config = SynthesisConfig(**kwargs) if kwargs else None
        for chunk in self._voice.synthesize(text, syn_config=syn_config):
            yield chunk.audio_int16_bytes, chunk.sample_rate

    @staticmethod
    def _load_voice(config: PiperConfig) -> PiperVoice:
        if not config.model_path.exists():
            raise FileNotFoundError(f"Piper model not found: {config.model_path}")
        if not config.config_path.exists():
            raise FileNotFoundError(f"Piper config not found: {config.config_path}")
        voice = PiperVoice.load(str(config.model_path), str(config.config_path))
        # Some voices have no id for a bare tilde.
        phoneme_map = dict(voice.config.phoneme_id_map)
        fallback = phoneme_map.get(" ") or phoneme_map.get("_", [0])
        fallback_ids = [fallback] if isinstance(fallback, int) else list(fallback or [0])
        for missing in ("˜", "~"):
            phoneme_map.setdefault(missing, fallback_ids)
        voice.config.phoneme_id_map = phoneme_map
        return voice

    @staticmethod
    def _sanitize_text(text: str) -> str:
        return text.replace("˜", "").replace("~", "").strip()
