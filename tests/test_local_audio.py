from pathlib import Path

import pytest

pytest.importorskip("webrtcvad")
pytest.importorskip("piper")

from taxvoice.audio.tts import discover_voices, voice_locale  # noqa: E402
from taxvoice.audio.vad import Endpoint, Endpointer, VADConfig, fit_frame  # noqa: E402


class ScriptedDetector:
    def __init__(self, pattern: str) -> None:
        self.pattern = list(pattern)

    def is_speech(self, frame: bytes, sample_rate: int) -> bool:
        return self.pattern.pop(0) == "s"


FRAME = bytes(960)  # 30 ms at 16 kHz


def _feed(endpointer, count):
    result = None
    for _ in range(count):
        result = endpointer.feed(FRAME, 16_000, 30)
        if result is not None:
            return result
    return result


def test_utterance_ends_after_silence():
    config = VADConfig(silence_ms=60, preroll_frames=1)
    endpointer = Endpointer(config, ScriptedDetector("-ss--"))

    assert _feed(endpointer, 5) is Endpoint.UTTERANCE
    assert len(endpointer.audio) == 5 * len(FRAME)


def test_no_speech_timeout():
    config = VADConfig(no_speech_timeout_ms=90)
    endpointer = Endpointer(config, ScriptedDetector("---"))
    assert _feed(endpointer, 3) is Endpoint.NO_SPEECH


def test_long_utterance_is_cut():
    config = VADConfig(max_utterance_ms=90, silence_ms=1000)
    endpointer = Endpointer(config, ScriptedDetector("sss"))
    assert _feed(endpointer, 3) is Endpoint.UTTERANCE


def test_fit_frame():
    assert len(fit_frame(bytes(1000), 16_000)) == 960
    assert len(fit_frame(bytes(600), 16_000)) == 640
    assert fit_frame(b"", 16_000) == b""


def test_voice_discovery(tmp_path: Path):
    (tmp_path / "en_US-lessac-medium.onnx").write_bytes(b"")
    (tmp_path / "en_US-lessac-medium.onnx.json").write_text("{}")
    (tmp_path / "ja_JP-orphan.onnx").write_bytes(b"")

    voices = discover_voices(tmp_path)

    assert [v.model_path.name for v in voices] == ["en_US-lessac-medium.onnx"]
    assert voice_locale(voices[0].model_path) == "en-US"
    assert discover_voices(tmp_path / "missing") == []
