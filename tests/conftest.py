from __future__ import annotations

import os
import tempfile
from types import SimpleNamespace

import pytest

os.environ.setdefault("TAXVOICE_LOG_DIR", tempfile.mkdtemp(prefix="taxvoice-logs-"))

from taxvoice.core.errors import RecognitionAlreadyStartedError  # noqa: E402
from taxvoice.services.speech import (  # noqa: E402
    CANCELED,
    RecognitionAlternative,
    RecognitionError,
    RecognitionEvent,
    RecognitionResult,
    Voice,
)


class FakeRecognizer:
    """Recognition service emitting its events synchronously."""

    def __init__(self) -> None:
        self.lang = ""
        self.interim_results = False
        self.continuous = True
        self.running = False
        self.starts = 0
        self.stops = 0
        self.fail_start: Exception | None = None

    def bind(self, *, on_start, on_result, on_error, on_end) -> None:
        self.on_start = on_start
        self.on_result = on_result
        self.on_error = on_error
        self.on_end = on_end

    def start(self) -> None:
        if self.fail_start is not None:
            raise self.fail_start
        if self.running:
            raise RecognitionAlreadyStartedError("already started")
        self.running = True
        self.starts += 1
        self.on_start()

    def stop(self) -> None:
        self.stops += 1
        self.end()

    def end(self) -> None:
        if self.running:
            self.running = False
            self.on_end()

    def say(self, text: str) -> None:
        """One final result followed by the end of the run."""
        event = RecognitionEvent(0, [RecognitionResult(True, [RecognitionAlternative(text)])])
        self.on_result(event)
        self.end()

    def fail(self, kind: str) -> None:
        self.on_error(RecognitionError(kind))
        self.end()


class FakeSynthesizer:
    """Synthesis service completing only when the test says so."""

    def __init__(self, voices: list[Voice] | None = None) -> None:
        self._voices = list(voices) if voices is not None else [
            Voice("zh", "zh-TW"),
            Voice("en", "en-US"),
            Voice("ja", "ja-JP"),
            Voice("ko", "ko-KR"),
        ]
        self.spoken = []
        self.current = None
        self.voice_callbacks = []
        self.cancels = 0
        self.fail_speak: Exception | None = None

    def voices(self) -> list[Voice]:
        return list(self._voices)

    def set_voices(self, voices: list[Voice]) -> None:
        self._voices = list(voices)
        callbacks, self.voice_callbacks = self.voice_callbacks, []
        for callback in callbacks:
            callback()

    def on_voices_changed(self, callback) -> None:
        self.voice_callbacks.append(callback)

    def speak(self, utterance) -> None:
        if self.fail_speak is not None:
            raise self.fail_speak
        self.spoken.append(utterance)
        self.current = utterance

    def cancel(self) -> None:
        self.cancels += 1
        utterance, self.current = self.current, None
        if utterance is not None and utterance.on_error is not None:
            utterance.on_error(CANCELED)

    def finish(self) -> None:
        utterance, self.current = self.current, None
        assert utterance is not None, "nothing is being spoken"
        utterance.on_end()


def grounded_response(text: str, sources: list[tuple[str | None, str | None]] = ()) -> SimpleNamespace:
    chunks = [SimpleNamespace(web=SimpleNamespace(uri=uri, title=title)) for uri, title in sources]
    metadata = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=metadata)])


class FakeChat:
    def __init__(self, replies) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []

    async def send_message(self, prompt: str):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = await reply()
        return reply


class FakeChatFactory:
    def __init__(self, *replies) -> None:
        self.chat = FakeChat(replies)
        self.created = 0

    def create_chat(self) -> FakeChat:
        self.created += 1
        return self.chat


@pytest.fixture()
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture()
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()
