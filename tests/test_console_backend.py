import asyncio

import pytest

from taxvoice.audio.console import ConsoleRecognizer, ConsoleSynthesizer
from taxvoice.core.errors import RecognitionAlreadyStartedError
from taxvoice.services.speech import Utterance


def _lines(*lines):
    pending = iter(lines)
    return lambda: next(pending, "")


def _bind(recognizer):
    events = []
    recognizer.bind(
        on_start=lambda: events.append(("start", None)),
        on_result=lambda event: events.append(("result", event.results[0].alternatives[0].transcript)),
        on_error=lambda error: events.append(("error", error.kind)),
        on_end=lambda: events.append(("end", None)),
    )
    return events


@pytest.mark.asyncio
async def test_console_recognizer_runs_one_line_per_start():
    eof = []
    recognizer = ConsoleRecognizer(readline=_lines("綜所稅\n", "\n"), on_eof=lambda: eof.append(True))
    events = _bind(recognizer)

    recognizer.start()
    with pytest.raises(RecognitionAlreadyStartedError):
        recognizer.start()
    await asyncio.sleep(0.05)
    assert events == [("start", None), ("result", "綜所稅"), ("end", None)]
    assert not recognizer.running

    events.clear()
    recognizer.start()
    await asyncio.sleep(0.05)
    assert events == [("start", None), ("error", "no-speech"), ("end", None)]

    events.clear()
    recognizer.start()
    await asyncio.sleep(0.05)
    assert events == [("start", None), ("error", "aborted"), ("end", None)]
    assert eof == [True]


@pytest.mark.asyncio
async def test_console_recognizer_stop():
    recognizer = ConsoleRecognizer(readline=_lines())
    events = _bind(recognizer)
    recognizer.stop()
    recognizer.start()
    recognizer.stop()
    await asyncio.sleep(0.02)
    assert events[:2] == [("start", None), ("end", None)]


@pytest.mark.asyncio
async def test_console_synthesizer_completes_and_cancels():
    printed = []
    synthesizer = ConsoleSynthesizer(echo=printed.append)
    outcome = []

    assert {voice.lang for voice in synthesizer.voices()} == {"zh-TW", "en-US", "ja-JP", "ko-KR"}

    first = Utterance("first", "en-US", on_end=lambda: outcome.append("first-end"), on_error=outcome.append)
    second = Utterance("second", "en-US", on_end=lambda: outcome.append("second-end"), on_error=outcome.append)
    synthesizer.speak(first)
    synthesizer.speak(second)
    await asyncio.sleep(0.02)

    assert printed == ["first", "second"]
    assert outcome == ["canceled", "second-end"]
