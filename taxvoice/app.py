"""Wiring of one conversation: speech backend, Gemini, controller, renderer."""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Callable, Optional

from .core.config import Settings, get_settings
from .core.errors import SpeechBackendUnavailableError
from .core.logger import get_logger
from .core import texts
from .runtime.controller import ConversationController
from .services.dispatcher import ChatFactory
from .services.speech import RecognitionService, SynthesisService
from .ui.console import ConsoleRenderer


logger = get_logger("app")


def build_speech(
    settings: Settings,
    loop: asyncio.AbstractEventLoop,
    *,
    on_eof: Callable[[], None] | None = None,
) -> tuple[RecognitionService, SynthesisService]:
    """Instantiate the recognition and synthesis services of ``settings.speech_backend``."""
    if settings.speech_backend == "console":
        from .audio.console import ConsoleRecognizer, ConsoleSynthesizer

        recognizer = ConsoleRecognizer(loop, on_eof=on_eof)
        synthesizer = ConsoleSynthesizer(loop, chars_per_second=settings.console_speech_rate_cps)
        return recognizer, synthesizer
    if settings.speech_backend == "local":
        from .audio.recognizer import LocalRecognizer
        from .audio.synthesizer import LocalSynthesizer

        return LocalRecognizer(settings, loop), LocalSynthesizer(settings, loop)
    raise SpeechBackendUnavailableError(f"unknown speech backend: {settings.speech_backend!r}")


def _install_interrupt(loop: asyncio.AbstractEventLoop, controller: ConversationController) -> None:
    """First Ctrl+C says goodbye; a second one interrupts for real."""

    def interrupt() -> None:
        loop.remove_signal_handler(signal.SIGINT)
        logger.info("Interrupted by the user")
        controller.terminate()

    try:
        loop.add_signal_handler(signal.SIGINT, interrupt)
    except (NotImplementedError, RuntimeError):  # pragma: no cover - Windows
        logger.debug("SIGINT handler not available on this platform")


async def run_session(
    settings: Settings | None = None,
    *,
    chat_factory: ChatFactory | None = None,
    recognizer: RecognitionService | None = None,
    synthesizer: SynthesisService | None = None,
    renderer: Optional[ConsoleRenderer] = None,
    transcript: Path | None = None,
) -> ConversationController:
    """Run one conversation until it has ended and the farewell was spoken."""
    settings = settings or get_settings()
    loop = asyncio.get_running_loop()
    if chat_factory is None:
        from .services.gemini import GeminiChatFactory

        chat_factory = GeminiChatFactory(settings)

    holder: list[ConversationController] = []
    if recognizer is None and synthesizer is None:
        recognizer, synthesizer = build_speech(settings, loop, on_eof=lambda: holder[0].terminate())

    controller = ConversationController(
        recognizer=recognizer,
        synthesizer=synthesizer,
        chat_factory=chat_factory,
        settings=settings,
        loop=loop,
    )
    holder.append(controller)
    (renderer or ConsoleRenderer()).attach(controller)
    _install_interrupt(loop, controller)

    logger.info("Conversation starting (backend=%s)", settings.speech_backend)
    controller.start()
    try:
        await controller.wait_closed()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):  # pragma: no cover - Windows
            pass
        if transcript is not None:
            heading = texts.message("sources", controller.language)
            transcript.write_text(controller.messages.export_text(heading), encoding="utf-8")
            logger.info("Transcript written to %s", transcript)
    logger.info("Conversation ended after %d message(s)", len(controller.messages))
    return controller


def run(settings: Settings | None = None, *, transcript: Path | None = None) -> None:
    """Blocking entry point used by the CLI."""
    try:
        asyncio.run(run_session(settings, transcript=transcript))
    except KeyboardInterrupt:
        logger.info("Conversation aborted")
