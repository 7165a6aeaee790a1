"""Conversation state machine coordinating capture, queries, playback and timers."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from ..core.config import Settings, get_settings
from ..core.errors import StateTransitionError
from ..core.languages import DEFAULT_LANGUAGE, resolve
from ..core.logger import get_logger
from ..core import texts
from ..core.trace import new_turn_id
from ..services.dispatcher import ChatFactory, QueryDispatcher
from ..services.speech import RecognitionService, SynthesisService
from ..state.message_log import MessageKind, MessageLog, Role
from ..state.session import ConversationPhase, Session, Status, check_phase_change, check_state
from .capture import SpeechCaptureController
from .inactivity import InactivitySupervisor
from .playback import SpeechPlaybackController
from .selector import LanguageSelector


logger = get_logger("conversation")

Observer = Callable[["ConversationController"], None]


class ConversationController:
    """Sole owner of phase and status; every collaborator reports back here.

    All methods must run on the event loop thread. Collaborator events are
    bound once, and each handler re-reads the current phase and status, so a
    late event from a previous step is judged against the present state.
    """

    def __init__(
        self,
        *,
        recognizer: RecognitionService | None,
        synthesizer: SynthesisService | None,
        chat_factory: ChatFactory,
        settings: Settings | None = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.loop = loop or asyncio.get_running_loop()
        self.session = Session()
        self.messages = MessageLog()
        self._phase = ConversationPhase.PRE_START
        self._status = Status.IDLE
        self._observers: list[Observer] = []
        self._query_task: Optional[asyncio.Task[None]] = None
        self._ended = asyncio.Event()

        self.capture = SpeechCaptureController(recognizer, self.session, self)
        self.playback = SpeechPlaybackController(synthesizer, self.session)
        self.inactivity = InactivitySupervisor(self.session, self.loop)
        self.selector = LanguageSelector()
        self.dispatcher = QueryDispatcher(chat_factory, self.session)

    # ------------------------------------------------------------------ #
    # Observable state
    # ------------------------------------------------------------------ #
    @property
    def phase(self) -> ConversationPhase:
        return self._phase

    @property
    def status(self) -> Status:
        return self._status

    @property
    def language(self) -> str:
        return self.session.language

    @property
    def interim_transcript(self) -> str:
        return self.session.interim_transcript

    @property
    def query_task(self) -> Optional[asyncio.Task[None]]:
        return self._query_task

    def status_text(self) -> str:
        return texts.status_text(self._phase, self._status, self.session.interim_transcript, self.session.language)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register a callback run after every state or log change."""
        self._observers.append(observer)
        return lambda: self._observers.remove(observer)

    async def wait_closed(self) -> None:
        """Wait until the conversation has ended and the farewell was spoken."""
        await self._ended.wait()

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        """Greet in the default language, then listen for a language choice."""
        if self._phase is not ConversationPhase.PRE_START:
            raise StateTransitionError(f"cannot start from phase {self._phase.value!r}")
        self.session.has_started = True
        self._transition(phase=ConversationPhase.WELCOMING)
        if not self.capture.supported:
            logger.error("Speech recognition is not supported in this runtime.")
            self._log(Role.MODEL, texts.message("recognitionUnsupported"))

        welcome = texts.message("welcome", DEFAULT_LANGUAGE.code)
        self._log(Role.MODEL, welcome, MessageKind.WELCOME)
        self._speak(welcome, DEFAULT_LANGUAGE.speech_locale, then=self._enter_language_selection)

    def press_mic(self) -> None:
        """Mic button: the first press starts the conversation, later ones toggle capture."""
        if not self.session.has_started:
            self.start()
        else:
            self.toggle_capture()

    def toggle_capture(self) -> None:
        if self._status is Status.LISTENING:
            self.capture.stop()
        elif (
            self._status is Status.IDLE
            and self._phase is not ConversationPhase.ENDED
            and self.session.has_started
        ):
            self.capture.start()

    def terminate(self) -> None:
        """End the conversation with a farewell in the current language."""
        if self._phase is ConversationPhase.ENDED:
            return
        logger.info("Ending conversation from phase %s", self._phase.value)
        self.capture.stop()
        self.inactivity.cancel()
        self._transition(phase=ConversationPhase.ENDED, status=Status.IDLE)
        language = resolve(self.session.language)
        farewell = texts.message("farewell", language.code)
        self._log(Role.MODEL, farewell)
        self._speak(farewell, language.speech_locale, then=self._ended.set)

    def on_final_transcript(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        self.inactivity.cancel()
        self.session.interim_transcript = ""
        new_turn_id()
        if self._phase is ConversationPhase.LANG_SELECT:
            self._process_language_choice(text)
        elif self._phase is ConversationPhase.CHATTING:
            self._submit_query(text)
        else:
            logger.debug("Transcript ignored in phase %s", self._phase.value)
            self._notify()

    # ------------------------------------------------------------------ #
    # Capture listener
    # ------------------------------------------------------------------ #
    def capture_locale(self) -> str:
        if self._phase is ConversationPhase.CHATTING:
            return resolve(self.session.language).speech_locale
        return ""

    def capture_allowed(self) -> bool:
        return self.session.has_started and self._phase is not ConversationPhase.ENDED

    def on_capture_started(self) -> None:
        if self._phase not in (ConversationPhase.LANG_SELECT, ConversationPhase.CHATTING) or self._status in (
            Status.SPEAKING,
            Status.THINKING,
        ):
            logger.info("Recognition started while %s/%s; stopping it", self._phase.value, self._status.value)
            self.capture.stop()
            return
        self._transition(status=Status.LISTENING)

    def on_capture_stopped(self) -> None:
        if self._status is Status.LISTENING:
            self._transition(status=Status.IDLE)
        if self.session.interim_transcript:
            self.session.interim_transcript = ""
            self._notify()

    def on_capture_failed(self, kind: str) -> None:
        logger.warning("Speech capture failed (%s); waiting for a manual retry", kind)
        if self._status is Status.LISTENING:
            self._transition(status=Status.IDLE)

    def on_interim_transcript(self, text: str) -> None:
        if text != self.session.interim_transcript:
            self.session.interim_transcript = text
            self._notify()

    # ------------------------------------------------------------------ #
    # Dialogue steps
    # ------------------------------------------------------------------ #
    def _enter_language_selection(self) -> None:
        if self._phase is not ConversationPhase.WELCOMING:
            return
        self._transition(phase=ConversationPhase.LANG_SELECT)
        if self.settings.idle_timeout_first_language_choice:
            self.inactivity.arm(self.settings.inactivity_timeout_sec, self.terminate)
        self.capture.start()

    def _process_language_choice(self, transcript: str) -> None:
        self.capture.stop()
        code = self.selector.interpret(transcript)
        if code is None:
            logger.info("Language choice not understood: %r", transcript)
            retry = texts.message("languageSelectRetry", DEFAULT_LANGUAGE.code)
            self._log(Role.MODEL, retry)
            self._speak(retry, DEFAULT_LANGUAGE.speech_locale, then=self._resume_dialogue)
            return

        logger.info("Language selected: %s", code, extra={"language": code})
        self.session.language = code
        self._transition(phase=ConversationPhase.CHATTING)
        welcome = texts.message("welcome", code)
        self._log(Role.MODEL, welcome, MessageKind.WELCOME)
        self._speak(welcome, resolve(code).speech_locale, then=self._resume_dialogue)

    def _submit_query(self, text: str) -> None:
        if self.session.query_in_flight:
            logger.warning("Query already in flight; dropping transcript %r", text)
            return
        self.capture.stop()
        self._log(Role.USER, text)
        self.session.query_in_flight = True
        self._transition(status=Status.THINKING)
        self._query_task = self.loop.create_task(self._handle_query(text))
        self._query_task.add_done_callback(self._query_done)

    async def _handle_query(self, text: str) -> None:
        result = await self.dispatcher.dispatch(text)
        if self._phase is ConversationPhase.ENDED:
            logger.info("Discarding answer received after the conversation ended")
            self.session.query_in_flight = False
            return
        self._log(Role.MODEL, result.text, sources=result.sources)
        self.session.query_in_flight = False
        self._transition(status=Status.IDLE)
        if result.failed:
            logger.info("Query failed; apologising and listening again")
        language = resolve(self.session.language)
        self._speak(result.text, language.speech_locale, then=self._resume_dialogue)

    def _query_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            self.session.query_in_flight = False
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Unexpected error while handling a query", exc_info=exc)
        self.session.query_in_flight = False
        if self._phase is ConversationPhase.ENDED:
            return
        self.playback.cancel()
        if self._status in (Status.THINKING, Status.SPEAKING):
            self._transition(status=Status.IDLE)
        self._log(Role.MODEL, texts.QUERY_APOLOGY)
        self._resume_dialogue()

    def _resume_dialogue(self) -> None:
        """After playback: arm the idle timer and listen again."""
        if self._phase not in (ConversationPhase.LANG_SELECT, ConversationPhase.CHATTING):
            return
        self.inactivity.arm(self.settings.inactivity_timeout_sec, self.terminate)
        self.capture.start()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _speak(self, text: str, locale: str, *, then: Callable[[], None] | None = None) -> None:
        if self.capture.active:
            self.capture.stop()
        if self.playback.supported:
            self._transition(status=Status.SPEAKING)
        self.playback.speak(text, locale, on_complete=lambda: self._playback_complete(then))

    def _playback_complete(self, then: Callable[[], None] | None) -> None:
        if self._status is Status.SPEAKING:
            self._transition(status=Status.IDLE)
        if then is not None:
            then()

    def _log(self, role: Role, text: str, kind: MessageKind = MessageKind.INTERACTION, sources=None) -> None:
        self.messages.add(role, text, kind, sources)
        self._notify()

    def _transition(
        self,
        *,
        phase: ConversationPhase | None = None,
        status: Status | None = None,
    ) -> None:
        new_phase = self._phase if phase is None else phase
        new_status = self._status if status is None else status
        if phase is not None:
            check_phase_change(self._phase, new_phase)
        check_state(new_phase, new_status, capture_active=self.capture.active)
        if new_phase is self._phase and new_status is self._status:
            return
        logger.debug(
            "%s/%s -> %s/%s",
            self._phase.value,
            self._status.value,
            new_phase.value,
            new_status.value,
            extra={"phase": new_phase.value, "status": new_status.value, "language": self.session.language},
        )
        self._phase = new_phase
        self._status = new_status
        self._notify()

    def _notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                logger.exception("Conversation observer failed")
