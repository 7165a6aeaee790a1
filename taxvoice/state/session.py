"""Session state shared by the orchestration components."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.errors import StateTransitionError
from ..core.languages import DEFAULT_LANGUAGE


class ConversationPhase(str, Enum):
    """Coarse stage of the conversation lifecycle."""

    PRE_START = "pre-start"
    WELCOMING = "welcoming"
    LANG_SELECT = "lang-select"
    CHATTING = "chatting"
    ENDED = "ended"


class Status(str, Enum):
    """What the assistant is doing right now."""

    IDLE = "idle"
    LISTENING = "listening"
    THINKING = "thinking"
    SPEAKING = "speaking"


_ALLOWED_STATUS: dict[ConversationPhase, frozenset[Status]] = {
    ConversationPhase.PRE_START: frozenset({Status.IDLE}),
    ConversationPhase.WELCOMING: frozenset({Status.IDLE, Status.SPEAKING}),
    ConversationPhase.LANG_SELECT: frozenset({Status.IDLE, Status.LISTENING, Status.SPEAKING}),
    ConversationPhase.CHATTING: frozenset(Status),
    ConversationPhase.ENDED: frozenset({Status.IDLE, Status.SPEAKING}),
}

_PHASE_ORDER = list(ConversationPhase)


def check_state(phase: ConversationPhase, status: Status, *, capture_active: bool = False) -> None:
    """Raise StateTransitionError unless (phase, status) is a legal pair."""
    if status not in _ALLOWED_STATUS[phase]:
        raise StateTransitionError(f"status {status.value!r} not allowed in phase {phase.value!r}")
    if status is Status.SPEAKING and capture_active:
        raise StateTransitionError("cannot speak while speech capture is active")


def check_phase_change(current: ConversationPhase, target: ConversationPhase) -> None:
    """Phases only move forward; ``chatting`` may repeat, ``ended`` is final."""
    if current is target and current is not ConversationPhase.ENDED:
        return
    if current is ConversationPhase.ENDED:
        raise StateTransitionError("the conversation has ended")
    if _PHASE_ORDER.index(target) <= _PHASE_ORDER.index(current):
        raise StateTransitionError(f"cannot go from {current.value!r} back to {target.value!r}")


@dataclass(slots=True)
class Session:
    """Mutable per-conversation refs, owned by the conversation controller."""

    language: str = DEFAULT_LANGUAGE.code
    has_started: bool = False
    stop_deliberate: bool = False
    chat: Any | None = None
    inactivity_timer: asyncio.TimerHandle | None = None
    utterance_token: int | None = None
    query_in_flight: bool = False
    interim_transcript: str = ""
