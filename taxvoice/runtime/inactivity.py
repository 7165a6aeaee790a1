"""Single idle timer ending the conversation."""

from __future__ import annotations

import asyncio
from typing import Callable

from ..core.logger import get_logger
from ..state.session import Session


logger = get_logger("conversation")


class InactivitySupervisor:
    """Keeps at most one armed timer in ``session.inactivity_timer``."""

    def __init__(self, session: Session, loop: asyncio.AbstractEventLoop) -> None:
        self.session = session
        self.loop = loop

    @property
    def armed(self) -> bool:
        return self.session.inactivity_timer is not None

    def arm(self, seconds: float, on_fire: Callable[[], None]) -> None:
        self.cancel()
        self.session.inactivity_timer = self.loop.call_later(seconds, self._fire, on_fire)
        logger.debug("Inactivity timer armed for %.1fs", seconds)

    def cancel(self) -> None:
        timer = self.session.inactivity_timer
        if timer is None:
            return
        timer.cancel()
        self.session.inactivity_timer = None

    def _fire(self, on_fire: Callable[[], None]) -> None:
        self.session.inactivity_timer = None
        logger.info("Inactivity timeout reached")
        on_fire()
