"""Prints the conversation as it happens."""

from __future__ import annotations

from typing import Callable

import typer

from ..core import texts
from ..runtime.controller import ConversationController
from ..state.message_log import Message, Role
from ..state.session import ConversationPhase


class ConsoleRenderer:
    """Observer echoing new messages and status changes to the terminal."""

    def __init__(self, echo: Callable[[str], None] | None = None, *, show_status: bool = True) -> None:
        self._echo = echo or typer.echo
        self.show_status = show_status
        self._seen: set[str] = set()
        self._last_status = ""
        self._last_phase: ConversationPhase | None = None

    def attach(self, controller: ConversationController) -> Callable[[], None]:
        return controller.subscribe(self)

    def __call__(self, controller: ConversationController) -> None:
        for message in controller.messages:
            if message.id in self._seen:
                continue
            self._seen.add(message.id)
            self._echo(self.format_message(message, controller.language))

        if controller.phase is not self._last_phase:
            self._last_phase = controller.phase
            if controller.phase is ConversationPhase.LANG_SELECT:
                self._echo(typer.style(texts.message("languageSelectPrompt"), dim=True))

        if self.show_status:
            status = controller.status_text()
            if status != self._last_status:
                self._last_status = status
                self._echo(typer.style(f"[{status}]", dim=True))

    @staticmethod
    def format_message(message: Message, language: str) -> str:
        if message.role is Role.USER:
            lines = [typer.style("> ", fg=typer.colors.CYAN) + message.text]
        else:
            lines = [typer.style("AI: ", fg=typer.colors.GREEN, bold=True) + message.text]
        if message.sources:
            lines.append("   " + texts.message("sources", language))
            lines.extend(f"   - {source.title} ({source.uri})" for source in message.sources)
        return "\n".join(lines)
