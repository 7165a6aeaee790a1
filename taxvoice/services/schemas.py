"""Data exchanged between the query dispatcher and the conversation."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..state.message_log import Source


@dataclass(slots=True)
class QueryResult:
    """Usable answer for the caller, even when the AI service failed."""

    text: str
    sources: list[Source] = field(default_factory=list)
    language: str | None = None
    failed: bool = False
