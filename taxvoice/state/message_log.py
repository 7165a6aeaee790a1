"""Ordered history of the exchanged turns."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator
from uuid import uuid4


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class MessageKind(str, Enum):
    WELCOME = "welcome"
    INTERACTION = "interaction"


@dataclass(frozen=True, slots=True)
class Source:
    """Web page cited by the AI service."""

    uri: str
    title: str


@dataclass(frozen=True, slots=True)
class Message:
    """Single conversation entry."""

    id: str
    role: Role
    text: str
    kind: MessageKind = MessageKind.INTERACTION
    sources: tuple[Source, ...] = field(default_factory=tuple)


class MessageLog:
    """Append-only log where a new welcome message replaces the previous one."""

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def add(
        self,
        role: Role,
        text: str,
        kind: MessageKind = MessageKind.INTERACTION,
        sources: Iterable[Source] | None = None,
    ) -> Message:
        message = Message(
            id=uuid4().hex[:12],
            role=role,
            text=text,
            kind=kind,
            sources=tuple(sources or ()),
        )
        if kind is MessageKind.WELCOME:
            self._messages = [m for m in self._messages if m.kind is not MessageKind.WELCOME]
        self._messages.append(message)
        return message

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def export_text(self, sources_heading: str = "Sources") -> str:
        """Render the conversation as plain text, one block per message."""
        blocks: list[str] = []
        for message in self._messages:
            speaker = "User" if message.role is Role.USER else "Assistant"
            lines = [f"{speaker}: {message.text}"]
            if message.sources:
                lines.append(f"  {sources_heading}:")
                lines.extend(f"  - {source.title} <{source.uri}>" for source in message.sources)
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + ("\n" if blocks else "")
