"""Sends transcripts to the AI query service and post-processes replies."""

from __future__ import annotations

import re
from typing import Any, Protocol

from ..core.languages import is_supported
from ..core.logger import get_logger
from ..core.texts import QUERY_APOLOGY
from ..state.message_log import Source
from ..state.session import Session
from .schemas import QueryResult


logger = get_logger("query")

# Trailing "[lang: <code>]" tag the model appends to every answer.
LANGUAGE_TAG_RE = re.compile(r"\s*\[lang:\s*([a-zA-Z]{2,3}(?:-[a-zA-Z0-9]{2,4})+)\]\s*$")


class ChatFactory(Protocol):
    """Creates the long-lived AI conversation handle."""

    def create_chat(self) -> Any: ...


def split_language_tag(text: str) -> tuple[str, str | None]:
    """Return ``text`` without its trailing language tag, and the tag's code."""
    match = LANGUAGE_TAG_RE.search(text)
    if match is None:
        return text.strip(), None
    return text[: match.start()].strip(), match.group(1)


def extract_sources(response: Any) -> list[Source]:
    """Web citations from the first candidate's grounding metadata."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    sources: list[Source] = []
    seen: set[str] = set()
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        title = getattr(web, "title", None)
        if not uri or not title or uri in seen:
            continue
        seen.add(uri)
        sources.append(Source(uri=uri, title=title))
    return sources


class QueryDispatcher:
    """Owns the AI conversation handle of a session."""

    def __init__(self, factory: ChatFactory, session: Session) -> None:
        self._factory = factory
        self.session = session

    async def dispatch(self, prompt: str) -> QueryResult:
        """Ask the AI service; failures come back as an apology, never raised."""
        try:
            if self.session.chat is None:
                self.session.chat = self._factory.create_chat()
                logger.info("AI conversation created")
            response = await self.session.chat.send_message(prompt)
            raw_text = getattr(response, "text", None) or ""
            sources = extract_sources(response)
        except Exception:
            logger.exception("Error sending message to the AI service")
            return QueryResult(text=QUERY_APOLOGY, failed=True)

        text, code = split_language_tag(raw_text)
        if not text:
            logger.warning("AI service returned an empty answer")
            return QueryResult(text=QUERY_APOLOGY, failed=True)

        if code is None:
            logger.info("Answer without language tag; keeping %s", self.session.language)
        elif is_supported(code):
            if code != self.session.language:
                logger.info("Switching dialogue language %s -> %s", self.session.language, code)
            self.session.language = code
        else:
            logger.warning("Unsupported language tag %r; keeping %s", code, self.session.language)

        return QueryResult(text=text, sources=sources, language=self.session.language)
