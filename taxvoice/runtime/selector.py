"""Maps the spoken language choice to a supported language."""

from __future__ import annotations

import re
from typing import Sequence

from ..core.languages import SUPPORTED_LANGUAGES, SupportedLanguage


_TRAILING_STOPS = "。.！!？? \t\r\n"
_LATIN_RE = re.compile(r"^[a-z]+$")


def normalize_transcript(transcript: str) -> str:
    return transcript.lower().strip().rstrip(_TRAILING_STOPS)


def _matches(keyword: str, text: str) -> bool:
    if _LATIN_RE.match(keyword):
        return re.search(rf"(?<![a-z]){re.escape(keyword)}(?![a-z])", text) is not None
    return keyword in text


class LanguageSelector:
    """Keyword matcher; the first language in table order wins."""

    def __init__(self, languages: Sequence[SupportedLanguage] = SUPPORTED_LANGUAGES) -> None:
        self.languages = tuple(languages)

    def interpret(self, transcript: str) -> str | None:
        text = normalize_transcript(transcript)
        if not text:
            return None
        for language in self.languages:
            if any(_matches(keyword, text) for keyword in language.keywords):
                return language.code
        return None
