"""Supported dialogue languages and their speech-service locales.

The first entry of ``SUPPORTED_LANGUAGES`` is the default language: the
assistant greets in it, re-prompts in it during language selection, and
``resolve`` falls back to it for any unknown code.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SupportedLanguage:
    """One row of the language table."""

    code: str
    label: str
    speech_locale: str
    keywords: tuple[str, ...] = ()


SUPPORTED_LANGUAGES: tuple[SupportedLanguage, ...] = (
    SupportedLanguage("cmn-Hant-TW", "中", "zh-TW", ("中", "中文", "chinese", "mandarin")),
    SupportedLanguage("en-US", "EN", "en-US", ("english", "en", "英文")),
    SupportedLanguage("ja-JP", "日", "ja-JP", ("日", "日本", "日本語", "japanese")),
    SupportedLanguage("ko-KR", "韓", "ko-KR", ("韓", "韓文", "한국어", "korea", "korean")),
)

DEFAULT_LANGUAGE: SupportedLanguage = SUPPORTED_LANGUAGES[0]

_BY_CODE = {language.code: language for language in SUPPORTED_LANGUAGES}


def resolve(code: str | None) -> SupportedLanguage:
    """Return the table entry for ``code``, or the default language."""
    if code is None:
        return DEFAULT_LANGUAGE
    return _BY_CODE.get(code, DEFAULT_LANGUAGE)


def is_supported(code: str | None) -> bool:
    return code is not None and code in _BY_CODE


def codes() -> list[str]:
    return [language.code for language in SUPPORTED_LANGUAGES]
