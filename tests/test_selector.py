import pytest

from taxvoice.runtime.selector import LanguageSelector, normalize_transcript


@pytest.mark.parametrize(
    "transcript,expected",
    [
        ("請用英文", "en-US"),
        ("English please.", "en-US"),
        ("中文", "cmn-Hant-TW"),
        ("Mandarin!", "cmn-Hant-TW"),
        ("日本語でお願いします", "ja-JP"),
        ("Japanese", "ja-JP"),
        ("한국어", "ko-KR"),
        ("韓文。", "ko-KR"),
        ("Korean?", "ko-KR"),
    ],
)
def test_selects_language(transcript, expected):
    assert LanguageSelector().interpret(transcript) == expected


@pytest.mark.parametrize("transcript", ["", "   ", "hello", "French", "often"])
def test_no_match(transcript):
    assert LanguageSelector().interpret(transcript) is None


def test_first_language_in_table_order_wins():
    assert LanguageSelector().interpret("中文 or English") == "cmn-Hant-TW"


def test_normalize_transcript():
    assert normalize_transcript("  English.  ") == "english"
    assert normalize_transcript("中文？") == "中文"
