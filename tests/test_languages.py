from taxvoice.core import texts
from taxvoice.core.languages import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, codes, is_supported, resolve
from taxvoice.state.session import ConversationPhase, Status


def test_default_language_is_first_entry():
    assert DEFAULT_LANGUAGE is SUPPORTED_LANGUAGES[0]
    assert DEFAULT_LANGUAGE.code == "cmn-Hant-TW"
    assert DEFAULT_LANGUAGE.speech_locale == "zh-TW"


def test_resolve_is_total():
    assert resolve("ja-JP").speech_locale == "ja-JP"
    assert resolve("fr-FR") is DEFAULT_LANGUAGE
    assert resolve(None) is DEFAULT_LANGUAGE
    assert resolve("") is DEFAULT_LANGUAGE


def test_is_supported_and_codes():
    assert codes() == ["cmn-Hant-TW", "en-US", "ja-JP", "ko-KR"]
    assert is_supported("ko-KR")
    assert not is_supported("zh-TW")
    assert not is_supported(None)


def test_every_language_has_welcome_and_farewell():
    for language in SUPPORTED_LANGUAGES:
        assert texts.MULTI_LANG_MESSAGES["welcome"][language.code]
        assert texts.MULTI_LANG_MESSAGES["farewell"][language.code]


def test_message_falls_back_to_default_language():
    retry = texts.message("languageSelectRetry", "en-US")
    assert retry == texts.MULTI_LANG_MESSAGES["languageSelectRetry"]["cmn-Hant-TW"]
    assert texts.message("farewell", "unknown") == texts.message("farewell")


def test_status_text():
    assert texts.status_text(ConversationPhase.PRE_START, Status.IDLE, "", None) == "點擊麥克風開始"
    assert texts.status_text(ConversationPhase.CHATTING, Status.THINKING, "", "en-US") == "Thinking..."
    assert texts.status_text(ConversationPhase.CHATTING, Status.IDLE, "", "en-US") == texts.message("followUp", "en-US")
    assert texts.status_text(ConversationPhase.CHATTING, Status.LISTENING, "what is", "en-US") == "what is"
    assert texts.status_text(ConversationPhase.ENDED, Status.IDLE, "", "ja-JP") == texts.message("farewell", "ja-JP")


def test_system_prompt_requires_language_tag():
    assert "[lang:" in texts.SYSTEM_PROMPT
