from types import SimpleNamespace

import pytest

from taxvoice.core.config import Settings
from taxvoice.core.errors import ConfigurationError
from taxvoice.core.texts import SYSTEM_PROMPT
from taxvoice.services.gemini import GeminiChatFactory


def _client(calls):
    def create(model, config):
        calls.append((model, config))
        return SimpleNamespace(model=model)

    return SimpleNamespace(aio=SimpleNamespace(chats=SimpleNamespace(create=create)))


def test_chat_uses_system_prompt_and_search_tool():
    calls = []
    factory = GeminiChatFactory(Settings(gemini_api_key="k", gemini_model="gemini-test"), client=_client(calls))

    chat = factory.create_chat()

    assert chat.model == "gemini-test"
    model, config = calls[0]
    assert config.system_instruction == SYSTEM_PROMPT
    assert config.tools[0].google_search is not None


def test_missing_api_key(monkeypatch):
    for name in ("API_KEY", "GEMINI_API_KEY", "TAXVOICE_GEMINI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(ConfigurationError):
        GeminiChatFactory(Settings(), client=_client([]))


def test_settings_read_api_key_aliases(monkeypatch):
    monkeypatch.delenv("TAXVOICE_GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "from-env")
    settings = Settings()
    assert settings.require_api_key() == "from-env"
    assert settings.masked()["gemini_api_key"] == "***"
