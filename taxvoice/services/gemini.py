"""Google Gemini chat sessions with search grounding."""

from __future__ import annotations

from typing import Any

from google import genai
from google.genai import types

from ..core.config import Settings, get_settings
from ..core.texts import SYSTEM_PROMPT


class GeminiChatFactory:
    """Builds Gemini chats sharing one client, system prompt and search tool."""

    def __init__(self, settings: Settings | None = None, *, client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        api_key = self.settings.require_api_key()
        if client is None:
            http_options = types.HttpOptions(timeout=int(self.settings.gemini_timeout_sec * 1000))
            client = genai.Client(api_key=api_key, http_options=http_options)
        self._client = client

    def build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )

    def create_chat(self) -> Any:
        """Return an async chat; ``await chat.send_message(text)`` keeps context."""
        return self._client.aio.chats.create(
            model=self.settings.gemini_model,
            config=self.build_config(),
        )
