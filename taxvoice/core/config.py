"""Unified configuration for the voice assistant."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


SpeechBackend = Literal["console", "local"]


class Settings(BaseSettings):
    """Global assistant settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TAXVOICE_",
        extra="allow",
        populate_by_name=True,
    )

    # Gemini
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TAXVOICE_GEMINI_API_KEY", "API_KEY", "GEMINI_API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash"
    gemini_timeout_sec: float = 60.0

    # Dialogue
    inactivity_timeout_sec: float = 30.0
    idle_timeout_first_language_choice: bool = False

    # Logs
    log_dir: str | None = None
    log_rotate_mb: int = 5
    log_retention_days: int = 7
    log_level: str = "INFO"

    # Speech backend
    speech_backend: SpeechBackend = "console"
    console_speech_rate_cps: float = 0.0

    # Local audio backend
    audio_input_device: str | None = None
    audio_output_device: str | None = None
    asr_model: str = "small"
    asr_device: str = "cpu"
    asr_compute_type: str = "int8"
    vad_aggressiveness: int = 2
    vad_silence_ms: int = 800
    asr_no_speech_timeout_sec: float = 8.0
    asr_max_utterance_sec: float = 20.0
    tts_voices_dir: str | None = None
    tts_length_scale: float = 1.0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls.json_config_settings_source,
            file_secret_settings,
        )

    @staticmethod
    def json_config_settings_source() -> dict[str, object]:
        """Load config.json at the project root when present."""
        config_path = Path(__file__).resolve().parents[2] / "config.json"
        if config_path.is_file():
            try:
                return json.loads(config_path.read_text(encoding="utf-8"))
            except ValueError:
                return {}
        return {}

    def require_api_key(self) -> str:
        """Return the Gemini API key or fail fast."""
        if not self.gemini_api_key:
            raise ConfigurationError(
                "API_KEY environment variable is not set (or TAXVOICE_GEMINI_API_KEY)."
            )
        return self.gemini_api_key

    def masked(self) -> dict[str, object]:
        """Settings as a JSON-friendly dict with secrets hidden."""
        data = self.model_dump(mode="json")
        if data.get("gemini_api_key"):
            data["gemini_api_key"] = "***"
        return data


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
