"""Local synthesis service: Piper voices played through sounddevice."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Callable, Optional

from ..core.config import Settings, get_settings
from ..core.logger import get_logger
from ..services.speech import CANCELED, SYNTHESIS_FAILED, SYNTHESIS_UNAVAILABLE, Utterance, Voice
from .playback import PlaybackConfig, SpeechPlayback
from .tts import PiperConfig, PiperTTS, discover_voices, voice_locale


logger = get_logger("speech")


class LocalSynthesizer:
    """SynthesisService over the Piper models found in ``tts_voices_dir``.

    The voice list starts empty and is filled by a background scan, after
    which the ``on_voices_changed`` callbacks run.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        *,
        playback: SpeechPlayback | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.loop = loop or asyncio.get_running_loop()
        self.playback = playback or SpeechPlayback(PlaybackConfig(device_name=self.settings.audio_output_device))
        self._configs: dict[str, PiperConfig] = {}
        self._voices: list[Voice] = []
        self._voice_callbacks: list[Callable[[], None]] = []
        self._engines: dict[Path, PiperTTS] = {}
        self._engine_lock = threading.Lock()
        self._generation = 0
        self._current: Utterance | None = None
        self._loading = False
        self._loaded = False

    # ------------------------------------------------------------------ #
    # Voices
    # ------------------------------------------------------------------ #
    def voices(self) -> list[Voice]:
        if not self._loaded:
            self.load_voices()
        return list(self._voices)

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        if self._loaded:
            self.loop.call_soon(callback)
            return
        self._voice_callbacks.append(callback)
        self.load_voices()

    def load_voices(self) -> None:
        """Scan the voices directory off the loop thread."""
        if self._loading:
            return
        self._loading = True
        directory = Path(self.settings.tts_voices_dir or "voices")
        future = self.loop.run_in_executor(None, discover_voices, directory)
        future.add_done_callback(self._voices_scanned)

    def _voices_scanned(self, future: asyncio.Future[list[PiperConfig]]) -> None:
        self._loading = False
        try:
            configs = future.result()
        except Exception:
            logger.exception("Could not scan Piper voices")
            configs = []
        self._configs = {}
        voices: list[Voice] = []
        for config in configs:
            config.length_scale = self.settings.tts_length_scale
            name = config.model_path.stem
            self._configs[name] = config
            voices.append(Voice(name=name, lang=voice_locale(config.model_path)))
        self._voices = voices
        self._loaded = True
        logger.info("Loaded %d Piper voice(s)", len(voices))
        callbacks, self._voice_callbacks = self._voice_callbacks, []
        for callback in callbacks:
            callback()

    # ------------------------------------------------------------------ #
    # Speaking
    # ------------------------------------------------------------------ #
    def speak(self, utterance: Utterance) -> None:
        self.cancel()
        voice = utterance.voice or (self._voices[0] if self._voices else None)
        config = self._configs.get(voice.name) if voice is not None else None
        if config is None:
            logger.error("No Piper voice available for %s", utterance.lang)
            if utterance.on_error is not None:
                self.loop.call_soon(utterance.on_error, SYNTHESIS_UNAVAILABLE)
            return
        self._generation += 1
        generation = self._generation
        self._current = utterance
        future = self.loop.run_in_executor(None, self._synthesize, config, utterance.text)
        future.add_done_callback(lambda done: self._synthesized(done, utterance, generation))

    def cancel(self) -> None:
        utterance = self._current
        self._generation += 1
        self.playback.stop()
        if utterance is None:
            return
        self._current = None
        if utterance.on_error is not None:
            self.loop.call_soon(utterance.on_error, CANCELED)

    def _synthesize(self, config: PiperConfig, text: str) -> tuple[bytes, int]:
        return self._engine(config).synthesize(text)

    def _engine(self, config: PiperConfig) -> PiperTTS:
        with self._engine_lock:
            engine = self._engines.get(config.model_path)
            if engine is None:
                engine = PiperTTS(config)
                self._engines[config.model_path] = engine
            return engine

    def _synthesized(self, future: asyncio.Future[tuple[bytes, int]], utterance: Utterance, generation: int) -> None:
        if generation != self._generation:
            return
        try:
            pcm, sample_rate = future.result()
        except Exception:
            logger.exception("Piper synthesis failed")
            self._current = None
            if utterance.on_error is not None:
                utterance.on_error(SYNTHESIS_FAILED)
            return

        def drained() -> None:
            try:
                self.loop.call_soon_threadsafe(self._done, utterance, generation)
            except RuntimeError:  # pragma: no cover - loop closed
                pass

        self.playback.play(pcm, sample_rate, on_done=drained)

    def _done(self, utterance: Utterance, generation: int) -> None:
        if generation != self._generation or self._current is not utterance:
            return
        self._current = None
        if utterance.on_end is not None:
            utterance.on_end()
