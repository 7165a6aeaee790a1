"""JSON-lines logs, one file per category, rotated on size and at midnight."""

import json
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Final

from .config import get_settings
from .trace import get_turn_id

DEFAULT_LOG_DIR: Final[Path] = Path(__file__).resolve().parents[2] / "logs"

# Conversation fields callers may pass through ``extra=``.
CONTEXT_FIELDS: Final[tuple[str, ...]] = ("phase", "status", "language")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, tagged with the current dialogue turn."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "category": record.name.removeprefix("taxvoice."),
            "message": record.getMessage(),
            "turn_id": get_turn_id(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class SizeAndTimeRotatingFileHandler(TimedRotatingFileHandler):
    """Midnight rotation that also rolls over once ``max_bytes`` is reached."""

    def __init__(self, filename: str | Path, max_bytes: int = 0, backup_count: int = 0) -> None:
        self.maxBytes = max_bytes
        super().__init__(str(filename), when="midnight", backupCount=backup_count, encoding="utf-8", delay=True)

    def shouldRollover(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if self.maxBytes > 0:
            if self.stream is None:  # pragma: no cover
                self.stream = self._open()
            size = len(f"{self.format(record)}\n".encode("utf-8"))
            if self.stream.tell() + size >= self.maxBytes:
                return True
        return super().shouldRollover(record)


def log_dir() -> Path:
    configured = get_settings().log_dir
    path = Path(configured) if configured else DEFAULT_LOG_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def _build_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"taxvoice.{name}")
    if logger.handlers:
        return logger

    settings = get_settings()
    handler = SizeAndTimeRotatingFileHandler(
        log_dir() / f"{name}.jsonl",
        max_bytes=settings.log_rotate_mb * 1024 * 1024,
        backup_count=settings.log_retention_days,
    )
    handler.setFormatter(JsonFormatter())
    logger.setLevel(settings.log_level.upper())
    logger.addHandler(handler)
    return logger


_LOGGERS: dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Return the ``taxvoice.<name>`` logger, creating its file handler once."""
    if name not in _LOGGERS:
        _LOGGERS[name] = _build_logger(name)
    return _LOGGERS[name]


def enable_console(level: str = "INFO") -> None:
    """Mirror every assistant log line on stderr."""
    root = logging.getLogger("taxvoice")
    if any(getattr(h, "_taxvoice_console", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler._taxvoice_console = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())
    for logger in _LOGGERS.values():
        logger.setLevel(min(logger.level, root.level))
