"""Taiwan Tax voice assistant."""

from __future__ import annotations

from typing import Any

__all__ = ["run"]

__version__ = "0.3.0"


def run(*args: Any, **kwargs: Any) -> Any:
    """Entry point running one voice conversation (lazy import)."""
    from .app import run as _run

    return _run(*args, **kwargs)
