from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .app import run
from .core.config import get_settings
from .core.errors import ConfigurationError
from .core.languages import SUPPORTED_LANGUAGES
from .core.logger import enable_console


cli = typer.Typer(name="taxvoice", help="Taiwan Tax voice assistant")
config_cli = typer.Typer(help="Configuration")

cli.add_typer(config_cli, name="config")

BACKENDS = ("console", "local")


@cli.command("run")
def run_command(
    backend: Optional[str] = typer.Option(None, "--backend", help="console|local"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Inactivity timeout in seconds"),
    transcript: Optional[Path] = typer.Option(None, "--transcript", help="Write the conversation here at exit"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Mirror logs on stderr"),
) -> None:
    """Hold one conversation, then exit."""
    settings = get_settings()
    overrides: dict[str, object] = {}
    if backend is not None:
        if backend not in BACKENDS:
            raise typer.BadParameter(f"expected one of {', '.join(BACKENDS)}", param_hint="--backend")
        overrides["speech_backend"] = backend
    if timeout is not None:
        if timeout <= 0:
            raise typer.BadParameter("must be positive", param_hint="--timeout")
        overrides["inactivity_timeout_sec"] = timeout
    if overrides:
        settings = settings.model_copy(update=overrides)
    if verbose:
        enable_console("DEBUG")

    try:
        run(settings, transcript=transcript)
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1)


@cli.command("languages")
def languages() -> None:
    """List the dialogue languages."""
    items = [
        {"code": lang.code, "label": lang.label, "speech_locale": lang.speech_locale, "keywords": list(lang.keywords)}
        for lang in SUPPORTED_LANGUAGES
    ]
    typer.echo(json.dumps({"languages": items}, ensure_ascii=False))


@config_cli.command("show")
def config_show() -> None:
    """Effective settings, API key masked."""
    typer.echo(json.dumps(get_settings().masked(), ensure_ascii=False, default=str))


if __name__ == "__main__":
    cli()
