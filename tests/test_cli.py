import json

from typer.testing import CliRunner

from taxvoice import cli as cli_module
from taxvoice.core.config import get_settings


runner = CliRunner()


def test_cli_help():
    result = runner.invoke(cli_module.cli, ["--help"])
    assert result.exit_code == 0
    assert "run" in result.output and "languages" in result.output


def test_cli_languages():
    result = runner.invoke(cli_module.cli, ["languages"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [item["code"] for item in data["languages"]] == ["cmn-Hant-TW", "en-US", "ja-JP", "ko-KR"]


def test_cli_config_show_masks_key(monkeypatch):
    monkeypatch.setenv("API_KEY", "secret-key")
    get_settings.cache_clear()
    try:
        result = runner.invoke(cli_module.cli, ["config", "show"])
    finally:
        get_settings.cache_clear()
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["gemini_api_key"] == "***"
    assert "secret-key" not in result.output


def test_cli_run_without_api_key(monkeypatch):
    for name in ("API_KEY", "GEMINI_API_KEY", "TAXVOICE_GEMINI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    try:
        result = runner.invoke(cli_module.cli, ["run", "--backend", "console"])
    finally:
        get_settings.cache_clear()
    assert result.exit_code == 1


def test_cli_run_rejects_unknown_backend():
    result = runner.invoke(cli_module.cli, ["run", "--backend", "browser"])
    assert result.exit_code != 0
