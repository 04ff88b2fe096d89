"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest
from typer.testing import CliRunner

from deskweb.cli import app
from deskweb.settings.user import UserSettings

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text('url: "https://example.com"\n')
    return path


@pytest.mark.parametrize("action", ["toggle", "reload", "recreate"])
def test_actions_are_sent_to_running_instance(monkeypatch: pytest.MonkeyPatch, action: str) -> None:
    send = Mock(return_value=4242)
    monkeypatch.setattr("deskweb.cli.send_action", send)

    result = runner.invoke(app, [action])

    assert result.exit_code == 0
    send.assert_called_once_with(action)
    assert "pid 4242" in result.output


def test_action_without_running_instance_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("deskweb.cli.send_action", Mock(side_effect=ProcessLookupError("No running instance")))

    result = runner.invoke(app, ["toggle"])

    assert result.exit_code == 1


def test_browse_toggles_browsing_mode(config_file: Path) -> None:
    result = runner.invoke(app, ["browse", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "Browsing mode on" in result.output
    assert UserSettings.load(config_file).browsing_mode is True

    result = runner.invoke(app, ["browse", "--config", str(config_file)])
    assert "Browsing mode off" in result.output


def test_set_url_updates_config(config_file: Path) -> None:
    result = runner.invoke(app, ["set-url", "https://example.org/?w=[[screenWidth]]", "-c", str(config_file)])

    assert result.exit_code == 0
    assert UserSettings.load(config_file).url == "https://example.org/?w=[[screenWidth]]"


def test_config_validate(config_file: Path, tmp_path: Path) -> None:
    assert runner.invoke(app, ["config", "validate", str(config_file)]).exit_code == 0

    broken = tmp_path / "broken.yaml"
    broken.write_text("opacity: 3\n")
    assert runner.invoke(app, ["config", "validate", str(broken)]).exit_code == 1


def test_config_show(config_file: Path) -> None:
    result = runner.invoke(app, ["config", "show", "-c", str(config_file)])

    assert result.exit_code == 0
    assert "url: https://example.com" in result.output


def test_config_wizard_writes_file(tmp_path: Path) -> None:
    dst = tmp_path / "config.yaml"

    result = runner.invoke(app, ["config", "wizard", str(dst)], input="https://example.com\n120\ny\n0.5\n")

    assert result.exit_code == 0
    settings = UserSettings.load(dst)
    assert settings.url == "https://example.com"
    assert settings.reload_interval_seconds == 120
    assert settings.deactivate_on_battery is True
    assert settings.opacity == 0.5


@pytest.mark.parametrize("url", ["not-a-url", "ftp://example.com/file", "about:blank"])
def test_set_url_rejects_unloadable_url(config_file: Path, url: str) -> None:
    result = runner.invoke(app, ["set-url", url, "-c", str(config_file)])

    assert result.exit_code == 1
    assert UserSettings.load(config_file).url == "https://example.com"


def test_config_edit_opens_file(config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    launch = Mock(return_value=0)
    monkeypatch.setattr("deskweb.cli.typer.launch", launch)

    result = runner.invoke(app, ["config", "edit", "-c", str(config_file)])

    assert result.exit_code == 0
    launch.assert_called_once_with(str(config_file))
