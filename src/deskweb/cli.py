"""Desktop web wallpaper CLI application.

This module provides the command-line interface: running the wallpaper,
sending user actions to a running instance, and configuration helpers.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Final

import typer
from pydantic import ValidationError

from deskweb.controller import validate_url
from deskweb.errors import InvalidURLError
from deskweb.runtime import Runtime, send_action
from deskweb.settings.store import PreferencesStore
from deskweb.settings.user import UserSettings

# ── CLI setup ────────────────────────────────────────────────────────────────
app = typer.Typer(help="Desktop web wallpaper", add_completion=False)
config_app = typer.Typer(help="Config helpers")
app.add_typer(config_app, name="config")

logger: Final = logging.getLogger(__name__)

# Options for the commands
CONFIG_OPTION = typer.Option(
    None, "--config", "-c", exists=True, dir_okay=False, help="config.yaml (default: search path)"
)
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging")
DST_ARGUMENT = typer.Argument(..., help="Output config.yaml")
URL_ARGUMENT = typer.Argument(..., help="Page to show, may contain [[screenWidth]]/[[screenHeight]]")


def _open_store(config: Path | None) -> PreferencesStore:
    try:
        return PreferencesStore.from_file(config)
    except (FileNotFoundError, RuntimeError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _send(action: str) -> None:
    try:
        pid = send_action(action)
    except ProcessLookupError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Sent {action} to deskweb (pid {pid})")


@app.command()
def run(config: Path | None = CONFIG_OPTION, debug: bool = DEBUG_OPTION) -> None:
    """Run the wallpaper until interrupted."""
    runtime = Runtime(_open_store(config), debug=debug)
    runtime.run()


# ───────────────────────── user actions ──────────────────────────────────────
@app.command()
def toggle() -> None:
    """Disable or re-enable the running wallpaper."""
    _send("toggle")


@app.command()
def reload() -> None:
    """Reload the current website."""
    _send("reload")


@app.command()
def recreate() -> None:
    """Recreate the web surface and reload."""
    _send("recreate")


@app.command()
def browse(config: Path | None = CONFIG_OPTION) -> None:
    """Toggle browsing mode (interactive, fully opaque, no auto-reload)."""
    store = _open_store(config)
    enabled = store.toggle("browsing_mode")
    typer.echo(f"Browsing mode {'on' if enabled else 'off'}")


@app.command("set-url")
def set_url(url: str = URL_ARGUMENT, config: Path | None = CONFIG_OPTION) -> None:
    """Change the website shown as wallpaper."""
    try:
        url = validate_url(url)
    except InvalidURLError as exc:
        typer.secho(exc.description, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    store = _open_store(config)
    try:
        store.update(url=url)
    except RuntimeError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Website set to {store.settings.url}")


# ───────────────────────── config sub-commands ───────────────────────────────
@config_app.command("validate")
def validate_config(file: Path):
    """Validate a YAML config file against the schema."""
    try:
        UserSettings.load(file)
        typer.echo("✅ Config valid")
    except (RuntimeError, FileNotFoundError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@config_app.command("show")
def show_config(config: Path | None = CONFIG_OPTION):
    """Print the effective configuration."""
    store = _open_store(config)
    typer.echo(f"# {store.path}")
    for name, value in store.settings.model_dump().items():
        typer.echo(f"{name}: {value}")


@config_app.command("edit")
def edit_config(config: Path | None = CONFIG_OPTION):
    """Open the config file in the default editor (the preferences)."""
    store = _open_store(config)
    if store.path is None:
        typer.secho("No config file to edit", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.launch(str(store.path))


@config_app.command("wizard")
def wizard(dst: Path = DST_ARGUMENT):
    """Interactive prompt to create a config file."""
    typer.echo("Interactive config builder - press Enter for defaults.")

    while True:
        url = typer.prompt("Website URL")
        interval = typer.prompt("Reload interval in seconds (0 = never)", default=0.0, type=float)
        data: dict[str, Any] = {
            "url": url,
            "reload_interval_seconds": interval or None,
            "deactivate_on_battery": typer.confirm("Deactivate while on battery?", default=False),
            "opacity": typer.prompt("Opacity [0.0-1.0]", default=1.0, type=float),
        }
        try:
            cfg = UserSettings(**data)
            break  # valid → exit loop
        except ValidationError as err:
            typer.secho("\nConfig error(s):", fg=typer.colors.RED, err=True)
            for e in err.errors():
                typer.secho(f"  • {e['loc'][0] if e['loc'] else 'config'} - {e['msg']}", fg=typer.colors.RED, err=True)
            typer.echo("Please re-enter the values.\n")

    cfg.save(dst)
    typer.secho(f"Config written to {dst}", fg=typer.colors.GREEN)


# ───────────────────────── module entrypoint ────────────────────────────────
def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
