"""Status indicator and modal presentation of load errors."""

from __future__ import annotations

import logging
import webbrowser
from datetime import datetime
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from jinja2 import Template

from deskweb.errors import LoadError

logger: Final = logging.getLogger(__name__)


class StatusIndicator:
    """State of the status icon: dimmed while disabled, tooltip for errors."""

    def __init__(self) -> None:
        self.appears_disabled = False
        self.tooltip: str | None = None

    def set_disabled(self, disabled: bool) -> None:
        self.appears_disabled = disabled
        logger.info("Wallpaper %s", "disabled" if disabled else "enabled")

    def show_error(self, error: LoadError) -> None:
        self.tooltip = f"Error: {error.description}"
        logger.warning(self.tooltip)

    def clear_error(self) -> None:
        self.tooltip = None


@runtime_checkable
class ErrorPresenter(Protocol):
    """Protocol for showing an error to the user in the foreground."""

    def present(self, error: LoadError) -> None:
        """Present the error modally."""
        ...


class HtmlErrorPresenter:
    """Renders an error page and opens it in the user's browser."""

    ERROR_TEMPLATE = """<!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>Wallpaper Error</title>
        <style>
            body {
                font-family: sans-serif;
                text-align: center;
                padding: 40px;
            }
            .error-container {
                border: 2px solid #c00;
                border-radius: 12px;
                padding: 30px;
                margin: 40px auto;
                max-width: 640px;
            }
            .error-title {
                font-size: 28px;
                margin-bottom: 20px;
                font-weight: bold;
            }
            .error-message {
                font-size: 18px;
                margin-bottom: 20px;
            }
            .error-url, .error-time {
                font-size: 14px;
                color: #555;
            }
        </style>
    </head>
    <body>
        <div class="error-container">
            <div class="error-title">The wallpaper could not be loaded</div>
            <div class="error-message">{{ error_message }}</div>
            {% if url %}<div class="error-url">{{ url }}</div>{% endif %}
            <div class="error-time">{{ timestamp }}</div>
        </div>
    </body>
    </html>"""

    def __init__(self, output_path: Path, template: str | None = None, open_browser: bool = True) -> None:
        """Initialize the presenter.

        Args:
            output_path: Where the rendered page is written
            template: Custom error template (uses default if None)
            open_browser: Open the page with ``webbrowser`` after rendering
        """
        self.output_path = output_path
        self.template = Template(template or self.ERROR_TEMPLATE, autoescape=True)
        self.open_browser = open_browser

    def render(self, error: LoadError) -> str:
        return self.template.render(
            error_message=error.description,
            url=error.url,
            timestamp=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )

    def present(self, error: LoadError) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(self.render(error), encoding="utf-8")
        logger.error("Presenting error: %s", error.description)

        if not self.open_browser:
            return
        try:
            webbrowser.open_new_tab(self.output_path.resolve().as_uri())
        except webbrowser.Error as exc:
            logger.debug("Could not open browser: %s", exc)


class MockErrorPresenter:
    """Mock implementation of ErrorPresenter for testing."""

    def __init__(self) -> None:
        self.presented: list[LoadError] = []

    def present(self, error: LoadError) -> None:
        self.presented.append(error)

    def reset_call_history(self) -> None:
        self.presented = []
