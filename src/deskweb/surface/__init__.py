"""Surface package - the web surface, its window and error display."""

from deskweb.surface.error_ui import ErrorPresenter, HtmlErrorPresenter, StatusIndicator
from deskweb.surface.kiosk import KioskBrowserSurface
from deskweb.surface.protocols import DesktopWindow, WebSurface

__all__ = [
    "DesktopWindow",
    "ErrorPresenter",
    "HtmlErrorPresenter",
    "KioskBrowserSurface",
    "StatusIndicator",
    "WebSurface",
]
