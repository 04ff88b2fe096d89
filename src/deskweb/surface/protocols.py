"""Interfaces of the web surface and the desktop window hosting it."""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional, Protocol, runtime_checkable

LoadCallback = Callable[[Optional[Exception]], None]


@runtime_checkable
class WebSurface(Protocol):
    """Protocol defining the interface for web rendering surfaces.

    The controller never renders anything itself; it hands a URL to the
    surface and is told later, through ``on_complete``, whether the page
    loaded. ``on_complete`` may be invoked from any thread.
    """

    def load_url(self, url: str, on_complete: LoadCallback | None = None) -> None:
        """Start loading a URL.

        Args:
            url: Fully resolved URL
            on_complete: Called with None on success or the failure
        """
        ...

    def recreate(self) -> None:
        """Dispose of the underlying surface and build a fresh one."""
        ...


@runtime_checkable
class DesktopWindow(Protocol):
    """Protocol for the desktop-level window that shows the surface."""

    def attach(self, surface: WebSurface) -> None:
        """Make ``surface`` the window's content."""
        ...

    def bring_to_front(self) -> None:
        """Show the window."""
        ...

    def hide(self) -> None:
        """Hide the window."""
        ...

    def reveal_content(self) -> None:
        """Unhide the surface once it has something to show."""
        ...

    def set_interactive(self, interactive: bool) -> None:
        """Toggle whether the window accepts mouse and keyboard input."""
        ...

    def set_opacity(self, opacity: float) -> None:
        """Set window opacity in the range 0.0-1.0."""
        ...


class MockWebSurface:
    """Mock implementation of WebSurface for testing.

    Loads never complete on their own; call ``complete`` to finish the most
    recent one (or a specific one by index).
    """

    def __init__(self) -> None:
        self.load_calls: list[dict[str, object]] = []
        self.recreate_calls = 0

    def load_url(self, url: str, on_complete: LoadCallback | None = None) -> None:
        """Record the load without rendering anything."""
        self.load_calls.append({"url": url, "on_complete": on_complete})

    def recreate(self) -> None:
        self.recreate_calls += 1

    @property
    def loaded_urls(self) -> list[str]:
        return [str(call["url"]) for call in self.load_calls]

    def complete(self, error: Exception | None = None, index: int = -1) -> None:
        """Report completion of a recorded load."""
        callback = self.load_calls[index]["on_complete"]
        if callback is not None:
            callback(error)  # type: ignore[operator]

    def reset_call_history(self) -> None:
        """Reset the call history for testing."""
        self.load_calls = []
        self.recreate_calls = 0


class ErrorSimulatingSurface(MockWebSurface):
    """Surface mock that fails every load immediately."""

    def __init__(self, message: str = "Simulated page load failure") -> None:
        super().__init__()
        self.message = message

    def load_url(self, url: str, on_complete: LoadCallback | None = None) -> None:
        super().load_url(url, on_complete)
        if on_complete is not None:
            on_complete(RuntimeError(self.message))


class MockDesktopWindow:
    """Mock implementation of DesktopWindow that tracks its state."""

    def __init__(self) -> None:
        self.surface: WebSurface | None = None
        self.visible = False
        self.content_hidden = True
        self.interactive = False
        self.opacity = 1.0
        self.calls: list[str] = []

    def attach(self, surface: WebSurface) -> None:
        self.surface = surface
        self.calls.append("attach")

    def bring_to_front(self) -> None:
        self.visible = True
        self.calls.append("bring_to_front")

    def hide(self) -> None:
        self.visible = False
        self.calls.append("hide")

    def reveal_content(self) -> None:
        self.content_hidden = False
        self.calls.append("reveal_content")

    def set_interactive(self, interactive: bool) -> None:
        self.interactive = interactive
        self.calls.append(f"set_interactive({interactive})")

    def set_opacity(self, opacity: float) -> None:
        self.opacity = opacity
        self.calls.append(f"set_opacity({opacity})")
