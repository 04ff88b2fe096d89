"""Exception classes for the URL load pipeline.

Every failure of a load attempt is represented by a ``LoadError`` subclass
tagged with an ``ErrorKind``. The controller records the last one as its
current error and decides from the kind whether it is presented to the user.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, Optional


class ErrorKind(Enum):
    """Tag distinguishing load failure conditions."""

    INVALID_URL = "invalid_url"
    TEMPLATE_RESOLUTION = "template_resolution"
    NO_CONNECTIVITY = "no_connectivity"
    SURFACE_LOAD = "surface_load"


class LoadError(Exception):
    """Error that terminated a URL load attempt.

    Carries a human-readable message (shown in the status tooltip and the
    modal error page), the URL involved when known, and the underlying
    exception when one was caught.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.SURFACE_LOAD

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description
            url: URL the attempt was loading, if known
            original_error: The original exception that was caught
        """
        super().__init__(message)
        self.message: str = message
        self.url: Optional[str] = url
        self.original_error: Optional[Exception] = original_error

    @property
    def description(self) -> str:
        """Description used for user-facing display."""
        return self.message

    @property
    def is_no_connectivity(self) -> bool:
        """Check if this is the expected "offline" condition."""
        return self.kind is ErrorKind.NO_CONNECTIVITY


class InvalidURLError(LoadError):
    """Raised by ``validate_url`` when a URL fails basic validity checks.

    The load pipeline never raises or records it: there an invalid
    candidate just means there is nothing to load. The CLI uses it to
    refuse saving such a URL.
    """

    kind = ErrorKind.INVALID_URL


class TemplateResolutionError(LoadError):
    """Raised when URL placeholders cannot be substituted."""

    kind = ErrorKind.TEMPLATE_RESOLUTION


class NoConnectivityError(LoadError):
    """Raised when a remote URL is requested while offline."""

    kind = ErrorKind.NO_CONNECTIVITY

    def __init__(self, url: Optional[str] = None) -> None:
        super().__init__("No internet connection.", url=url)


class SurfaceLoadError(LoadError):
    """Raised when the web surface reports that a load failed."""

    kind = ErrorKind.SURFACE_LOAD
