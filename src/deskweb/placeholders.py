"""Substitution of runtime values into configured URL templates."""

from __future__ import annotations

import logging
from typing import Final

from deskweb.errors import TemplateResolutionError
from deskweb.system.display import ScreenInfo

logger: Final = logging.getLogger(__name__)

SCREEN_WIDTH_TOKEN: Final = "[[screenWidth]]"
SCREEN_HEIGHT_TOKEN: Final = "[[screenHeight]]"


class PlaceholderResolver:
    """Replaces screen-size placeholders in a URL template.

    Only ``[[screenWidth]]`` and ``[[screenHeight]]`` are recognized; each is
    replaced at most once. Any other bracketed token is left as-is.
    """

    tokens: Final = (SCREEN_WIDTH_TOKEN, SCREEN_HEIGHT_TOKEN)

    def has_placeholders(self, template: str) -> bool:
        """Return True if the template contains a recognized token."""
        return any(token in template for token in self.tokens)

    def resolve(self, template: str, screen: ScreenInfo | None) -> str:
        """Resolve the template against a screen's dimensions.

        Args:
            template: URL possibly containing placeholder tokens
            screen: Target screen, or None when no display is available

        Returns:
            The URL with placeholders substituted

        Raises:
            TemplateResolutionError: A token is present but there is no screen
        """
        if not self.has_placeholders(template):
            return template

        if screen is None:
            raise TemplateResolutionError(
                "Cannot substitute screen size placeholders: no display available.",
                url=template,
            )

        resolved = template.replace(SCREEN_WIDTH_TOKEN, f"{screen.width:.0f}", 1)
        resolved = resolved.replace(SCREEN_HEIGHT_TOKEN, f"{screen.height:.0f}", 1)
        logger.debug("Resolved %s → %s", template, resolved)
        return resolved
