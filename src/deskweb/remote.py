"""Network reachability checks used to gate remote page loads."""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Sequence
from typing import Final, Protocol, runtime_checkable

import requests
from requests.exceptions import RequestException

logger: Final = logging.getLogger(__name__)

DEFAULT_PROBE_URLS: Final = (
    "https://captive.apple.com/hotspot-detect.html",
    "http://connectivitycheck.gstatic.com/generate_204",
    "http://detectportal.firefox.com/success.txt",
)


@runtime_checkable
class ReachabilityChecker(Protocol):
    """Protocol for determining if the network is usable."""

    def is_online_extensive(self) -> bool:
        """Determine if the internet is reachable.

        Returns:
            True if at least one probe target answered, False otherwise
        """
        ...


class HttpReachabilityChecker:
    """Implementation that probes a list of well-known HTTP endpoints."""

    def __init__(self, probe_urls: Sequence[str] = DEFAULT_PROBE_URLS, timeout: float = 2.0) -> None:
        """Initialize with the URLs to probe.

        Args:
            probe_urls: Endpoints tried in order until one answers
            timeout: Timeout for each HTTP request in seconds
        """
        if not probe_urls:
            raise ValueError("At least one probe URL is required")

        for url in probe_urls:
            parsed = urllib.parse.urlparse(url)
            if not parsed.scheme or not parsed.netloc:
                raise ValueError(f"Invalid URL: {url}")

        self.probe_urls = list(probe_urls)
        self.timeout = timeout

    def is_online_extensive(self) -> bool:
        """Check reachability by probing each endpoint in turn.

        Any HTTP answer below 500 counts as reachable; a captive portal
        redirect still proves there is a network.

        Returns:
            True as soon as one endpoint answers, False if all fail
        """
        for url in self.probe_urls:
            try:
                resp = requests.head(url, timeout=self.timeout, allow_redirects=False)
            except RequestException as exc:
                logger.debug("reachability: %s failed (%s)", url, exc)
                continue

            if resp.status_code < 500:
                return True
            logger.debug("reachability: HTTP %s from %s", resp.status_code, url)

        logger.info("reachability: no probe target answered, assuming offline")
        return False


class AlwaysOnlineChecker:
    """Checker that always reports the network as usable."""

    def is_online_extensive(self) -> bool:
        """Always return True.

        Returns:
            Always True
        """
        return True


def create_reachability_checker(probe_urls: Sequence[str] | None = None, timeout: float = 2.0) -> ReachabilityChecker:
    """Create a reachability checker based on configuration.

    Args:
        probe_urls: URLs to probe (None means the defaults, empty disables probing)
        timeout: Per-request timeout in seconds

    Returns:
        A ReachabilityChecker implementation
    """
    if probe_urls is None:
        return HttpReachabilityChecker(DEFAULT_PROBE_URLS, timeout)
    if not probe_urls:
        return AlwaysOnlineChecker()
    return HttpReachabilityChecker(probe_urls, timeout)


class MockReachabilityChecker:
    """Mock implementation of ReachabilityChecker for testing."""

    def __init__(self, online: bool = True) -> None:
        self.online = online
        self.calls = 0

    def is_online_extensive(self) -> bool:
        self.calls += 1
        return self.online
