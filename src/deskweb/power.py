"""Power-source detection (AC vs. battery) and its watcher."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Final, Optional, Protocol, runtime_checkable

from deskweb.dispatch import Dispatcher
from deskweb.system.polling import PollingWatcher

logger: Final = logging.getLogger(__name__)


@runtime_checkable
class PowerSourceProvider(Protocol):
    """Protocol for power-source readers."""

    def is_using_battery(self) -> Optional[bool]:
        """Report whether the machine currently runs on battery.

        Returns:
            True on battery, False on AC, None if this provider cannot tell
        """
        ...


class SysfsPowerSource:
    """Linux power-supply class implementation using /sys/class/power_supply."""

    def __init__(self, root: str = "/sys/class/power_supply") -> None:
        """Initialize with the power-supply class directory.

        Args:
            root: Path to the power_supply class directory
        """
        self.root = Path(root)

    def is_using_battery(self) -> Optional[bool]:
        """Read the ``online`` flag of every mains supply.

        Returns:
            False if any mains supply is online, True if mains supplies exist
            but none is online, None if there is no mains supply at all
        """
        if not self.root.is_dir():
            return None

        found_mains = False
        for supply in sorted(self.root.iterdir()):
            if not self._is_mains(supply):
                continue

            online_file = supply / "online"
            try:
                online = online_file.read_text().strip()
            except OSError as exc:
                logger.debug("Cannot read %s: %s", online_file, exc)
                continue

            found_mains = True
            if online == "1":
                return False

        return True if found_mains else None

    @staticmethod
    def _is_mains(supply: Path) -> bool:
        type_file = supply / "type"
        try:
            return type_file.read_text().strip() == "Mains"
        except OSError:
            return supply.name.startswith(("AC", "ACAD"))


class UPowerPowerSource:
    """UPower implementation using the ``upower`` command-line tool."""

    def __init__(self, timeout: float = 3.0) -> None:
        self.timeout = timeout

    def is_using_battery(self) -> Optional[bool]:
        """Parse ``on-battery`` from ``upower -d``.

        Returns:
            True/False from upower, None if upower is unavailable
        """
        try:
            result = subprocess.run(
                ["upower", "-d"],
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
            logger.debug("upower query failed: %s", exc)
            return None
        except FileNotFoundError:
            return None

        for line in result.stdout.splitlines():
            key, _, value = line.partition(":")
            if key.strip() == "on-battery":
                return value.strip() == "yes"
        return None


class PowerSourceWatcher(PollingWatcher[bool]):
    """Watches for AC/battery transitions.

    Providers are asked in order; the first definite answer wins. When none
    of them can tell, the machine is assumed to be on AC power.
    """

    name = "power source"

    def __init__(
        self,
        dispatcher: Dispatcher,
        providers: Optional[list[PowerSourceProvider]] = None,
        poll_interval: float = 5.0,
    ) -> None:
        """Initialize with power-source providers.

        Args:
            dispatcher: Serialized context to poll on
            providers: List of providers to try in order
            poll_interval: Seconds between samples
        """
        super().__init__(dispatcher, poll_interval)
        self.providers = (
            providers
            if providers is not None
            else [
                SysfsPowerSource(),
                UPowerPowerSource(),
            ]
        )

    def read(self) -> bool:
        for provider in self.providers:
            answer = provider.is_using_battery()
            if answer is not None:
                return answer
        return False

    @property
    def is_using_battery(self) -> bool:
        """Last observed power state (samples once if not started)."""
        if self.value is None:
            self.value = self.read()
        return self.value


class MockPowerSource:
    """Mock implementation of PowerSourceProvider for testing."""

    def __init__(self, on_battery: Optional[bool] = False) -> None:
        self.on_battery = on_battery

    def is_using_battery(self) -> Optional[bool]:
        return self.on_battery
