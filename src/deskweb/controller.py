"""Core controller for the desktop web wallpaper."""

from __future__ import annotations

import logging
import urllib.parse
from enum import Enum
from functools import partial
from typing import Final, cast

from deskweb.dispatch import Dispatcher, ManualDispatcher
from deskweb.errors import (
    ErrorKind,
    InvalidURLError,
    LoadError,
    NoConnectivityError,
    SurfaceLoadError,
    TemplateResolutionError,
)
from deskweb.placeholders import PlaceholderResolver
from deskweb.power import MockPowerSource, PowerSourceWatcher
from deskweb.remote import MockReachabilityChecker, ReachabilityChecker, create_reachability_checker
from deskweb.scheduler import ReloadScheduler
from deskweb.settings.application import ApplicationSettings
from deskweb.settings.store import PreferencesStore
from deskweb.settings.user import UserSettings
from deskweb.surface.error_ui import ErrorPresenter, HtmlErrorPresenter, MockErrorPresenter, StatusIndicator
from deskweb.surface.kiosk import KioskBrowserSurface
from deskweb.surface.protocols import DesktopWindow, MockDesktopWindow, MockWebSurface, WebSurface
from deskweb.system.display import (
    ChainedDisplayProvider,
    DisplayProvider,
    ScreenInfo,
    StaticDisplayProvider,
)

logger: Final = logging.getLogger(__name__)


class Transition(Enum):
    """Edge of the derived enablement state."""

    ENABLED = "enabled"
    DISABLED = "disabled"


def compute_enabled(
    manually_disabled: bool,
    screen_locked: bool,
    battery_policy_active: bool,
    on_battery: bool,
) -> bool:
    """Enablement as a pure function of its inputs."""
    return not manually_disabled and not screen_locked and not (battery_policy_active and on_battery)


def is_valid_url(candidate: str | None, schemes: tuple[str, ...] = ("http", "https", "file")) -> bool:
    """Basic validity check for a URL candidate.

    A valid candidate is non-empty, uses an allowed scheme, and has a host
    (web URLs) or a path (file URLs).
    """
    if not candidate or not candidate.strip():
        return False

    parsed = urllib.parse.urlparse(candidate.strip())
    if parsed.scheme not in schemes:
        return False
    if parsed.scheme == "file":
        return bool(parsed.path)
    return bool(parsed.netloc)


def validate_url(candidate: str, schemes: tuple[str, ...] = ("http", "https", "file")) -> str:
    """Return the stripped URL.

    Raises:
        InvalidURLError: The URL fails ``is_valid_url``
    """
    if not is_valid_url(candidate, schemes):
        raise InvalidURLError(f"Not a loadable URL: {candidate!r}", url=candidate)
    return candidate.strip()


def is_file_url(url: str) -> bool:
    return urllib.parse.urlparse(url).scheme == "file"


class AppController:
    """Main controller class for the wallpaper.

    This class owns the state machine deciding whether the wallpaper is
    shown and live:
    - Enablement, derived from the manual toggle, the screen lock and the
      battery policy, with side effects fired only on its edges
    - Browsing mode, mirrored from the preferences store
    - The reload timer, armed only while enabled and not browsing
    - The URL load pipeline and the last load error

    All methods must be called on the dispatcher. Collaborators report back
    (surface completions, watcher changes) through the dispatcher as well.
    """

    def __init__(
        self,
        store: PreferencesStore,
        dispatcher: Dispatcher,
        surface: WebSurface | None = None,
        window: DesktopWindow | None = None,
        reachability: ReachabilityChecker | None = None,
        power_watcher: PowerSourceWatcher | None = None,
        display_provider: DisplayProvider | None = None,
        presenter: ErrorPresenter | None = None,
        indicator: StatusIndicator | None = None,
        resolver: PlaceholderResolver | None = None,
        app_settings: ApplicationSettings | None = None,
    ):
        """Initialize the controller.

        Args:
            store: Preferences store (canonical source of user settings)
            dispatcher: Serialized context all state changes run on
            surface: Web surface (defaults to a kiosk browser)
            window: Window hosting the surface (defaults to the surface itself)
            reachability: Connectivity checker
            power_watcher: AC/battery watcher
            display_provider: Target display lookup
            presenter: Modal error presenter
            indicator: Status indicator
            resolver: URL placeholder resolver
            app_settings: Internal paths and pipeline rules
        """
        self.store = store
        self.dispatcher = dispatcher
        config = store.settings
        self.app_settings = app_settings or ApplicationSettings(config)

        self.surface: WebSurface = surface or KioskBrowserSurface(
            browser=config.browser,
            kiosk_flags=config.kiosk_flags,
            startup_grace=config.startup_grace_seconds,
        )
        self.window: DesktopWindow = window or cast(DesktopWindow, self.surface)
        self.reachability = reachability or create_reachability_checker(
            config.reachability_urls, config.reachability_timeout_seconds
        )
        self.power_watcher = power_watcher or PowerSourceWatcher(
            dispatcher, poll_interval=config.poll_interval_seconds
        )
        self.display_provider = display_provider or self._default_display_provider(config)
        self.presenter = presenter or HtmlErrorPresenter(self.app_settings.paths.error_page)
        self.indicator = indicator or StatusIndicator()
        self.resolver = resolver or PlaceholderResolver()
        self.scheduler = ReloadScheduler(dispatcher, self._timer_fired)

        self.is_manually_disabled = False
        self.is_screen_locked = False
        self.current_error: LoadError | None = None
        self._was_enabled: bool | None = None
        self._load_sequence = 0

        self.store.subscribe("browsing_mode", self._browsing_mode_changed)
        self.store.subscribe("reload_interval_seconds", lambda _v: self.reset_timer())
        self.store.subscribe("url", lambda _v: self.load_user_url())
        self.store.subscribe("display", lambda _v: self.load_user_url())
        self.store.subscribe("deactivate_on_battery", lambda _v: self.set_enabled_status())
        self.store.subscribe("opacity", self._opacity_changed)
        self.power_watcher.subscribe(self._power_source_changed)

    @staticmethod
    def _default_display_provider(config: UserSettings) -> DisplayProvider:
        if config.screen_width is not None and config.screen_height is not None:
            return StaticDisplayProvider(config.screen_width, config.screen_height)
        return ChainedDisplayProvider()

    # ── derived state ────────────────────────────────────────────────────────
    @property
    def settings(self) -> UserSettings:
        return self.store.settings

    @property
    def is_browsing_mode(self) -> bool:
        return self.settings.browsing_mode

    @property
    def reload_interval_seconds(self) -> float | None:
        return self.settings.reload_interval_seconds

    @property
    def is_enabled(self) -> bool:
        policy = self.settings.deactivate_on_battery
        return compute_enabled(
            self.is_manually_disabled,
            self.is_screen_locked,
            policy,
            policy and self.power_watcher.is_using_battery,
        )

    @property
    def has_reload_timer(self) -> bool:
        return self.scheduler.is_active

    # ── lifecycle ────────────────────────────────────────────────────────────
    def did_launch(self) -> None:
        """Attach the surface, start watching power and show the wallpaper."""
        self.window.attach(self.surface)
        self.power_watcher.start()
        self.set_enabled_status()

    # ── enablement ───────────────────────────────────────────────────────────
    def set_enabled_status(self) -> Transition | None:
        """Recompute enablement and apply side effects on an edge.

        Returns:
            The transition that happened, or None if enablement is unchanged
        """
        enabled = self.is_enabled
        if enabled == self._was_enabled:
            return None

        self._was_enabled = enabled
        transition = Transition.ENABLED if enabled else Transition.DISABLED
        logger.debug("Enablement transition: %s", transition.value)

        self.reset_timer()
        self.indicator.set_disabled(not enabled)

        if enabled:
            self._apply_window_mode()
            self.load_user_url()
            self.window.bring_to_front()
        else:
            # The in-flight load keeps running; bumping the sequence keeps it
            # from revealing the window later.
            self.window.hide()
            self._set_error(None)
            self._load_sequence += 1
            self.surface.load_url(self.app_settings.load.blank_url)

        return transition

    def set_manually_disabled(self, disabled: bool) -> Transition | None:
        self.is_manually_disabled = disabled
        return self.set_enabled_status()

    def toggle_manual_disable(self) -> Transition | None:
        return self.set_manually_disabled(not self.is_manually_disabled)

    def screen_locked(self) -> Transition | None:
        self.is_screen_locked = True
        return self.set_enabled_status()

    def screen_unlocked(self) -> Transition | None:
        self.is_screen_locked = False
        return self.set_enabled_status()

    def _power_source_changed(self, on_battery: bool) -> None:
        if not self.settings.deactivate_on_battery:
            logger.debug("Power source changed (battery=%s), policy inactive", on_battery)
            return
        self.set_enabled_status()

    # ── browsing mode & timer ────────────────────────────────────────────────
    def toggle_browsing_mode(self) -> None:
        """Flip the browsing-mode preference; the store notification does the rest."""
        self.store.toggle("browsing_mode")

    def _browsing_mode_changed(self, _browsing: bool) -> None:
        if not self.is_enabled:
            return
        self._apply_window_mode()
        self.reset_timer()

    def _opacity_changed(self, opacity: float) -> None:
        if self.is_enabled and not self.is_browsing_mode:
            self.window.set_opacity(opacity)

    def _apply_window_mode(self) -> None:
        browsing = self.is_browsing_mode
        self.window.set_interactive(browsing)
        self.window.set_opacity(1.0 if browsing else self.settings.opacity)

    def reset_timer(self) -> None:
        """Cancel the reload timer and re-arm it if reloading is allowed."""
        self.scheduler.cancel()

        interval = self.reload_interval_seconds
        if not self.is_enabled or self.is_browsing_mode or interval is None:
            return

        self.scheduler.schedule(interval)

    def _timer_fired(self) -> None:
        if not self.is_enabled or self.is_browsing_mode:
            logger.debug("Reload timer fired while inactive, ignoring")
            return
        self.load_user_url()

    # ── user actions ─────────────────────────────────────────────────────────
    def load_user_url(self) -> bool:
        return self.load_url(self.settings.url)

    def reload_website(self) -> bool:
        return self.load_user_url()

    def recreate_surface(self) -> None:
        self.surface.recreate()
        self.window.attach(self.surface)

    def recreate_surface_and_reload(self) -> bool:
        self.recreate_surface()
        return self.load_user_url()

    # ── load pipeline ────────────────────────────────────────────────────────
    def load_url(self, candidate: str | None) -> bool:
        """Run the load pipeline for a URL.

        This is the main load workflow:
        1. Clearing the previous error
        2. Ignoring absent or invalid candidates
        3. Substituting screen-size placeholders
        4. Refusing remote URLs while offline
        5. Handing the URL to the surface

        The connectivity check runs off the dispatcher and the surface
        reports completion back through it; only the most recent attempt
        may load, reveal the window or record an error from those steps.

        Args:
            candidate: URL to load, possibly containing placeholders

        Returns:
            True if the attempt was started, False if it ended here
        """
        self._set_error(None)

        if candidate is None or not is_valid_url(candidate, self.app_settings.load.allowed_schemes):
            logger.debug("Nothing to load (candidate: %r)", candidate)
            return False

        try:
            url = self.resolver.resolve(candidate.strip(), self._target_screen(candidate))
        except TemplateResolutionError as err:
            self._set_error(err)
            return False

        self._load_sequence += 1
        sequence = self._load_sequence

        if is_file_url(url):
            self._hand_to_surface(sequence, url)
        else:
            self.dispatcher.run_in_executor(
                self.reachability.is_online_extensive,
                partial(self._reachability_checked, sequence, url),
            )
        return True

    def _reachability_checked(self, sequence: int, url: str, online: bool) -> None:
        if sequence != self._load_sequence:
            logger.debug("Discarding stale connectivity result for %s", url)
            return

        if not online:
            self._set_error(NoConnectivityError(url))
            return

        self._hand_to_surface(sequence, url)

    def _hand_to_surface(self, sequence: int, url: str) -> None:
        logger.info("Loading %s", url)
        self.surface.load_url(url, partial(self._post_load_result, sequence, url))

    def _target_screen(self, template: str) -> ScreenInfo | None:
        if not self.resolver.has_placeholders(template):
            return None
        return self.display_provider.target_screen(self.settings.display)

    def _post_load_result(self, sequence: int, url: str, error: Exception | None) -> None:
        self.dispatcher.call_soon(self._load_finished, sequence, url, error)

    def _load_finished(self, sequence: int, url: str, error: Exception | None) -> None:
        if sequence != self._load_sequence:
            logger.debug("Discarding stale load result for %s", url)
            return

        if error is not None:
            self._set_error(SurfaceLoadError(str(error), url=url, original_error=error))
            return

        if not self.is_enabled:
            logger.debug("Loaded %s while disabled, window stays hidden", url)
            return
        self.window.reveal_content()

    # ── errors ───────────────────────────────────────────────────────────────
    def _set_error(self, error: LoadError | None) -> None:
        self.current_error = error
        if error is None:
            self.indicator.clear_error()
            return

        self.indicator.show_error(error)
        if self._should_present(error):
            self.presenter.present(error)

    def _should_present(self, error: LoadError) -> bool:
        if error.kind is ErrorKind.TEMPLATE_RESOLUTION:
            return True
        return self.is_browsing_mode and not error.is_no_connectivity

    # ── testing ──────────────────────────────────────────────────────────────
    @classmethod
    def create_for_testing(
        cls,
        settings: UserSettings | None = None,
        online: bool = True,
        on_battery: bool = False,
        screen: ScreenInfo | None = ScreenInfo("test", 1920, 1080, primary=True),
    ) -> AppController:
        """Create an AppController wired to in-memory collaborators.

        Args:
            settings: User settings (defaults to a reloading example page)
            online: What the reachability mock reports
            on_battery: What the power-source mock reports
            screen: Target screen (None simulates no display)

        Returns:
            AppController on a ManualDispatcher with mock surface, window and
            presenter
        """
        settings = settings or UserSettings(url="https://example.com", reload_interval_seconds=60)
        dispatcher = ManualDispatcher()
        display_provider: DisplayProvider = (
            StaticDisplayProvider(screen.width, screen.height, screen.name)
            if screen is not None
            else _NoDisplayProvider()
        )
        return cls(
            store=PreferencesStore(settings),
            dispatcher=dispatcher,
            surface=MockWebSurface(),
            window=MockDesktopWindow(),
            reachability=MockReachabilityChecker(online),
            power_watcher=PowerSourceWatcher(dispatcher, providers=[MockPowerSource(on_battery)]),
            display_provider=display_provider,
            presenter=MockErrorPresenter(),
        )


class _NoDisplayProvider:
    def target_screen(self, selector: str | None = None) -> ScreenInfo | None:
        return None
