import pytest

from deskweb.controller import AppController
from deskweb.dispatch import ManualDispatcher
from deskweb.settings.user import UserSettings
from deskweb.surface.error_ui import MockErrorPresenter
from deskweb.surface.protocols import MockDesktopWindow, MockWebSurface


@pytest.fixture
def settings() -> UserSettings:
    return UserSettings(
        url="https://example.com/wallpaper",
        reload_interval_seconds=60,
        deactivate_on_battery=False,
        browsing_mode=False,
        opacity=0.8,
    )


@pytest.fixture
def controller(settings: UserSettings) -> AppController:
    return AppController.create_for_testing(settings=settings)


@pytest.fixture
def surface(controller: AppController) -> MockWebSurface:
    assert isinstance(controller.surface, MockWebSurface)
    return controller.surface


@pytest.fixture
def window(controller: AppController) -> MockDesktopWindow:
    assert isinstance(controller.window, MockDesktopWindow)
    return controller.window


@pytest.fixture
def presenter(controller: AppController) -> MockErrorPresenter:
    assert isinstance(controller.presenter, MockErrorPresenter)
    return controller.presenter


@pytest.fixture
def dispatcher(controller: AppController) -> ManualDispatcher:
    assert isinstance(controller.dispatcher, ManualDispatcher)
    return controller.dispatcher
