"""Tests for the reachability checkers."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from deskweb.remote import (
    DEFAULT_PROBE_URLS,
    AlwaysOnlineChecker,
    HttpReachabilityChecker,
    MockReachabilityChecker,
    ReachabilityChecker,
    create_reachability_checker,
)


def _response(status: int) -> Mock:
    return Mock(status_code=status)


def test_first_answer_counts_as_online(monkeypatch: pytest.MonkeyPatch) -> None:
    head = Mock(return_value=_response(204))
    monkeypatch.setattr("deskweb.remote.requests.head", head)

    checker = HttpReachabilityChecker(["http://a.example/", "http://b.example/"], timeout=1.5)

    assert checker.is_online_extensive() is True
    head.assert_called_once_with("http://a.example/", timeout=1.5, allow_redirects=False)


def test_falls_through_failing_endpoints(monkeypatch: pytest.MonkeyPatch) -> None:
    head = Mock(side_effect=[requests.ConnectionError("down"), _response(503), _response(302)])
    monkeypatch.setattr("deskweb.remote.requests.head", head)

    checker = HttpReachabilityChecker(["http://a.example/", "http://b.example/", "http://c.example/"])

    assert checker.is_online_extensive() is True
    assert head.call_count == 3


def test_all_endpoints_failing_means_offline(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("deskweb.remote.requests.head", Mock(side_effect=requests.Timeout("slow")))

    assert HttpReachabilityChecker(["http://a.example/"]).is_online_extensive() is False


@pytest.mark.parametrize("urls", [[], ["not-a-url"], ["http://"]])
def test_invalid_probe_urls_rejected(urls: list[str]) -> None:
    with pytest.raises(ValueError):
        HttpReachabilityChecker(urls)


def test_factory() -> None:
    default = create_reachability_checker()
    assert isinstance(default, HttpReachabilityChecker)
    assert default.probe_urls == list(DEFAULT_PROBE_URLS)

    assert isinstance(create_reachability_checker([]), AlwaysOnlineChecker)

    custom = create_reachability_checker(["https://intranet.example/"], timeout=0.5)
    assert isinstance(custom, HttpReachabilityChecker)
    assert custom.timeout == 0.5


def test_mock_counts_calls() -> None:
    checker = MockReachabilityChecker(online=False)

    assert isinstance(checker, ReachabilityChecker)
    assert checker.is_online_extensive() is False
    assert checker.is_online_extensive() is False
    assert checker.calls == 2
