"""Tests for the auth verifier."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.auth.verifier import AuthVerifier
from tests.conftest import DASHBOARD_URL, SIGNIN_URL, FakeElement, FakeLocator


def _page_landing_on(url, status=200):
    page = MagicMock()
    page.url = "about:blank"

    async def goto(target, **kwargs):
        page.url = url
        return MagicMock(status=status)

    page.goto = AsyncMock(side_effect=goto)
    page.wait_for_timeout = AsyncMock()
    return page


class TestVerify:
    @pytest.mark.asyncio
    async def test_authenticated_when_not_redirected(self, config, mock_recorder):
        """Staying on /users/me with a 200 response passes."""
        page = _page_landing_on(DASHBOARD_URL)

        assert await AuthVerifier(config, mock_recorder).verify(page) is True
        page.goto.assert_awaited_once()
        assert page.goto.call_args.args[0] == config.protected_url
        assert page.goto.call_args.kwargs["wait_until"] == "domcontentloaded"
        mock_recorder.capture.assert_awaited_with(page, "auth-verification.png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [SIGNIN_URL, "https://www.powr.io/users/sign_in"])
    async def test_redirect_to_login_fails(self, config, mock_recorder, url):
        """Landing on a sign-in URL fails the check."""
        page = _page_landing_on(url)

        assert await AuthVerifier(config, mock_recorder).verify(page) is False
        mock_recorder.capture.assert_awaited_with(page, "auth-verification-failed.png", is_failure=True)

    @pytest.mark.asyncio
    async def test_error_status_fails(self, config, mock_recorder):
        """An HTTP error status fails the check."""
        page = _page_landing_on(DASHBOARD_URL, status=500)
        assert await AuthVerifier(config, mock_recorder).verify(page) is False

    @pytest.mark.asyncio
    async def test_navigation_error_fails(self, config, mock_recorder):
        """A navigation exception is reported as not authenticated."""
        page = MagicMock()
        page.url = "about:blank"
        page.goto = AsyncMock(side_effect=RuntimeError("net::ERR_TIMED_OUT"))

        assert await AuthVerifier(config, mock_recorder).verify(page) is False
        mock_recorder.capture.assert_awaited_with(page, "auth-verify-error.png", is_failure=True)

    @pytest.mark.asyncio
    async def test_waits_for_client_side_redirects(self, config, mock_recorder):
        """The check lets client-side redirects settle before reading the URL."""
        page = _page_landing_on(DASHBOARD_URL)
        await AuthVerifier(config, mock_recorder, redirect_settle_ms=1234).verify(page)
        page.wait_for_timeout.assert_awaited_once_with(1234)


class TestIsLoggedIn:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("indicator_visible,url,expected", [
        (True, DASHBOARD_URL, True),
        (False, DASHBOARD_URL, True),
        (True, SIGNIN_URL, False),
        (False, SIGNIN_URL, False),
    ])
    async def test_url_is_authoritative(self, config, mock_recorder, indicator_visible, url, expected):
        """The URL decides the outcome whatever the indicator says."""
        page = MagicMock()
        page.url = url
        indicator = FakeLocator("#user-nav-dropdown", [FakeElement(visible=indicator_visible)])

        assert await AuthVerifier(config, mock_recorder).is_logged_in(page, indicator, 10) is expected

    @pytest.mark.asyncio
    async def test_mismatch_is_captured(self, config, mock_recorder):
        """Indicator visible on a sign-in URL takes a failure screenshot."""
        page = MagicMock()
        page.url = SIGNIN_URL
        indicator = FakeLocator("#user-nav-dropdown", [FakeElement()])

        await AuthVerifier(config, mock_recorder).is_logged_in(page, indicator)

        mock_recorder.capture.assert_awaited_once_with(
            page, "login-check-indicator-vs-url-mismatch.png", is_failure=True,
        )
