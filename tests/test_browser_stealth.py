"""Tests for browser stealth utilities."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.utils.browser_stealth import (
    LAUNCH_ARGS,
    STEALTH_INIT_SCRIPT,
    context_options,
    create_stealth_context,
    launch_stealth_browser,
)


def _mock_browser():
    mock_browser = MagicMock()
    mock_context = MagicMock()
    mock_context.add_init_script = AsyncMock()
    mock_browser.new_context = AsyncMock(return_value=mock_context)
    return mock_browser, mock_context


class TestLaunchStealthBrowser:
    @pytest.mark.asyncio
    async def test_chromium_with_stealth_args(self):
        """Chromium launches with the automation-hiding flags."""
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock()

        await launch_stealth_browser(playwright, headless=False)

        kwargs = playwright.chromium.launch.call_args.kwargs
        assert kwargs["headless"] is False
        assert kwargs["args"] == LAUNCH_ARGS
        assert "--disable-blink-features=AutomationControlled" in kwargs["args"]


class TestContextOptions:
    def test_suite_defaults(self, config):
        """Context options carry viewport, user agent, locale and base URL."""
        options = context_options(config)
        assert options["viewport"] == {"width": 1920, "height": 1080}
        assert options["locale"] == "en-US"
        assert options["base_url"] == config.base_url
        assert options["user_agent"] == config.user_agent
        assert options["extra_http_headers"]["Accept-Language"].startswith("en-US")
        assert "storage_state" not in options

    def test_storage_state_only_when_given(self, config):
        """storage_state is omitted unless a path is supplied."""
        assert context_options(config, ".auth/user.json")["storage_state"] == ".auth/user.json"


class TestCreateStealthContext:
    @pytest.mark.asyncio
    async def test_stealth_script_applied(self, config):
        """The init script is registered on every new context."""
        mock_browser, mock_context = _mock_browser()

        context = await create_stealth_context(mock_browser, config)

        assert context is mock_context
        mock_context.add_init_script.assert_awaited_once_with(STEALTH_INIT_SCRIPT)

    @pytest.mark.asyncio
    async def test_timeouts_from_config(self, config):
        """Default timeouts come from the config."""
        mock_browser, mock_context = _mock_browser()

        await create_stealth_context(mock_browser, config)

        mock_context.set_default_timeout.assert_called_once_with(config.action_timeout_ms)
        mock_context.set_default_navigation_timeout.assert_called_once_with(config.navigation_timeout_ms)

    @pytest.mark.asyncio
    async def test_storage_state_passed(self, config):
        """A stored session path is handed to new_context."""
        mock_browser, _ = _mock_browser()

        await create_stealth_context(mock_browser, config, storage_state=str(config.auth_file))

        assert mock_browser.new_context.call_args.kwargs["storage_state"] == str(config.auth_file)

    def test_init_script_patches(self):
        """The init script patches webdriver, languages, platform, permissions and WebGL."""
        for marker in ("webdriver", "languages", "MacIntel", "permissions", "37445"):
            assert marker in STEALTH_INIT_SCRIPT
