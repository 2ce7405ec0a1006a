"""Fixtures for the live POWR suite: one global setup, then a fresh context per test."""

import asyncio
import logging

import pytest
import pytest_asyncio
from playwright.async_api import async_playwright

from src.auth.global_setup import run_global_setup
from src.auth.session_store import SessionStore
from src.auth.verifier import AuthVerifier
from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.models.config import SuiteConfig
from src.utils.browser_stealth import STEALTH_INIT_SCRIPT, create_stealth_context, launch_stealth_browser
from src.utils.log_setup import setup_logging

logger = logging.getLogger("src.e2e")


def pytest_addoption(parser):
    group = parser.getgroup("powr-e2e")
    group.addoption("--e2e-browser", default="chromium", choices=["chromium", "firefox", "webkit"])
    group.addoption("--e2e-headed", action="store_true", default=False)
    group.addoption("--e2e-slow-mo", type=int, default=0)


@pytest.fixture(scope="session")
def suite_config():
    config = SuiteConfig.from_env()
    setup_logging(config.log_level)
    return config


@pytest.fixture(scope="session")
def recorder(suite_config):
    return ScreenshotRecorder.from_config(suite_config)


@pytest.fixture(scope="session")
def suite_session(suite_config, recorder):
    """Run global setup once, before any browser test starts."""
    if not suite_config.has_credentials:
        pytest.skip("USER_EMAIL / USER_PASSWORD not set")
    return asyncio.run(run_global_setup(suite_config, recorder))


@pytest_asyncio.fixture
async def browser(request, suite_config):
    name = request.config.getoption("--e2e-browser")
    headless = not request.config.getoption("--e2e-headed")
    slow_mo = request.config.getoption("--e2e-slow-mo")

    async with async_playwright() as p:
        if name == "chromium":
            launched = await launch_stealth_browser(p, headless=headless, slow_mo=slow_mo)
        else:
            launched = await getattr(p, name).launch(headless=headless, slow_mo=slow_mo)
        logger.debug("Launched %s (headless=%s)", name, headless)
        yield launched
        await launched.close()


@pytest_asyncio.fixture
async def context(browser, suite_config, suite_session):
    storage_state = SessionStore(suite_config.auth_file).storage_state_path()
    if browser.browser_type.name == "chromium":
        ctx = await create_stealth_context(browser, suite_config, storage_state=storage_state)
    else:
        # stealth launch flags are chromium-only, the init script still applies
        options = {"storage_state": storage_state} if storage_state else {}
        ctx = await browser.new_context(base_url=suite_config.base_url, locale="en-US", **options)
        await ctx.add_init_script(STEALTH_INIT_SCRIPT)
    yield ctx
    logger.debug("Closing browser context.")
    await ctx.close()


@pytest_asyncio.fixture
async def page(context):
    new_page = await context.new_page()
    new_page.on("pageerror", lambda error: logger.error("Uncaught exception on page: %s", error))
    yield new_page


@pytest.fixture
def auth_check(suite_config, recorder):
    """Navigate to the protected page and report whether the session holds."""
    return AuthVerifier(suite_config, recorder, timeout_ms=10000).verify
