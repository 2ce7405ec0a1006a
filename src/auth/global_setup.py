"""Global setup: make sure a valid stored session exists before any test runs."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Playwright, async_playwright

from src.auth.login import LoginOrchestrator, LoginResult, LoginState
from src.auth.session_store import SessionStore
from src.auth.verifier import AuthVerifier
from src.errors import AuthenticationError
from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.models.config import SuiteConfig
from src.pages.login_page import LoginPage
from src.utils.browser_stealth import create_stealth_context, launch_stealth_browser

logger = logging.getLogger(__name__)


async def verify_stored_session(
    playwright: Playwright,
    config: SuiteConfig,
    store: SessionStore,
    recorder: ScreenshotRecorder,
) -> bool:
    """Load the stored session into a headless browser and check it still works."""
    logger.info("Verifying existing authentication state...")
    browser = await launch_stealth_browser(playwright, headless=True)
    try:
        context = await create_stealth_context(browser, config, storage_state=str(store.path))
        page = await context.new_page()
        valid = await AuthVerifier(config, recorder).verify(page)
        if valid:
            logger.info("Existing authentication state is valid.")
        else:
            logger.warning("Existing authentication state is invalid. URL: %s", page.url)
        await context.close()
        return valid
    except Exception as e:
        logger.error("Error during existing auth state verification: %s", e)
        return False
    finally:
        logger.debug("Closing browser used for auth verification.")
        await browser.close()


async def fresh_login(
    playwright: Playwright,
    config: SuiteConfig,
    store: SessionStore,
    recorder: ScreenshotRecorder,
) -> LoginResult:
    """Log in through the UI and persist the new session."""
    if not config.has_credentials:
        logger.error("Missing login credentials (USER_EMAIL / USER_PASSWORD) for global setup.")
        raise AuthenticationError("Missing login credentials.")

    headless = config.global_setup_headless
    logger.info("Global setup (login): running %s.", "headless" if headless else "headed")
    browser = await launch_stealth_browser(playwright, headless=headless)
    try:
        context = await create_stealth_context(browser, config)
        page = await context.new_page()
        orchestrator = LoginOrchestrator(
            config,
            LoginPage(page, config, recorder),
            AuthVerifier(config, recorder),
            recorder,
        )
        result = await orchestrator.login()
        if not result.success:
            raise AuthenticationError(result.error or "Login failed during global setup.")

        await store.save_session(context)
        await recorder.capture(page, "global-setup-new-auth-saved.png")
        return result
    finally:
        logger.info("Closing browser used for global setup login.")
        await browser.close()


async def run_global_setup(
    config: SuiteConfig,
    recorder: Optional[ScreenshotRecorder] = None,
    playwright: Optional[Playwright] = None,
) -> LoginResult:
    """Reuse the stored session when it verifies, otherwise log in fresh.

    Raises AuthenticationError if no valid session could be produced.
    """
    logger.info("Starting global setup for authentication...")
    recorder = recorder or ScreenshotRecorder.from_config(config)
    store = SessionStore(config.auth_file)
    store.ensure_dir()

    if playwright is None:
        async with async_playwright() as p:
            return await _run(p, config, store, recorder)
    return await _run(playwright, config, store, recorder)


async def _run(
    playwright: Playwright,
    config: SuiteConfig,
    store: SessionStore,
    recorder: ScreenshotRecorder,
) -> LoginResult:
    if store.has_stored_session():
        logger.info("Found existing auth file: %s", store.path)
        if await verify_stored_session(playwright, config, store, recorder):
            logger.info("Global setup complete (used existing auth).")
            return LoginResult(
                state=LoginState.AUTHENTICATED,
                transitions=[LoginState.AUTHENTICATED],
                reused_session=True,
            )
        logger.warning("Existing authentication state is invalid. Proceeding with fresh login.")
        store.discard()
    else:
        logger.info("No existing authentication state file found. Proceeding with fresh login.")

    result = await fresh_login(playwright, config, store, recorder)
    logger.info("Global setup complete (fresh login).")
    return result
