"""Auth verification: is this browser session logged in?"""

from __future__ import annotations

import logging

from playwright.async_api import Locator, Page

from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.models.config import SuiteConfig
from src.url_utils import is_login_url

logger = logging.getLogger(__name__)


class AuthVerifier:
    """Classifies a session by where a protected URL sends it.

    The site has no logged-in DOM marker that renders quickly, so the
    redirect to a sign-in URL is the authoritative signal. The dashboard
    indicator is only a secondary signal: when the two disagree the URL
    wins and the disagreement is logged.
    """

    def __init__(
        self,
        config: SuiteConfig,
        recorder: ScreenshotRecorder,
        timeout_ms: int = 15000,
        redirect_settle_ms: int = 3000,
    ):
        self.config = config
        self.recorder = recorder
        self.timeout_ms = timeout_ms
        self.redirect_settle_ms = redirect_settle_ms

    async def verify(self, page: Page) -> bool:
        """Navigate to the protected page and check we were not bounced to sign-in."""
        url = self.config.protected_url
        logger.info("Verifying authentication via %s", url)
        try:
            response = await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            # client-side redirects land after domcontentloaded
            await page.wait_for_timeout(self.redirect_settle_ms)
        except Exception as e:
            logger.error("Auth verification navigation failed. URL: %s. Error: %s", page.url, e)
            await self.recorder.capture(page, "auth-verify-error.png", is_failure=True)
            return False

        current_url = page.url
        status = getattr(response, "status", None)
        on_login_page = is_login_url(current_url)
        bad_status = isinstance(status, int) and status >= 400

        if on_login_page or bad_status:
            logger.warning(
                "Auth check failed: status %s, URL %s, on login page: %s",
                status, current_url, on_login_page,
            )
            await self.recorder.capture(page, "auth-verification-failed.png", is_failure=True)
            return False

        logger.info("Auth check passed: status %s, URL %s", status, current_url)
        await self.recorder.capture(page, "auth-verification.png")
        return True

    async def is_logged_in(self, page: Page, indicator: Locator, timeout_ms: int = 15000) -> bool:
        """Check the current page without navigating.

        Waits up to ``timeout_ms`` for the dashboard indicator, then decides
        on the URL.
        """
        logger.debug("Checking login state (indicator timeout %dms)", timeout_ms)
        try:
            await indicator.wait_for(state="visible", timeout=timeout_ms)
            indicator_visible = True
        except Exception:
            indicator_visible = False

        current_url = page.url
        on_login_page = is_login_url(current_url)

        if indicator_visible and on_login_page:
            logger.warning("Dashboard indicator found, but URL is still a sign-in page: %s", current_url)
            await self.recorder.capture(page, "login-check-indicator-vs-url-mismatch.png", is_failure=True)
            return False
        if not indicator_visible and not on_login_page:
            logger.warning(
                "URL %s looks authenticated but no dashboard indicator appeared within %dms",
                current_url, timeout_ms,
            )
        return not on_login_page
