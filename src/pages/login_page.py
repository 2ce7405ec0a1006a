"""Login page object: POWR sign-in form."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Page

from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.models.config import SuiteConfig
from src.pages.base_page import BasePage
from src.url_utils import is_login_url, is_path
from src.utils.waits import first_success

logger = logging.getLogger(__name__)

EMAIL_SELECTOR = "#sign_in_email"
PASSWORD_SELECTOR = "#new_sign_in_password"
SUBMIT_SELECTOR = "#sign-in-submit"

DASHBOARD_INDICATOR_SELECTOR = (
    'div.dashboard-header, [data-testid="dashboard-container"], '
    'button:has-text("Create New App"), #user-nav-dropdown'
)

CAPTCHA_FRAME_SELECTOR = (
    'iframe[src*="recaptcha"], iframe[src*="captcha"], iframe[title*="challenge"], '
    'iframe[title*="Captcha"], div[id*="captcha"] iframe'
)


class LoginPage(BasePage):
    def __init__(self, page: Page, config: SuiteConfig, recorder: ScreenshotRecorder):
        super().__init__(page, config, recorder, path=config.login_path)
        self.email_input = page.locator(EMAIL_SELECTOR)
        self.password_input = page.locator(PASSWORD_SELECTOR)
        self.submit_button = page.locator(SUBMIT_SELECTOR)
        self.dashboard_indicator = page.locator(DASHBOARD_INDICATOR_SELECTOR).first
        self.captcha_frame = page.locator(CAPTCHA_FRAME_SELECTOR).first

    def on_login_page(self) -> bool:
        return is_login_url(self.page.url)

    def on_dashboard(self) -> bool:
        return is_path(self.page.url, self.config.protected_path)

    async def fill_credentials(self, email: str, password: str) -> None:
        logger.info("Waiting for email input to be attached.")
        await self.email_input.wait_for(state="attached", timeout=10000)
        logger.info("Filling login credentials...")
        await self.email_input.fill(email, timeout=5000)
        await self.password_input.fill(password, timeout=5000)

    async def submit(self) -> None:
        logger.info("Submitting login form...")
        await self.submit_button.click(timeout=5000)

    async def wait_for_login_signal(self, timeout: int = 25000) -> Optional[str]:
        """Race navigation away from sign-in against the dashboard indicator.

        Returns the name of whichever signal fired first, or None on timeout.
        """
        return await first_success({
            "navigation": self.page.wait_for_url(
                lambda url: not is_login_url(url),
                wait_until="domcontentloaded",
                timeout=timeout,
            ),
            "indicator": self.dashboard_indicator.wait_for(state="visible", timeout=timeout),
        })

    async def has_captcha_challenge(self, timeout: int = 7000) -> bool:
        logger.debug("Checking for CAPTCHA challenge frame...")
        if await self.is_visible(self.captcha_frame, timeout):
            logger.warning("CAPTCHA challenge frame detected.")
            return True
        logger.debug("No CAPTCHA challenge frame detected within %dms.", timeout)
        return False
