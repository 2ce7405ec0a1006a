"""Base page object shared by the login, pricing and Form Builder pages."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from playwright.async_api import Locator, Page

from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.models.config import SuiteConfig

logger = logging.getLogger(__name__)


def _selector_slug(locator: Locator) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", str(locator))[:50]


class BasePage:
    """Wraps a Playwright page with logging and screenshot instrumentation."""

    path: str = ""

    def __init__(self, page: Page, config: SuiteConfig, recorder: ScreenshotRecorder, path: str | None = None):
        self.page = page
        self.config = config
        self.recorder = recorder
        path = self.path if path is None else path
        self.url = config.url_for(path) if path else ""

    async def navigate(self, wait_until: str = "domcontentloaded", timeout: Optional[int] = None) -> None:
        if not self.url:
            logger.error("Navigation skipped: no URL defined for %s", type(self).__name__)
            return
        logger.info("Navigating to: %s", self.url)
        await self.page.goto(
            self.url,
            wait_until=wait_until,
            timeout=timeout or self.config.navigation_timeout_ms,
        )

    async def wait_for_page_load(self, state: str = "domcontentloaded", timeout: int = 30000) -> None:
        """Wait for a load state; a timeout is logged, never raised."""
        logger.debug("Waiting for page load state: %s (timeout %dms)", state, timeout)
        try:
            await self.page.wait_for_load_state(state, timeout=timeout)
        except Exception as e:
            logger.warning("Wait for page load state '%s' timed out: %s", state, e)
            await self.take_screenshot(f"pageload-{state}-timeout", is_failure=True)

    async def get_title(self) -> str:
        title = await self.page.title()
        logger.debug("Page title: %s", title)
        return title

    async def is_visible(self, locator: Locator, timeout: int = 5000) -> bool:
        try:
            await locator.wait_for(state="visible", timeout=timeout)
            return True
        except Exception:
            logger.debug("Locator %s is NOT visible within %dms", locator, timeout)
            return False

    async def wait_for_visible(self, locator: Locator, timeout: int = 10000) -> None:
        """Wait for visibility; on timeout screenshot and re-raise."""
        logger.debug("Waiting for locator to be visible: %s (timeout %dms)", locator, timeout)
        try:
            await locator.wait_for(state="visible", timeout=timeout)
        except Exception as e:
            logger.error("Element '%s' not visible within %dms: %s", locator, timeout, e)
            await self.take_screenshot(f"element-not-visible-{_selector_slug(locator)}", is_failure=True)
            raise

    async def get_computed_style(self, locator: Locator, prop: str) -> str:
        try:
            await self.wait_for_visible(locator, 5000)
            style = await locator.evaluate(
                "(element, prop) => window.getComputedStyle(element).getPropertyValue(prop)",
                prop,
            )
            logger.debug("Computed style '%s' for %s is: %s", prop, locator, style)
            return style
        except Exception as e:
            logger.error("Error getting computed style '%s' for '%s': %s", prop, locator, e)
            await self.take_screenshot(f"computed-style-error-{_selector_slug(locator)}", is_failure=True)
            raise

    async def take_screenshot(
        self,
        base_name: str,
        is_failure: bool = False,
        options: dict[str, Any] | None = None,
    ) -> Optional[str]:
        file_name = base_name if base_name.endswith(".png") else f"{base_name}.png"
        return await self.recorder.capture(self.page, file_name, options, is_failure)

    async def reload(self, wait_until: str = "domcontentloaded", timeout: int = 30000) -> None:
        logger.info("Reloading page (wait_until=%s)", wait_until)
        await self.page.reload(wait_until=wait_until, timeout=timeout)
