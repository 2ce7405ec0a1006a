"""Form Builder page object: editor, design tab, publishing and the published view."""

from __future__ import annotations

import logging

from playwright.async_api import Locator, Page

from src.errors import AuthenticationError, EditorLoadError, ResolutionError, VerificationError
from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.locator.strategy import Found, first_found, visible_strategy
from src.models.config import SuiteConfig
from src.pages.base_page import BasePage
from src.url_utils import is_login_url
from src.utils.colors import hex_to_rgb
from src.utils.waits import first_success

logger = logging.getLogger(__name__)

EDITOR_PATH = (
    "/plugins/form-builder/standalone"
    "?redirected_from_templates=true&app_type=formBuilder"
)

COLOR_PICKER_SELECTOR = ".colorpicker-container, .swatches-picker"
ANY_SWATCH_SELECTOR = '.swatches-picker [title]:not([title="#FFFFFF"]):not([title="transparent"])'
SHARE_LINK_SELECTOR = "input.non-editable--url"
PUBLISHED_FORM_SELECTOR = (
    "#appView > div.formBuilder.formBuilder-v2.formElementsModule"
    ".js-form-container.enter_ani_none.none"
)


class FormBuilderPage(BasePage):
    path = "/users/me"
    settle_ms = 5000

    def __init__(self, page: Page, config: SuiteConfig, recorder: ScreenshotRecorder):
        super().__init__(page, config, recorder)

        # Dashboard
        self.dashboard_container = page.locator("div.dashboard-container, main#content, div.dashboard-header")
        self.create_new_app_button = page.locator(
            'button:has-text("Create New App"), button.button-primary:has(i.fa-plus)'
        )
        self.app_selection_modal = page.locator(
            '.ReactModal__Content--after-open .modal__body, div[role="dialog"]:has-text("Create New App")'
        )
        self.form_builder_card = self.app_selection_modal.locator('.app-card:has-text("Form Builder")')
        self.get_app_link = self.form_builder_card.locator('a:has-text("Get App")')
        self.templates_header = page.locator('h1:has-text("Choose a template"), div.templates-header')
        self.start_from_scratch_button = page.locator('button:has-text("Start from scratch")')

        # Editor
        self.editor_container = page.locator("div.editor, #editor-container, div.app-builder-content")
        self.welcome_modal_close = page.locator(
            "div.ReactModal__Content.welcome-screen-modal-content i.fal.fa-times.react-modal-close"
        )
        self.design_tab = page.locator('div.tab[data-qa="tab-Design"]')
        self.publish_button = page.locator('button[data-qa="button-publish"]')
        self.background_border_option = page.locator('div[data-qa="powrDrilldown-background"]')
        self.background_color_trigger = page.locator('div[data-qa="colorpicker-backgroundColor"]')
        self.color_picker = page.locator(COLOR_PICKER_SELECTOR)
        self.color_picker_ok = self.color_picker.locator('button:has-text("OK")')
        self.share_app_menu_item = page.locator(
            'div.side-nav__item-row:has(p.side-nav__item-label:text-is("Share App"))'
        )
        self.share_link_input = page.locator(SHARE_LINK_SELECTOR)

    def swatch_by_title(self, title: str) -> Locator:
        return self.color_picker.locator(f'div[title="{title}"]')

    async def wait_for_editor_load(self, timeout: int = 25000) -> None:
        """Wait until any editor UI indicator is visible, else raise EditorLoadError."""
        logger.info("Waiting for Form Builder editor UI elements...")
        await self.wait_for_page_load("domcontentloaded", timeout // 2)
        await self.take_screenshot("editor-page-initial-state")

        indicators = {
            "editor container": self.editor_container,
            "design tab": self.design_tab,
            "app builder": self.page.locator(".app-builder"),
            "side nav": self.page.locator("div.side-nav"),
            "app header": self.page.locator("div.app-header"),
            "publish button": self.page.locator('button:has-text("Publish")'),
            "welcome modal": self.page.locator("div.welcome-screen-modal-content"),
        }
        wait_ms = max(timeout - 2000, 1000)
        found = await first_success({
            name: locator.first.wait_for(state="visible", timeout=wait_ms)
            for name, locator in indicators.items()
        })
        if found is None:
            current_url = self.page.url
            logger.error("Editor UI did not load within %dms. Current URL: %s", timeout, current_url)
            await self.take_screenshot("form-editor-load-error", is_failure=True)
            raise EditorLoadError(f"Editor UI failed to load. Current URL: {current_url}")

        logger.info("Found editor indicator '%s'. Editor appears to be loaded.", found)
        await self.take_screenshot("form-editor-indicator-found")

    async def navigate_directly_to_editor(self) -> None:
        """Open the standalone editor; a sign-in redirect means the session is gone."""
        editor_url = self.config.url_for(EDITOR_PATH)
        logger.info("Navigating directly to Form Builder editor: %s", editor_url)
        await self.page.goto(editor_url, wait_until="domcontentloaded", timeout=self.config.navigation_timeout_ms)
        await self.page.wait_for_timeout(self.settle_ms)

        current_url = self.page.url
        logger.info("Current URL after navigation attempt: %s", current_url)
        if is_login_url(current_url):
            logger.error("Redirected to login page. Authentication is required before opening the editor.")
            await self.take_screenshot("editor-direct-nav-auth-error", is_failure=True)
            raise AuthenticationError("Authentication failed or missing. Cannot access editor directly.")

        await self.take_screenshot("form-editor-before-wait")
        await self.wait_for_editor_load()
        logger.info("Form Builder editor loaded via direct navigation.")

    async def close_welcome_modal_if_needed(self, timeout: int = 10000) -> bool:
        """Dismiss the welcome modal when it shows up. Returns True if it was closed."""
        logger.info("Checking for welcome modal...")
        await self.page.wait_for_timeout(1000)
        try:
            if not await self.is_visible(self.welcome_modal_close, timeout):
                logger.info("Welcome modal not detected or already closed.")
                return False
            logger.info("Welcome modal found, attempting to close...")
            await self.welcome_modal_close.click(timeout=5000)
            await self.welcome_modal_close.wait_for(state="hidden", timeout=5000)
            logger.info("Welcome modal closed.")
            await self.take_screenshot("welcome-modal-closed")
            return True
        except Exception as e:
            logger.warning("Could not close welcome modal: %s", e)
            await self.take_screenshot("welcome-modal-close-error", is_failure=True)
            return False

    async def navigate_to_design_tab(self) -> None:
        logger.info("Navigating to Design tab...")
        await self.wait_for_visible(self.design_tab)
        await self.design_tab.click()
        await self.wait_for_visible(self.background_border_option)
        await self.take_screenshot("design-tab-selected")

    async def open_background_color_picker(self) -> None:
        await self.wait_for_visible(self.background_border_option)
        await self.background_border_option.click()
        await self.page.wait_for_timeout(1000)

        try:
            await self.wait_for_visible(self.background_color_trigger)
            await self.background_color_trigger.click()
        except Exception as e:
            logger.warning("Failed to click color picker trigger: %s. Trying alternative.", e)
            alternative = self.page.locator('label:has-text("Background Color")').first
            if not await self.is_visible(alternative, 5000):
                await self.take_screenshot("color-picker-trigger-fail", is_failure=True)
                raise
            logger.info("Using alternative background color control")
            await alternative.click()
        await self.page.wait_for_timeout(1000)
        await self.take_screenshot("after-color-picker-trigger-click")

    async def pick_swatch(self, color_hex: str) -> Found:
        """Click the swatch titled ``color_hex``, or any non-white swatch.

        Raises ResolutionError when neither is available.
        """
        if await self.is_visible(self.color_picker, 5000):
            strategies = [
                visible_strategy("color swatch", f"title={color_hex}", self.swatch_by_title(color_hex).first, 10000),
                visible_strategy("color swatch", "any non-white swatch", self.page.locator(ANY_SWATCH_SELECTOR).first),
            ]
        else:
            logger.warning("Color picker container not visible. Trying direct swatch click.")
            await self.take_screenshot("color-picker-container-not-visible", is_failure=True)
            strategies = [
                visible_strategy("color swatch", f"direct title={color_hex}",
                                 self.page.locator(f'div[title="{color_hex}"]').first),
            ]

        result = await first_found("color swatch", strategies)
        if not isinstance(result, Found):
            await self.take_screenshot("color-picker-swatch-fail", is_failure=True)
            raise ResolutionError(f"Could not find a color swatch for {color_hex} (tried {list(result.attempted)})")

        logger.info("Selecting swatch via %s", result.selector)
        await result.locator.click()
        return result

    async def confirm_color_selection(self) -> str:
        """Confirm via an OK button, falling back to Enter; Escape if the picker stays open.

        Returns how the selection was confirmed.
        """
        await self.take_screenshot("before-confirming-color")
        result = await first_found("color OK button", [
            visible_strategy("color OK button", "OK button", self.page.locator('button:has-text("OK")').first, 3000),
            visible_strategy("color OK button", "picker OK button", self.color_picker_ok.first, 3000),
        ])
        if isinstance(result, Found):
            logger.info("%s found, clicking...", result.selector)
            await result.locator.click()
            how = result.selector
        else:
            logger.info("No OK button found, pressing Enter as fallback")
            await self.page.keyboard.press("Enter")
            how = "Enter"

        await self.page.wait_for_timeout(2000)
        if await self.is_visible(self.color_picker, 1000):
            logger.warning("Color picker still visible after confirmation, pressing Escape")
            await self.page.keyboard.press("Escape")
            await self.page.wait_for_timeout(1000)
        return how

    async def select_background_color(self, color_hex: str) -> None:
        logger.info("Selecting background color: %s", color_hex)
        await self.take_screenshot("before-background-selection")
        await self.open_background_color_picker()
        await self.pick_swatch(color_hex)
        await self.confirm_color_selection()
        logger.info("Background color %s selection completed.", color_hex)
        await self.take_screenshot(f"background-color-{color_hex.lstrip('#')}-selected")

    async def publish_and_get_share_link(self) -> str:
        """Publish the form and read the share URL from the Share App panel."""
        logger.info("Publishing form...")
        await self.wait_for_visible(self.publish_button)
        await self.publish_button.click()

        logger.info("Waiting for publish to finish (Share App menu item)...")
        await self.wait_for_visible(self.share_app_menu_item, 20000)
        await self.page.wait_for_timeout(1000)
        await self.share_app_menu_item.click()

        await self.wait_for_visible(self.share_link_input)
        logger.info("Waiting for share link input to contain a URL...")
        await self.page.wait_for_function(
            "(sel) => /https?:\\/\\//.test((document.querySelector(sel) || {}).value || '')",
            arg=SHARE_LINK_SELECTOR,
            timeout=15000,
        )

        share_url = await self.share_link_input.input_value()
        if not share_url:
            await self.take_screenshot("share-link-empty-error", is_failure=True)
            raise ResolutionError("Failed to retrieve share URL after publishing.")
        logger.info("Share URL retrieved: %s", share_url)
        await self.take_screenshot("share-link-retrieved")
        return share_url

    async def verify_published_form_color(self, share_url: str, expected_hex: str) -> str:
        """Open the published form in a new page and compare its background color.

        Returns the actual rgb() value; raises VerificationError on mismatch.
        """
        logger.info("Verifying published form at %s (expected %s)", share_url, expected_hex)
        new_page = await self.page.context.new_page()
        published = BasePage(new_page, self.config, self.recorder)
        try:
            await new_page.goto(share_url, wait_until="domcontentloaded", timeout=self.config.navigation_timeout_ms)
            await published.take_screenshot("published-form-view")

            await new_page.wait_for_selector(PUBLISHED_FORM_SELECTOR, state="visible", timeout=20000)
            container = new_page.locator(PUBLISHED_FORM_SELECTOR)
            actual = await published.get_computed_style(container, "background-color")
            expected = hex_to_rgb(expected_hex)
            logger.info("Actual background color: %s, expected: %s", actual, expected)

            if actual != expected:
                await published.take_screenshot("published-form-color-mismatch", is_failure=True)
                raise VerificationError(f"Background color mismatch. Expected {expected} but found {actual}")

            logger.info("Background color verified on published page.")
            await published.take_screenshot("published-form-color-verified")
            return actual
        except VerificationError:
            raise
        except Exception as e:
            logger.error("Error verifying published form color at %s: %s", share_url, e)
            await published.take_screenshot("published-form-verification-error", is_failure=True)
            raise
        finally:
            await new_page.close()

    async def navigate_to_dashboard(self) -> None:
        logger.info("Navigating to dashboard...")
        await self.navigate(wait_until="networkidle")
        try:
            await self.dashboard_container.or_(self.create_new_app_button).first.wait_for(
                state="visible", timeout=20000,
            )
        except Exception as e:
            current_url = self.page.url
            logger.error("Dashboard did not load. Current URL: %s", current_url)
            await self.take_screenshot("dashboard-load-error", is_failure=True)
            if is_login_url(current_url):
                raise AuthenticationError(f"Dashboard redirected to sign-in: {current_url}") from e
            raise EditorLoadError(f"Dashboard navigation failed. Current URL: {current_url}. Error: {e}") from e

        if is_login_url(self.page.url):
            raise AuthenticationError(f"Dashboard redirected to sign-in: {self.page.url}")
        await self.take_screenshot("dashboard-loaded")

    async def create_new_form_from_dashboard(self) -> None:
        """Create a Form Builder app through Create New App -> template -> scratch."""
        logger.info("Creating new Form Builder app from dashboard...")
        await self.wait_for_visible(self.create_new_app_button)
        await self.create_new_app_button.click()
        await self.wait_for_visible(self.app_selection_modal)
        await self.wait_for_visible(self.form_builder_card)
        await self.wait_for_visible(self.get_app_link)
        await self.get_app_link.click()
        await self.wait_for_visible(self.templates_header, 20000)
        await self.page.wait_for_url("**/templates?app_type=formBuilder*", timeout=20000)
        await self.wait_for_visible(self.start_from_scratch_button)
        await self.start_from_scratch_button.click()
        await self.wait_for_editor_load()
        await self.take_screenshot("editor-loaded-from-dashboard-flow")
