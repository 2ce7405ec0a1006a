"""Login orchestration: drives the sign-in UI through an explicit state machine.

START -> FORM_FILL -> SUBMIT -> VERIFY -> AUTHENTICATED
                                  |
                                  v
                            CAPTCHA_CHECK -> MANUAL_WAIT -> VERIFY
                                  |
                                  v
                                FAILED
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from playwright.async_api import Page

from src.auth.verifier import AuthVerifier
from src.errors import AuthenticationError
from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.models.config import SuiteConfig
from src.pages.login_page import LoginPage

logger = logging.getLogger(__name__)


class LoginState(str, Enum):
    START = "start"
    FORM_FILL = "form_fill"
    SUBMIT = "submit"
    VERIFY = "verify"
    CAPTCHA_CHECK = "captcha_check"
    MANUAL_WAIT = "manual_wait"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


TERMINAL_STATES = frozenset({LoginState.AUTHENTICATED, LoginState.FAILED})


class LoginResult:
    """Outcome of a login attempt, with the states it passed through."""

    def __init__(
        self,
        state: LoginState = LoginState.START,
        transitions: Optional[list[LoginState]] = None,
        error: Optional[str] = None,
        final_url: Optional[str] = None,
        reused_session: bool = False,
    ):
        self.state = state
        self.transitions = transitions if transitions is not None else []
        self.error = error
        self.final_url = final_url
        self.reused_session = reused_session

    @property
    def success(self) -> bool:
        return self.state is LoginState.AUTHENTICATED


class LoginOrchestrator:
    """Logs in through the UI, waiting out a CAPTCHA if one shows up."""

    def __init__(
        self,
        config: SuiteConfig,
        login_page: LoginPage,
        verifier: AuthVerifier,
        recorder: ScreenshotRecorder,
        submit_timeout_ms: int = 25000,
        verify_timeout_ms: int = 15000,
    ):
        self.config = config
        self.login_page = login_page
        self.verifier = verifier
        self.recorder = recorder
        self.submit_timeout_ms = submit_timeout_ms
        self.verify_timeout_ms = verify_timeout_ms

    @property
    def page(self) -> Page:
        return self.login_page.page

    async def login(self, email: Optional[str] = None, password: Optional[str] = None) -> LoginResult:
        """Run the state machine until AUTHENTICATED or FAILED."""
        email = email if email is not None else self.config.credentials.email
        password = password if password is not None else self.config.credentials.password
        if not email or not password:
            logger.error("Login error: email or password not provided.")
            raise AuthenticationError("Email or password not provided.")

        logger.info("Attempting login...")
        result = LoginResult()
        captcha_waited = False
        state = LoginState.START

        while True:
            result.transitions.append(state)
            result.state = state
            if state in TERMINAL_STATES:
                break

            if state is LoginState.START:
                state = await self._start()
            elif state is LoginState.FORM_FILL:
                state = await self._form_fill(email, password, result)
            elif state is LoginState.SUBMIT:
                state = await self._submit(result)
            elif state is LoginState.VERIFY:
                if await self._verify():
                    state = LoginState.AUTHENTICATED
                elif captcha_waited:
                    result.error = f"Login failed even after manual CAPTCHA wait. URL: {self.page.url}"
                    state = LoginState.FAILED
                else:
                    state = LoginState.CAPTCHA_CHECK
            elif state is LoginState.CAPTCHA_CHECK:
                if await self.login_page.has_captcha_challenge():
                    state = LoginState.MANUAL_WAIT
                else:
                    result.error = result.error or (
                        f"Login failed without obvious CAPTCHA. Check credentials or site status. "
                        f"URL: {self.page.url}"
                    )
                    state = LoginState.FAILED
            elif state is LoginState.MANUAL_WAIT:
                await self._manual_wait()
                captcha_waited = True
                state = LoginState.VERIFY

        result.final_url = self.page.url
        if result.success:
            logger.info("Login successful.")
            await self.recorder.capture(self.page, "login-success.png")
        else:
            logger.error("Login failed: %s", result.error)
            await self.recorder.capture(self.page, "login-failed.png", is_failure=True)
        return result

    async def _start(self) -> LoginState:
        if self.login_page.on_login_page():
            logger.info("Already on login page, ensuring load state.")
            await self.login_page.wait_for_page_load("domcontentloaded")
        elif self.login_page.on_dashboard():
            logger.warning("On dashboard URL before filling form, checking if already logged in.")
            if await self.verifier.is_logged_in(self.page, self.login_page.dashboard_indicator, 5000):
                logger.info("Already logged in, skipping form.")
                return LoginState.AUTHENTICATED
            await self.login_page.navigate()
        else:
            logger.info("Current URL %s is not login/dashboard, navigating to login page.", self.page.url)
            await self.login_page.navigate()
        return LoginState.FORM_FILL

    async def _form_fill(self, email: str, password: str, result: LoginResult) -> LoginState:
        await self.login_page.take_screenshot("login-page-before-fill")
        try:
            await self.login_page.fill_credentials(email, password)
        except Exception as e:
            # a challenge overlay can hide the form, so look for one before giving up
            logger.error("Error filling login form: %s", e)
            result.error = f"Could not fill login form: {e}"
            await self.login_page.take_screenshot("login-process-error", is_failure=True)
            return LoginState.CAPTCHA_CHECK
        await self.login_page.take_screenshot("login-page-filled")
        return LoginState.SUBMIT

    async def _submit(self, result: LoginResult) -> LoginState:
        try:
            await self.login_page.submit()
        except Exception as e:
            logger.error("Error submitting login form: %s", e)
            result.error = f"Could not submit login form: {e}"
            await self.login_page.take_screenshot("login-process-error", is_failure=True)
            return LoginState.CAPTCHA_CHECK

        logger.info("Waiting for login result (navigation or dashboard indicator)...")
        signal = await self.login_page.wait_for_login_signal(self.submit_timeout_ms)
        if signal is None:
            logger.warning("Navigation and dashboard indicator both timed out after submit.")
            await self.login_page.take_screenshot("login-navigation-or-indicator-issue", is_failure=True)
        else:
            logger.info("Login %s signal detected.", signal)
        return LoginState.VERIFY

    async def _verify(self) -> bool:
        logger.info("Verifying login success...")
        logged_in = await self.verifier.is_logged_in(
            self.page, self.login_page.dashboard_indicator, self.verify_timeout_ms,
        )
        if not logged_in:
            logger.warning("Login not verified. URL: %s", self.page.url)
            await self.login_page.take_screenshot("login-verify-failed", is_failure=True)
        return logged_in

    async def _manual_wait(self) -> None:
        wait_ms = self.config.captcha_wait_timeout_ms
        logger.warning(
            "CAPTCHA DETECTED! Please solve it manually in the browser. Waiting %ds...",
            wait_ms // 1000,
        )
        await self.login_page.take_screenshot("login-captcha-detected", is_failure=True)
        await self.page.wait_for_timeout(wait_ms)
        logger.info("Re-verifying login after CAPTCHA wait...")
