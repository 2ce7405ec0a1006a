"""Configuration models for the POWR end-to-end suite."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.powr.io"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Safari/537.36"
)


class LogLevel(str, Enum):
    SILLY = "silly"
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class ScreenshotMode(str, Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"  # every requested screenshot
    FAILURES_ONLY = "failures_only"  # only screenshots flagged as failures


class ViewportConfig(BaseModel):
    width: int = 1920
    height: int = 1080


class Credentials(BaseModel):
    email: str = ""
    password: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.email) and bool(self.password)

    def masked_email(self) -> str:
        """Email prefix safe to put in logs."""
        if not self.email:
            return "undefined"
        return self.email[:3] + "***"


def _parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def parse_log_level(raw: Optional[str]) -> LogLevel:
    """Map a LOG_LEVEL string to a LogLevel, defaulting to info."""
    if not raw:
        return LogLevel.INFO
    try:
        return LogLevel(raw.strip().lower())
    except ValueError:
        return LogLevel.INFO


def parse_screenshot_mode(raw: Optional[str]) -> ScreenshotMode:
    """Map a SCREENSHOT_MODE string to a ScreenshotMode, defaulting to enabled."""
    if raw is None:
        logger.info("SCREENSHOT_MODE not set, defaulting to '%s'.", ScreenshotMode.ENABLED.value)
        return ScreenshotMode.ENABLED
    try:
        return ScreenshotMode(raw.strip().lower())
    except ValueError:
        logger.warning(
            "SCREENSHOT_MODE '%s' is invalid. Defaulting to '%s'. "
            "Valid options: enabled, disabled, failures_only.",
            raw, ScreenshotMode.ENABLED.value,
        )
        return ScreenshotMode.ENABLED


class SuiteConfig(BaseModel):
    # Target
    base_url: str = DEFAULT_BASE_URL
    protected_path: str = "/users/me"
    login_path: str = "/signin?lang=en"

    # Authentication
    credentials: Credentials = Field(default_factory=Credentials)
    auth_file: Path = Path(".auth/user.json")
    global_setup_headless: bool = False
    captcha_wait_timeout_ms: int = 60000

    # Diagnostics
    log_level: LogLevel = LogLevel.INFO
    screenshot_mode: ScreenshotMode = ScreenshotMode.ENABLED
    screenshots_dir: Path = Path("screenshots")
    debug_mode: bool = False

    # Browser
    user_agent: str = DEFAULT_USER_AGENT
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    action_timeout_ms: int = 15000
    navigation_timeout_ms: int = 30000

    model_config = {"frozen": True}

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("captcha_wait_timeout_ms")
    @classmethod
    def non_negative_wait(cls, v: int) -> int:
        if v < 0:
            raise ValueError("captcha_wait_timeout_ms must be >= 0")
        return v

    @property
    def has_credentials(self) -> bool:
        return self.credentials.complete

    @property
    def protected_url(self) -> str:
        return self.url_for(self.protected_path)

    @property
    def login_url(self) -> str:
        return self.url_for(self.login_path)

    def url_for(self, path_or_url: str) -> str:
        """Resolve a site-relative path against base_url; absolute URLs pass through."""
        if path_or_url.startswith("http"):
            return path_or_url
        if not path_or_url.startswith("/"):
            path_or_url = "/" + path_or_url
        return f"{self.base_url}{path_or_url}"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        dotenv_path: str | Path | None = None,
        **overrides,
    ) -> "SuiteConfig":
        """Build the process-wide config from environment variables.

        A ``.env`` file is loaded first unless an explicit ``environ`` mapping
        is given. Keyword overrides win over the environment.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        data: dict = {
            "credentials": Credentials(
                email=environ.get("USER_EMAIL", ""),
                password=environ.get("USER_PASSWORD", ""),
            ),
            "log_level": parse_log_level(environ.get("LOG_LEVEL")),
            "screenshot_mode": parse_screenshot_mode(environ.get("SCREENSHOT_MODE")),
            "global_setup_headless": _parse_bool(environ.get("GLOBAL_SETUP_HEADLESS")),
            "debug_mode": _parse_bool(environ.get("DEBUG_MODE")),
        }

        raw_wait = environ.get("CAPTCHA_WAIT_TIMEOUT")
        if raw_wait:
            try:
                data["captcha_wait_timeout_ms"] = int(raw_wait)
            except ValueError:
                logger.warning("CAPTCHA_WAIT_TIMEOUT '%s' is not an integer, using default", raw_wait)

        if environ.get("BASE_URL"):
            data["base_url"] = environ["BASE_URL"]
        if environ.get("USER_AGENT"):
            data["user_agent"] = environ["USER_AGENT"]

        data.update(overrides)
        return cls(**data)
