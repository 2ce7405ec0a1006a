"""Screenshot recorder: mode-gated, timestamped diagnostic screenshots."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Page

from src.models.config import ScreenshotMode, SuiteConfig

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def _timestamp() -> str:
    # ISO-8601 with the separators a filename can't carry swapped for '-'
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


class ScreenshotRecorder:
    """Captures screenshots according to the configured ScreenshotMode.

    One recorder is built per process from the SuiteConfig and handed to
    every page object, so the mode is read exactly once.
    """

    def __init__(self, mode: ScreenshotMode, screenshots_dir: Path):
        self.mode = mode
        self.screenshots_dir = Path(screenshots_dir)
        self._issued: set[Path] = set()

    @classmethod
    def from_config(cls, config: SuiteConfig) -> "ScreenshotRecorder":
        return cls(config.screenshot_mode, config.screenshots_dir)

    def should_capture(self, is_failure: bool = False) -> bool:
        if self.mode is ScreenshotMode.DISABLED:
            return False
        if self.mode is ScreenshotMode.FAILURES_ONLY:
            return is_failure
        return True

    def generate_path(self, base_name: str) -> Optional[Path]:
        """Build a unique path under the screenshots directory.

        Returns None if the directory can't be created.
        """
        if not self.screenshots_dir.exists():
            try:
                logger.info("Creating screenshots directory at: %s", self.screenshots_dir)
                self.screenshots_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error("Failed to create screenshots directory at %s: %s", self.screenshots_dir, e)
                return None

        base = Path(base_name)
        stem = _UNSAFE_CHARS.sub("_", base.stem)
        ext = base.suffix or ".png"
        stamp = _timestamp()

        path = self.screenshots_dir / f"{stem}-{stamp}{ext}"
        n = 1
        while path in self._issued or path.exists():
            path = self.screenshots_dir / f"{stem}-{stamp}-{n}{ext}"
            n += 1
        self._issued.add(path)

        logger.debug("Generated screenshot path: %s", path)
        return path

    def screenshot_path(self, base_name: str, is_failure: bool = False) -> Optional[Path]:
        """Path for a screenshot taken by someone else, or None if gated off."""
        if not self.should_capture(is_failure):
            logger.debug(
                "Screenshot path for '%s' skipped (mode=%s, failure=%s)",
                base_name, self.mode.value, is_failure,
            )
            return None
        return self.generate_path(base_name)

    async def capture(
        self,
        page: Page,
        base_name: str,
        options: dict[str, Any] | None = None,
        is_failure: bool = False,
    ) -> Optional[str]:
        """Take a screenshot if the mode allows it and return its path.

        Capture errors are logged and reported as None; they never abort
        the calling flow.
        """
        if not self.should_capture(is_failure):
            logger.debug(
                "Screenshot '%s' skipped (mode=%s, failure=%s)",
                base_name, self.mode.value, is_failure,
            )
            return None

        path = self.generate_path(base_name)
        if path is None:
            logger.error("Skipping screenshot '%s' due to path generation error.", base_name)
            return None

        kwargs = dict(options or {})
        kwargs.pop("path", None)
        try:
            await page.screenshot(**kwargs, path=str(path))
            logger.info("Screenshot saved: %s", path)
            return str(path)
        except Exception as e:
            logger.error("Failed to take screenshot '%s' to '%s': %s", base_name, path, e)
            return None
