"""Session store: one Playwright storage-state file, reused across runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import BrowserContext

logger = logging.getLogger(__name__)


class SessionStore:
    """Persists the browser session (cookies + localStorage) to a single file.

    The file is either valid as a whole or discarded as a whole; saves
    always overwrite it.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def has_stored_session(self) -> bool:
        return self.path.exists()

    def storage_state_path(self) -> Optional[str]:
        """Path to seed a new context with, or None when nothing is stored."""
        if self.has_stored_session():
            logger.debug("Loading storage state from: %s", self.path)
            return str(self.path)
        logger.warning("Auth file not found at %s. Context will be created without stored state.", self.path)
        return None

    def ensure_dir(self) -> None:
        if not self.path.parent.exists():
            logger.info("Creating auth directory: %s", self.path.parent)
            self.path.parent.mkdir(parents=True, exist_ok=True)

    async def save_session(self, context: BrowserContext) -> Path:
        """Serialize the context's storage state over the stored file."""
        self.ensure_dir()
        state = await context.storage_state(path=str(self.path))
        logger.info(
            "Authentication state saved to: %s (%d cookies)",
            self.path, len((state or {}).get("cookies", [])),
        )
        return self.path

    def discard(self) -> bool:
        """Delete the stored session. Returns True if a file was removed."""
        if not self.path.exists():
            return False
        try:
            self.path.unlink()
        except OSError as e:
            logger.error("Failed to delete invalid auth file %s: %s", self.path, e)
            return False
        logger.info("Deleted invalid/stale auth file: %s", self.path)
        return True
