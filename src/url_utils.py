"""Shared URL utilities: classify where the browser ended up."""

from __future__ import annotations

from urllib.parse import urlparse

LOGIN_URL_PATTERNS = ("/signin", "/sign_in")


def is_login_url(url: str) -> bool:
    """True when the URL is one of the site's sign-in pages."""
    return any(pattern in (url or "") for pattern in LOGIN_URL_PATTERNS)


def is_path(url: str, path: str) -> bool:
    """True when the URL is at ``path`` or below it (query string ignored)."""
    target = path.split("?", 1)[0].rstrip("/")
    current = urlparse(url or "").path.rstrip("/")
    return bool(target) and (current == target or current.startswith(target + "/"))
