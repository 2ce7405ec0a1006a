"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional, Union
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.evidence.screenshot_recorder import ScreenshotRecorder
from src.models.config import Credentials, ScreenshotMode, SuiteConfig

BASE_URL = "https://www.powr.io"
DASHBOARD_URL = f"{BASE_URL}/users/me"
SIGNIN_URL = f"{BASE_URL}/signin?lang=en"


# ============================================================================
# Fake DOM
# ============================================================================


class FakeElement:
    """One element in the fake DOM: text, visibility, computed styles and children."""

    def __init__(
        self,
        text: str = "",
        children: Optional[dict[str, list["FakeElement"]]] = None,
        visible: bool = True,
        style: Optional[dict[str, str]] = None,
    ):
        self.text = text
        self.children = children or {}
        self.visible = visible
        self.style = style or {}
        self.clicks = 0
        self.value = ""


class FakeLocator:
    """Locator over FakeElements.

    Elements are looked up on every access, like a real locator. Chained
    ``locator()`` calls look selectors up in each element's children.
    """

    def __init__(self, selector: str, elements: Union[list[FakeElement], Callable[[], list[FakeElement]]]):
        self.selector = selector
        self._resolve = elements if callable(elements) else (lambda: elements)

    @property
    def elements(self) -> list[FakeElement]:
        return self._resolve()

    def __repr__(self) -> str:
        return f"FakeLocator({self.selector!r})"

    def locator(self, selector: str) -> "FakeLocator":
        return FakeLocator(
            f"{self.selector} >> {selector}",
            lambda: [c for e in self.elements for c in e.children.get(selector, [])],
        )

    def or_(self, other: "FakeLocator") -> "FakeLocator":
        return FakeLocator(f"{self.selector} | {other.selector}", lambda: self.elements + other.elements)

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(f"{self.selector} >> nth={index}", lambda: self.elements[index:index + 1])

    async def count(self) -> int:
        return len(self.elements)

    async def text_content(self, **kwargs) -> Optional[str]:
        if not self.elements:
            raise PlaywrightTimeoutError(f"no element for {self.selector}")
        return self.elements[0].text

    async def all_text_contents(self) -> list[str]:
        return [e.text for e in self.elements]

    async def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        visible = bool(self.elements) and self.elements[0].visible
        if state == "visible" and not visible:
            raise PlaywrightTimeoutError(f"{self.selector} not visible")
        if state == "attached" and not self.elements:
            raise PlaywrightTimeoutError(f"{self.selector} not attached")
        if state in ("hidden", "detached") and visible:
            raise PlaywrightTimeoutError(f"{self.selector} still visible")

    async def click(self, **kwargs) -> None:
        if not self.elements:
            raise PlaywrightTimeoutError(f"cannot click {self.selector}")
        self.elements[0].clicks += 1

    async def fill(self, value: str, **kwargs) -> None:
        if not self.elements:
            raise PlaywrightTimeoutError(f"cannot fill {self.selector}")
        self.elements[0].value = value

    async def input_value(self, **kwargs) -> str:
        return self.elements[0].value if self.elements else ""

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return self.elements[0].style.get(arg, "") if self.elements else ""


class FakePage:
    """Page over a selector -> elements map. Records every page-level lookup."""

    def __init__(self, dom: Optional[dict[str, list[FakeElement]]] = None, url: str = "about:blank"):
        self.dom = dom or {}
        self.url = url
        self.redirects: dict[str, str] = {}
        self.lookups: list[str] = []
        self.visited: list[str] = []
        self.waited_ms: list[int] = []
        self.waited_urls: list = []
        self.closed = False
        self.keyboard = MagicMock()
        self.keyboard.press = AsyncMock()
        self.context = MagicMock()
        self.screenshot = AsyncMock()

    def locator(self, selector: str) -> FakeLocator:
        self.lookups.append(selector)
        return FakeLocator(selector, lambda: self.dom.get(selector, []))

    async def goto(self, url: str, **kwargs) -> MagicMock:
        self.visited.append(url)
        self.url = self.redirects.get(url, url)
        return MagicMock(status=200)

    async def wait_for_timeout(self, ms: int) -> None:
        self.waited_ms.append(ms)

    async def wait_for_url(self, url, **kwargs) -> None:
        self.waited_urls.append(url)

    async def wait_for_selector(self, selector: str, state: str = "visible", timeout: Optional[float] = None):
        await self.locator(selector).wait_for(state=state, timeout=timeout)

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        return None

    async def title(self) -> str:
        return "POWR"

    async def content(self) -> str:
        return "<html></html>"

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage(url=DASHBOARD_URL)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config(tmp_path: Path) -> SuiteConfig:
    """Suite config with credentials, screenshots disabled and tmp paths."""
    return SuiteConfig(
        base_url=BASE_URL,
        credentials=Credentials(email="qa@example.com", password="secret"),
        auth_file=tmp_path / ".auth" / "user.json",
        screenshots_dir=tmp_path / "screenshots",
        screenshot_mode=ScreenshotMode.DISABLED,
        captcha_wait_timeout_ms=60000,
    )


@pytest.fixture
def recorder(config: SuiteConfig) -> ScreenshotRecorder:
    return ScreenshotRecorder.from_config(config)


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_recorder() -> MagicMock:
    """Recorder whose captures are recorded but never touch the page."""
    mock = MagicMock(spec=ScreenshotRecorder)
    mock.capture = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_page() -> MagicMock:
    """Playwright page stand-in with async navigation methods."""
    page = MagicMock()
    page.url = DASHBOARD_URL
    page.goto = AsyncMock(return_value=MagicMock(status=200))
    page.wait_for_timeout = AsyncMock()
    page.screenshot = AsyncMock()
    return page


def stub_login_page(url: str = SIGNIN_URL, captcha: bool = False) -> MagicMock:
    """LoginPage stand-in sitting on ``url`` whose actions are all AsyncMocks."""
    page = MagicMock()
    page.url = url
    page.wait_for_timeout = AsyncMock()

    login_page = MagicMock()
    login_page.page = page
    login_page.on_login_page.side_effect = lambda: "/signin" in page.url
    login_page.on_dashboard.side_effect = lambda: page.url.startswith(DASHBOARD_URL)
    login_page.dashboard_indicator = MagicMock()
    login_page.navigate = AsyncMock()
    login_page.wait_for_page_load = AsyncMock()
    login_page.take_screenshot = AsyncMock()
    login_page.fill_credentials = AsyncMock()
    login_page.submit = AsyncMock()
    login_page.wait_for_login_signal = AsyncMock(return_value="navigation")
    login_page.has_captcha_challenge = AsyncMock(return_value=captcha)
    return login_page
