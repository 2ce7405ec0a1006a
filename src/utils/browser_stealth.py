"""Browser stealth utilities: reduces bot detection signals in Playwright."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from src.models.config import SuiteConfig

STEALTH_INIT_SCRIPT = """
// Hide navigator.webdriver
if (navigator.webdriver) {
    Object.defineProperty(navigator, 'webdriver', { get: () => false });
}

// Notifications permission answers like a real desktop browser
const originalQuery = navigator.permissions.query;
navigator.permissions.query = (parameters) =>
    parameters.name === 'notifications'
        ? Promise.resolve({ state: 'denied', onchange: null })
        : originalQuery(parameters);

Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'platform', { get: () => 'MacIntel' });

// WebGL vendor/renderer (headless reports SwiftShader)
try {
    const getParameter = WebGLRenderingContext.prototype.getParameter;
    WebGLRenderingContext.prototype.getParameter = function (parameter) {
        if (parameter === 37445) return 'Intel Open Source Technology Center';
        if (parameter === 37446) return 'Mesa DRI Intel(R) Iris(R) Plus Graphics 655 (CFL GT3)';
        return getParameter.call(this, parameter);
    };
} catch (e) {
    console.error('WebGL spoofing failed', e);
}
"""

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-features=IsolateOrigins,site-per-process,Translate",
    "--disable-site-isolation-trials",
]


async def launch_stealth_browser(playwright: Playwright, headless: bool = True, slow_mo: int = 0) -> Browser:
    """Launch Chromium with anti-detection arguments."""
    return await playwright.chromium.launch(headless=headless, slow_mo=slow_mo, args=LAUNCH_ARGS)


def context_options(config: SuiteConfig, storage_state: Optional[dict | str] = None) -> dict:
    """Context kwargs shared by global setup and per-test contexts."""
    options: dict = {
        "viewport": config.viewport.model_dump(),
        "user_agent": config.user_agent,
        "locale": "en-US",
        "timezone_id": "UTC",
        "base_url": config.base_url,
        "service_workers": "block",
        "extra_http_headers": {
            "Accept-Language": "en-US,en;q=0.9",
        },
    }
    if storage_state is not None:
        options["storage_state"] = storage_state
    return options


async def create_stealth_context(
    browser: Browser,
    config: SuiteConfig,
    storage_state: Optional[dict | str] = None,
) -> BrowserContext:
    """Create a browser context with stealth patches and the suite's timeouts.

    Args:
        storage_state: Optional Playwright storage state (cookies + localStorage)
            to seed the context with. Accepts a dict or a path to a JSON file.
    """
    context = await browser.new_context(**context_options(config, storage_state))
    context.set_default_timeout(config.action_timeout_ms)
    context.set_default_navigation_timeout(config.navigation_timeout_ms)
    await context.add_init_script(STEALTH_INIT_SCRIPT)
    return context
