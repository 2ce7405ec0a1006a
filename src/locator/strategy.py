"""Resilient element location: ordered selector candidates, first match wins."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, TypeVar, Union

from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Found:
    """A candidate selector matched at least one element."""

    target: str
    selector: str
    locator: Locator
    count: int
    text: Optional[str] = None


@dataclass(frozen=True)
class NotFound:
    """Every candidate was tried and none matched."""

    target: str
    attempted: tuple[str, ...] = ()


Resolution = Union[Found, NotFound]
Strategy = Callable[[], Awaitable[Resolution]]
Scope = Union[Page, Locator]


async def first_found(target: str, strategies: Sequence[Strategy]) -> Resolution:
    """Run strategies in order and return the first Found.

    Strategies after the winning one are never invoked.
    """
    attempted: list[str] = []
    for strategy in strategies:
        result = await strategy()
        if isinstance(result, Found):
            return result
        attempted.extend(result.attempted)
    return NotFound(target=target, attempted=tuple(attempted))


def selector_strategy(
    scope: Scope,
    target: str,
    selector: str,
    require_text: bool = False,
) -> Strategy:
    """Build a strategy that matches ``selector`` inside ``scope``.

    With ``require_text`` the first match must also have non-empty text.
    """

    async def attempt() -> Resolution:
        miss = NotFound(target=target, attempted=(selector,))
        try:
            locator = scope.locator(selector)
            count = await locator.count()
        except Exception as e:
            logger.debug("Locator '%s' for %s raised: %s", selector, target, e)
            return miss
        if count == 0:
            return miss

        text = None
        if require_text:
            try:
                text = ((await locator.first.text_content()) or "").strip()
            except Exception as e:
                logger.debug("Reading text of '%s' for %s failed: %s", selector, target, e)
                return miss
            if not text:
                return miss

        return Found(target=target, selector=selector, locator=locator, count=count, text=text)

    return attempt


def visible_strategy(target: str, label: str, locator: Locator, timeout: int = 5000) -> Strategy:
    """Build a strategy that succeeds once ``locator`` becomes visible."""

    async def attempt() -> Resolution:
        try:
            await locator.wait_for(state="visible", timeout=timeout)
        except Exception:
            logger.debug("%s: '%s' not visible within %dms", target, label, timeout)
            return NotFound(target=target, attempted=(label,))
        return Found(target=target, selector=label, locator=locator, count=1)

    return attempt


async def resolve(
    scope: Scope,
    target: str,
    candidates: Sequence[str],
    require_text: bool = False,
) -> Resolution:
    """Resolve a semantic target against an ordered candidate list.

    Resolution happens per call; nothing is cached between operations.
    """
    result = await first_found(
        target,
        [selector_strategy(scope, target, sel, require_text) for sel in candidates],
    )
    if isinstance(result, Found):
        logger.debug("Resolved %s via '%s' (%d match(es))", target, result.selector, result.count)
    else:
        logger.debug("Could not resolve %s (%d candidates tried)", target, len(result.attempted))
    return result


async def resolve_within(
    scope: Scope,
    target: str,
    container_candidates: Sequence[str],
    child_candidates: Sequence[str],
    require_text: bool = False,
) -> Resolution:
    """Resolve a container first, then a child inside it, both first-match-wins."""
    container = await resolve(scope, f"{target} container", container_candidates)
    if isinstance(container, NotFound):
        return NotFound(target=target, attempted=container.attempted)
    return await resolve(container.locator, target, child_candidates, require_text)


async def resolve_text(scope: Scope, target: str, candidates: Sequence[str]) -> str:
    """Trimmed text of the first candidate with non-empty text, or ''."""
    result = await resolve(scope, target, candidates, require_text=True)
    if isinstance(result, Found):
        return result.text or ""
    return ""


async def first_nonempty(
    tiers: Sequence[tuple[str, Callable[[], Awaitable[list[T]]]]],
) -> tuple[Optional[str], list[T]]:
    """Run list-producing tiers in priority order; stop at the first non-empty one.

    Returns (tier name, results), or (None, []) when every tier came back empty.
    """
    for name, tier in tiers:
        results = await tier()
        if results:
            logger.info("'%s' produced %d result(s)", name, len(results))
            return name, results
        logger.debug("'%s' produced nothing, falling back", name)
    return None, []
