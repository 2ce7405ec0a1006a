"""Racing bounded waits against each other."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Mapping, Optional

logger = logging.getLogger(__name__)


async def first_success(waiters: Mapping[str, Awaitable]) -> Optional[str]:
    """Run the waits concurrently and return the name of the first to succeed.

    A wait that raises (typically a Playwright timeout) is ignored as long as
    another one is still running. Returns None when every wait failed.
    Losing waits are cancelled and awaited before returning.
    """
    tasks = {asyncio.ensure_future(aw): name for name, aw in waiters.items()}
    pending = set(tasks)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            winner = None
            for task in done:
                # every finished task's exception is read, even once a winner is known
                error = task.exception()
                if error is not None:
                    logger.debug("Wait '%s' failed: %s", tasks[task], error)
                elif winner is None:
                    winner = tasks[task]
            if winner is not None:
                return winner
        return None
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
