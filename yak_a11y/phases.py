"""
Shared building blocks for the audit phases: check states, the phase base
class and the timeout combinators every phase waits with.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Iterable, List, Tuple

from playwright.async_api import Error as PlaywrightError, Page

from .config import CheckConfiguration
from .models import Violation


logger = logging.getLogger(__name__)


class CheckState(str, Enum):
    INIT = "INIT"
    NAVIGATING = "NAVIGATING"
    STATIC_AUDIT = "STATIC_AUDIT"
    DYNAMIC_AUDIT = "DYNAMIC_AUDIT"
    ISLAND_AUDIT = "ISLAND_AUDIT"
    AGGREGATING = "AGGREGATING"
    REPORTING = "REPORTING"
    DONE = "DONE"
    FAILED = "FAILED"


async def race_with_timer(awaitable: Awaitable[Any], timeout_ms: int) -> bool:
    """Wait for ``awaitable`` or a fallback timer, whichever finishes first.

    Returns True when the condition won the race. Playwright timeouts and
    errors count as losing; the caller decides whether that matters.
    """
    try:
        await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000.0)
        return True
    except asyncio.TimeoutError:
        return False
    except PlaywrightError as exc:
        logger.debug("Condition failed before timer: %s", exc)
        return False


async def gather_with_timeout(coros: Iterable[Awaitable[Any]], timeout_ms: int) -> Tuple[int, int, int]:
    """Start every coroutine at once and wait until all settle or time runs out.

    Returns ``(settled, failed, timed_out)``. Stragglers are cancelled.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    if not tasks:
        return 0, 0, 0
    done, pending = await asyncio.wait(tasks, timeout=timeout_ms / 1000.0)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
    failed = 0
    for task in done:
        exc = task.exception()
        if exc is not None:
            failed += 1
            logger.debug("Interaction failed: %s", exc)
    return len(done) - failed, failed, len(pending)


class Phase:
    """One stage of a check. Subclasses implement ``run``."""

    name = "phase"
    state = CheckState.STATIC_AUDIT

    def __init__(self) -> None:
        self.notes: List[str] = []

    def note(self, message: str) -> None:
        logger.warning(message)
        self.notes.append(message)

    async def run(self, page: Page, config: CheckConfiguration) -> List[Violation]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
