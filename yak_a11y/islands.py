"""
Island isolation phase.

Every hydrated fragment is re-mounted on its own in a throwaway sandbox
container, the document is audited, and the container is removed again
before the next island is mounted.
"""

import logging
import secrets
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Set

from playwright.async_api import Error as PlaywrightError, Page

from .audit import AxeAuditor
from .config import CheckConfiguration
from .models import Island, Violation
from .phases import CheckState, Phase


logger = logging.getLogger(__name__)

ISLAND_ID_ATTRIBUTE = "data-astro-cid"
ISLAND_FRAMEWORK_ATTRIBUTE = "data-astro-client"
MOUNT_DELAY_MS = 500

DISCOVER_ISLANDS_JS = """({ idAttribute, frameworkAttribute }) =>
    Array.from(document.querySelectorAll(`[${idAttribute}]`)).map((el) => ({
        id: el.getAttribute(idAttribute) || '',
        framework: el.getAttribute(frameworkAttribute) || '',
        markup: el.outerHTML,
    }))"""

MOUNT_SANDBOX_JS = """({ id, markup }) => {
    const container = document.createElement('div');
    container.id = id;
    container.setAttribute('data-island-sandbox', '');
    container.innerHTML = markup;
    document.body.appendChild(container);
    return id;
}"""

SANDBOX_IDLE_JS = """(id) => {
    const container = document.getElementById(id);
    return !!container && !container.querySelector('[aria-busy="true"]');
}"""

REMOVE_SANDBOX_JS = """(id) => {
    const container = document.getElementById(id);
    if (container) container.remove();
    return !!container;
}"""


def sandbox_id() -> str:
    return f"island-sandbox-{time.time_ns()}-{secrets.token_hex(4)}"


async def discover_islands(page: Page) -> List[Island]:
    found = await page.evaluate(
        DISCOVER_ISLANDS_JS,
        {"idAttribute": ISLAND_ID_ATTRIBUTE, "frameworkAttribute": ISLAND_FRAMEWORK_ATTRIBUTE},
    )
    return [Island(id=i.get("id", ""), framework=i.get("framework", ""), markup=i.get("markup", "")) for i in found or []]


@asynccontextmanager
async def mounted_sandbox(page: Page, island: Island) -> AsyncIterator[str]:
    container_id = sandbox_id()
    await page.evaluate(MOUNT_SANDBOX_JS, {"id": container_id, "markup": island.markup})
    try:
        yield container_id
    finally:
        try:
            await page.evaluate(REMOVE_SANDBOX_JS, container_id)
        except PlaywrightError as exc:
            logger.warning("Could not remove sandbox %s: %s", container_id, exc)


class IslandIsolationTester(Phase):
    name = "islands"
    state = CheckState.ISLAND_AUDIT

    def __init__(self, auditor: AxeAuditor):
        super().__init__()
        self.auditor = auditor
        self.islands_tested = 0

    async def wait_until_idle(self, page: Page, container_id: str, island: Island, timeout_ms: int) -> None:
        await page.wait_for_timeout(MOUNT_DELAY_MS)
        try:
            await page.wait_for_function(SANDBOX_IDLE_JS, arg=container_id, timeout=timeout_ms)
        except PlaywrightError:
            self.note(f"Timeout waiting for island {island.id} to initialize")

    async def test_island(self, page: Page, island: Island, timeout_ms: int) -> List[Violation]:
        async with mounted_sandbox(page, island) as container_id:
            await self.wait_until_idle(page, container_id, island, timeout_ms)
            # Isolation comes from DOM placement, so the whole document is audited.
            violations = await self.auditor.audit(page)
        return [v.with_component(island.component_tag) for v in violations]

    async def run(self, page: Page, config: CheckConfiguration) -> List[Violation]:
        options = config.island_testing
        frameworks: Set[str] = set(options.frameworks)
        if not config.islands_requested or not frameworks:
            return []

        islands = await discover_islands(page)
        selected = [i for i in islands if i.framework in frameworks]
        logger.info("Found %d island(s), %d using %s", len(islands), len(selected), ", ".join(sorted(frameworks)))

        violations: List[Violation] = []
        for island in selected:
            try:
                violations.extend(await self.test_island(page, island, options.settle_timeout_ms))
                self.islands_tested += 1
            except Exception as exc:
                if config.strict:
                    raise
                self.note(f"Island {island.id} ({island.framework}) could not be tested: {exc}")
        return violations
