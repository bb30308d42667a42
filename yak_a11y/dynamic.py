"""
Dynamic content phase: hydrate, interact, settle, audit, then optionally walk
same-origin client-side routes.
"""

import logging
from typing import List

from playwright.async_api import Error as PlaywrightError, Page

from .audit import AxeAuditor
from .config import CheckConfiguration
from .errors import HydrationTimeoutError
from .models import Violation
from .phases import CheckState, Phase, gather_with_timeout, race_with_timer


logger = logging.getLogger(__name__)

CLICKABLE_SELECTOR = "button, [role='button']"
INPUT_SELECTOR = "input, textarea, select"
SETTLE_DELAY_MS = 100

HYDRATED_JS = "() => document.documentElement.dataset.hydrated === 'true'"

# One animation frame plus 50ms after the element's own handler ran.
CLICK_AND_SETTLE_JS = """(el) => new Promise((resolve) => {
    el.addEventListener('click', () => requestAnimationFrame(() => setTimeout(resolve, 50)), { once: true });
    el.click();
})"""

INPUT_AND_SETTLE_JS = """(el) => new Promise((resolve) => {
    el.addEventListener('change', () => requestAnimationFrame(() => setTimeout(resolve, 50)), { once: true });
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
})"""

SAME_ORIGIN_LINKS_JS = """() => {
    const seen = new Set();
    const links = [];
    for (const a of document.querySelectorAll('a[href]')) {
        const raw = a.getAttribute('href') || '';
        if (!raw || raw.startsWith('#') || a.origin !== location.origin) continue;
        const path = a.pathname + a.search;
        if (path === location.pathname + location.search || seen.has(raw)) continue;
        seen.add(raw);
        links.push(raw);
    }
    return links;
}"""


def link_selector(href: str) -> str:
    escaped = href.replace("\\", "\\\\").replace('"', '\\"')
    return f'a[href="{escaped}"]'


class DynamicContentSimulator(Phase):
    name = "dynamic"
    state = CheckState.DYNAMIC_AUDIT

    def __init__(self, auditor: AxeAuditor):
        super().__init__()
        self.auditor = auditor
        self.links_tested = 0

    async def wait_for_hydration(self, page: Page, config: CheckConfiguration) -> bool:
        timeout_ms = config.dynamic_testing.ajax_timeout_ms
        try:
            await page.wait_for_function(HYDRATED_JS, timeout=timeout_ms)
        except PlaywrightError:
            if config.strict:
                raise HydrationTimeoutError(timeout_ms) from None
            self.note("Hydration timeout - some components may not be fully interactive")
            return False
        await page.wait_for_timeout(SETTLE_DELAY_MS)
        return True

    async def interact(self, page: Page, timeout_ms: int) -> None:
        clickables = await page.query_selector_all(CLICKABLE_SELECTOR)
        inputs = await page.query_selector_all(INPUT_SELECTOR)
        interactions = [el.evaluate(CLICK_AND_SETTLE_JS) for el in clickables]
        interactions += [el.evaluate(INPUT_AND_SETTLE_JS) for el in inputs]
        settled, failed, timed_out = await gather_with_timeout(interactions, timeout_ms)
        logger.info(
            "Interactions: %d settled, %d failed, %d still pending after %dms",
            settled, failed, timed_out, timeout_ms,
        )
        if timed_out:
            self.note(f"{timed_out} interaction(s) did not settle within {timeout_ms}ms")

    async def wait_for_quiet_network(self, page: Page, timeout_ms: int) -> bool:
        quiet = await race_with_timer(page.wait_for_load_state("networkidle", timeout=timeout_ms), timeout_ms)
        await page.wait_for_timeout(SETTLE_DELAY_MS)
        return quiet

    async def test_route(self, page: Page, href: str, timeout_ms: int) -> List[Violation]:
        await page.click(link_selector(href), timeout=timeout_ms)
        await race_with_timer(page.wait_for_load_state("load", timeout=timeout_ms), timeout_ms)
        await self.wait_for_quiet_network(page, timeout_ms)
        return await self.auditor.audit(page)

    async def return_to(self, page: Page, base_url: str, timeout_ms: int) -> None:
        if page.url == base_url:
            return
        await page.goto(base_url, wait_until="domcontentloaded", timeout=timeout_ms)
        await self.wait_for_quiet_network(page, timeout_ms)

    async def test_routes(self, page: Page, timeout_ms: int) -> List[Violation]:
        violations: List[Violation] = []
        base_url = page.url
        links = await page.evaluate(SAME_ORIGIN_LINKS_JS)
        logger.info("Testing %d client-side route(s)", len(links or []))
        try:
            for href in links or []:
                try:
                    await self.return_to(page, base_url, timeout_ms)
                    violations.extend(await self.test_route(page, href, timeout_ms))
                    self.links_tested += 1
                except Exception as exc:
                    self.note(f"Navigation error for link {href}: {exc}")
        finally:
            # Later phases work on the page under test, not the last route.
            await self.return_to(page, base_url, timeout_ms)
        return violations

    async def run(self, page: Page, config: CheckConfiguration) -> List[Violation]:
        options = config.dynamic_testing
        if options.wait_for_hydration:
            await self.wait_for_hydration(page, config)

        await self.interact(page, options.ajax_timeout_ms)
        if not await self.wait_for_quiet_network(page, options.ajax_timeout_ms):
            logger.info("Network did not go idle within %dms, auditing anyway", options.ajax_timeout_ms)

        violations = await self.auditor.audit(page)
        if options.route_changes:
            violations.extend(await self.test_routes(page, options.ajax_timeout_ms))
        return violations
