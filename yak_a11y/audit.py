"""
axe-core audit engine running inside the Playwright page.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from playwright.async_api import Page

from .config import BRANDING, RULE_TAGS, axe_source
from .models import Violation


logger = logging.getLogger(__name__)

AXE_LOADED_JS = "() => typeof window.axe !== 'undefined'"

AXE_CONFIGURE_JS = "(options) => { window.axe.configure(options); return true; }"

AXE_RUN_JS = """async ({ context, options }) => {
    const root = context ? document.querySelector(context) : document;
    return await window.axe.run(root || document, options);
}"""


@lru_cache(maxsize=None)
def axe_configuration(branding: str = BRANDING) -> Dict[str, Any]:
    return {
        "allowedOrigins": ["<unsafe_all_origins>"],
        "branding": {"application": branding},
    }


@lru_cache(maxsize=None)
def run_options(tags: Sequence[str] = RULE_TAGS) -> Dict[str, Any]:
    return {
        "runOnly": {"type": "tag", "values": list(tags)},
        "reporter": "v2",
    }


class AxeAuditor:
    """Injects axe-core into the current document on demand and runs it."""

    def __init__(self, source: Optional[str] = None, tags: Sequence[str] = RULE_TAGS):
        self.source = source or axe_source()
        self.tags = tuple(tags)
        self.passes = 0

    async def ensure_loaded(self, page: Page) -> None:
        # Navigation replaces window, so the check runs before every pass.
        if await page.evaluate(AXE_LOADED_JS):
            return
        if self.source.startswith(("http://", "https://")):
            await page.add_script_tag(url=self.source)
        else:
            await page.add_script_tag(path=str(Path(self.source)))
        await page.evaluate(AXE_CONFIGURE_JS, axe_configuration())

    async def audit(self, page: Page, context: Optional[str] = None) -> List[Violation]:
        await self.ensure_loaded(page)
        results = await page.evaluate(AXE_RUN_JS, {"context": context, "options": run_options(self.tags)})
        self.passes += 1
        violations = [Violation.from_axe(v) for v in (results or {}).get("violations") or []]
        logger.debug("Audit pass %d found %d violation(s)", self.passes, len(violations))
        return violations
