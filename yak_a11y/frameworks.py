"""
Best-effort detection of the client frameworks a page actually ships.

Each framework is described by independent signatures; a framework counts as
detected when any one of them matches.
"""

import logging
import re
from typing import Dict, List, Optional, Set

from playwright.async_api import Error as PlaywrightError, Page


logger = logging.getLogger(__name__)

READY_TIMEOUT_MS = 10000
SETTLE_DELAY_MS = 500

ISLAND_CLIENT_ATTRIBUTE = "data-astro-client"

FRAMEWORK_SIGNATURES: Dict[str, Dict[str, List[str]]] = {
    "react": {
        "globals": ["React", "__REACT_DEVTOOLS_GLOBAL_HOOK__"],
        "scripts": ["react"],
        "attributes": ["data-reactroot", "data-reactid", "data-react-checksum"],
    },
    "preact": {
        "globals": ["preact", "__PREACT_DEVTOOLS__"],
        "scripts": ["preact"],
        "attributes": [],
    },
    "vue": {
        "globals": ["Vue", "__VUE__", "__VUE_DEVTOOLS_GLOBAL_HOOK__"],
        "scripts": ["vue"],
        "attributes": ["data-v-app", "data-server-rendered"],
    },
    "svelte": {
        "globals": ["__svelte"],
        "scripts": ["svelte"],
        "attributes": ["data-svelte-h"],
    },
    "solid": {
        "globals": ["_$HY", "Solid$$"],
        "scripts": ["solid-js"],
        "attributes": ["data-hk"],
    },
    "lit": {
        "globals": ["litElementVersions", "litHtmlVersions"],
        "scripts": ["lit-element", "lit-html"],
        "attributes": ["defer-hydration"],
    },
}

READY_JS = "() => document.readyState === 'complete' && performance.timing.domContentLoadedEventEnd > 0"

DETECT_JS = """({ signatures, scriptPatterns, clientAttribute }) => {
    const scripts = Array.from(document.scripts);
    const checks = {
        island: (fw) => !!document.querySelector(`[${clientAttribute}="${fw}"]`),
        globals: (fw, sig) => sig.globals.some((name) => typeof window[name] !== 'undefined'),
        scripts: (fw, sig) => scripts.some((s) =>
            (s.src && (scriptPatterns[fw] || []).some((p) => new RegExp(p, 'i').test(s.src))) ||
            sig.scripts.some((needle) => (s.textContent || '').includes(needle === 'react' ? 'React' : needle))),
        attributes: (fw, sig) => sig.attributes.some((attr) => !!document.querySelector(`[${attr}]`)),
    };
    const found = [];
    for (const [fw, sig] of Object.entries(signatures)) {
        const matched = Object.values(checks).some((check) => {
            try { return check(fw, sig); } catch (e) { return false; }
        });
        if (matched) found.push(fw);
    }
    return found;
}"""


def script_pattern(needle: str) -> str:
    """Regex source matching ``needle`` as a whole token of a script URL, so
    ``react`` matches ``react-dom.js`` but not ``preact.min.js``."""
    return r"(^|[^a-z0-9])" + re.escape(needle) + r"([^a-z0-9]|$)"


def script_patterns(signatures: Dict[str, Dict[str, List[str]]]) -> Dict[str, List[str]]:
    return {fw: [script_pattern(n) for n in sig.get("scripts", [])] for fw, sig in signatures.items()}


class FrameworkProbe:
    def __init__(self, signatures: Optional[Dict[str, Dict[str, List[str]]]] = None, settle_delay_ms: int = SETTLE_DELAY_MS):
        self.signatures = signatures or FRAMEWORK_SIGNATURES
        self.settle_delay_ms = settle_delay_ms

    async def wait_until_loaded(self, page: Page) -> None:
        try:
            await page.wait_for_function(READY_JS, timeout=READY_TIMEOUT_MS)
        except PlaywrightError as exc:
            logger.warning("Page never reported a complete load state, detecting anyway: %s", exc)
        await page.wait_for_timeout(self.settle_delay_ms)

    async def detect(self, page: Page) -> Set[str]:
        await self.wait_until_loaded(page)
        found = await page.evaluate(
            DETECT_JS,
            {
                "signatures": self.signatures,
                "scriptPatterns": script_patterns(self.signatures),
                "clientAttribute": ISLAND_CLIENT_ATTRIBUTE,
            },
        )
        detected = {str(fw) for fw in found or []}
        logger.info("Detected frameworks: %s", ", ".join(sorted(detected)) or "none")
        return detected
