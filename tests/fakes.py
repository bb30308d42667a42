"""
Scripted stand-ins for Playwright pages, element handles and browsers.

Pages answer the module-level JS constants the library evaluates, so tests can
drive every phase without a real browser.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from yak_a11y import audit, dynamic, frameworks, islands
from yak_a11y.models import Violation, ViolationNode


def violation(rule_id: str, html: str, impact: str = "serious", component: Optional[str] = None, **kwargs: Any) -> Violation:
    return Violation(
        rule_id=rule_id,
        impact=impact,
        help=kwargs.get("help", f"{rule_id} help"),
        help_url=kwargs.get("help_url", ""),
        description=kwargs.get("description", ""),
        tags=frozenset(kwargs.get("tags", ())),
        nodes=[ViolationNode(html=h, failure_summary=kwargs.get("summary", "")) for h in ([html] if isinstance(html, str) else html)],
        component=component,
    )


class FakeElement:
    def __init__(self, behaviour: str = "settle", page: Optional["FakePage"] = None, name: str = "el"):
        self.behaviour = behaviour
        self.page = page
        self.name = name
        self.started = False
        self.finished = False
        self.barrier: Optional[Callable[[], Any]] = None

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.started = True
        if self.page is not None:
            self.page.calls.append(("element", self.name, expression))
        if self.barrier is not None:
            await self.barrier()
        if self.behaviour == "hang":
            await asyncio.sleep(60)
        if self.behaviour == "fail":
            raise PlaywrightError("Element is not attached to the DOM")
        self.finished = True
        return None


class FakePage:
    def __init__(
        self,
        url: str = "about:blank",
        detected: Sequence[str] = (),
        hydrated: bool = True,
        islands_found: Sequence[Dict[str, str]] = (),
        busy_islands: Sequence[str] = (),
        links: Sequence[str] = (),
        failing_links: Sequence[str] = (),
        goto_failures: Union[int, None] = 0,
        clickables: Sequence[FakeElement] = (),
        inputs: Sequence[FakeElement] = (),
        axe_loaded: bool = False,
        axe_results: Optional[List[Dict[str, Any]]] = None,
    ):
        self.url = url
        self.start_url = url
        self.detected = list(detected)
        self.hydrated = hydrated
        self.islands_found = list(islands_found)
        self.busy_islands = set(busy_islands)
        self.links = list(links)
        self.failing_links = set(failing_links)
        # None means every goto fails.
        self.goto_failures = goto_failures
        self.clickables = list(clickables)
        self.inputs = list(inputs)
        self.axe_loaded = axe_loaded
        self.axe_results = list(axe_results or [])
        self.calls: List[Any] = []
        self.sandboxes: Dict[str, str] = {}
        self.sandbox_history: List[str] = []
        self.closed = False
        self.content: Optional[str] = None
        self.remove_error: Optional[Exception] = None

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.calls.append(("goto", url))
        if self.goto_failures is None or self.goto_failures > 0:
            if self.goto_failures:
                self.goto_failures -= 1
            raise PlaywrightError(f"net::ERR_CONNECTION_REFUSED at {url}")
        self.url = url
        self.axe_loaded = False

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        self.calls.append(("wait_for_load_state", state))

    async def wait_for_timeout(self, timeout: float) -> None:
        self.calls.append(("wait_for_timeout", timeout))

    async def wait_for_function(self, expression: str, arg: Any = None, timeout: Optional[float] = None) -> None:
        self.calls.append(("wait_for_function", expression))
        if expression == dynamic.HYDRATED_JS and not self.hydrated:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")
        if expression == islands.SANDBOX_IDLE_JS:
            markup = self.sandboxes.get(arg, "")
            if any(cid in markup for cid in self.busy_islands):
                raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", expression))
        if expression == frameworks.DETECT_JS:
            return list(self.detected)
        if expression == islands.DISCOVER_ISLANDS_JS:
            return [dict(i) for i in self.islands_found]
        if expression == islands.MOUNT_SANDBOX_JS:
            self.sandboxes[arg["id"]] = arg["markup"]
            self.sandbox_history.append(arg["id"])
            return arg["id"]
        if expression == islands.REMOVE_SANDBOX_JS:
            if self.remove_error is not None:
                raise self.remove_error
            return self.sandboxes.pop(arg, None) is not None
        if expression == dynamic.SAME_ORIGIN_LINKS_JS:
            return list(self.links)
        if expression == audit.AXE_LOADED_JS:
            return self.axe_loaded
        if expression == audit.AXE_CONFIGURE_JS:
            return True
        if expression == audit.AXE_RUN_JS:
            return self.axe_results.pop(0) if self.axe_results else {"violations": []}
        return None

    async def add_script_tag(self, url: Optional[str] = None, path: Optional[str] = None, content: Optional[str] = None) -> None:
        self.calls.append(("add_script_tag", url or path))
        self.axe_loaded = True

    async def query_selector_all(self, selector: str) -> List[FakeElement]:
        if selector == dynamic.CLICKABLE_SELECTOR:
            return list(self.clickables)
        if selector == dynamic.INPUT_SELECTOR:
            return list(self.inputs)
        return []

    async def click(self, selector: str, timeout: Optional[float] = None) -> None:
        self.calls.append(("click", selector))
        for href in self.failing_links:
            if dynamic.link_selector(href) == selector:
                raise PlaywrightTimeoutError(f"waiting for locator('{selector}')")
        for href in self.links:
            if dynamic.link_selector(href) == selector:
                self.url = self.start_url.rstrip("/") + href
                return

    async def set_content(self, html: str, wait_until: Optional[str] = None) -> None:
        self.calls.append(("set_content", len(html)))
        self.content = html

    async def close(self) -> None:
        self.closed = True

    def called(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


class FakeBrowser:
    def __init__(self, page_factory: Callable[[], FakePage]):
        self.page_factory = page_factory
        self.pages: List[FakePage] = []
        self.closed = False
        self.close_error: Optional[Exception] = None

    async def new_page(self) -> FakePage:
        page = self.page_factory()
        self.pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeLauncher:
    def __init__(self, page_factory: Callable[[], FakePage] = FakePage, fail: Optional[Exception] = None):
        self.page_factory = page_factory
        self.fail = fail
        self.browsers: List[FakeBrowser] = []
        self.args: List[Sequence[str]] = []

    async def __call__(self, args: Sequence[str]) -> FakeBrowser:
        self.args.append(args)
        if self.fail is not None:
            raise self.fail
        browser = FakeBrowser(self.page_factory)
        self.browsers.append(browser)
        return browser


class FakeAuditor:
    """Returns scripted violation lists per pass; an Exception entry is raised."""

    def __init__(self, passes: Sequence[Any] = (), default: Optional[List[Violation]] = None):
        self.passes = list(passes)
        self.default = default or []
        self.calls = 0
        self.snapshots: List[Dict[str, Any]] = []

    async def audit(self, page: FakePage, context: Optional[str] = None) -> List[Violation]:
        self.calls += 1
        self.snapshots.append({"url": page.url, "sandboxes": dict(page.sandboxes)})
        result = self.passes.pop(0) if self.passes else self.default
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(page)
        return list(result)
