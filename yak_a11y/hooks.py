"""
Host build-tool hooks.

``DevServerHook`` re-checks a running dev server after source changes,
debounced so a burst of saves triggers a single check. ``BuildHook`` checks
every page a static build produced and turns the outcome into one pass/fail.
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from colorama import Fore, Style
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .checker import AccessibilityChecker, CheckResult
from .config import CheckConfiguration, build_configuration, dev_server_configuration
from .errors import BuildCheckFailedError, describe_error
from .reporter import print_report


logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 5.0
IGNORED_PARTS = ("dist", "output", "node_modules")


def local_url(host: Optional[str] = None, port: Optional[int] = None) -> str:
    return f"http://{host or 'localhost'}:{port or 4321}"


def is_ignored(path: str) -> bool:
    parts = Path(path).parts
    if any(p.startswith(".") and p not in {".", ".."} for p in parts):
        return True
    return any(p in IGNORED_PARTS for p in parts)


class DevServerHook:
    def __init__(
        self,
        checker: AccessibilityChecker,
        url: str,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        config: Optional[CheckConfiguration] = None,
    ):
        self.checker = checker
        self.url = url
        self.debounce_seconds = debounce_seconds
        self.config = config or dev_server_configuration()
        self.results: List[CheckResult] = []
        self._timer: Optional[asyncio.Task] = None
        self._checks: List[asyncio.Task] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def run_check(self) -> Optional[CheckResult]:
        try:
            result = await self.checker.check_url(self.url, self.config)
        except Exception as exc:
            logger.error("Accessibility check failed:\n%s", describe_error(exc))
            return None
        self.results.append(result)
        print_report(result.report, self.config.verbose)
        return result

    async def on_server_setup(self) -> Optional[CheckResult]:
        self._loop = asyncio.get_running_loop()
        return await self.run_check()

    async def _debounced(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Once started, a check runs to completion; later changes only reset the timer.
        self._checks = [t for t in self._checks if not t.done()]
        self._checks.append(asyncio.ensure_future(self.run_check()))

    def on_file_change(self, path: Optional[str] = None) -> asyncio.Task:
        if path:
            logger.info("Change detected in %s", path)
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.ensure_future(self._debounced())
        return self._timer

    async def wait_idle(self) -> None:
        if self._timer is not None:
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
        while self._checks:
            await self._checks.pop(0)

    def watch(self, directory: Union[str, Path]) -> Observer:
        loop = self._loop or asyncio.get_running_loop()
        hook = self

        class ChangeHandler(FileSystemEventHandler):
            def on_modified(self, event: FileSystemEvent) -> None:
                if event.is_directory or is_ignored(str(event.src_path)):
                    return
                # watchdog calls us from its observer thread.
                loop.call_soon_threadsafe(hook.on_file_change, str(event.src_path))

            on_created = on_modified

        observer = Observer()
        observer.schedule(ChangeHandler(), str(directory), recursive=True)
        observer.start()
        logger.info("Watching %s for changes...", directory)
        return observer


def resolve_page_file(out_dir: Union[str, Path], page: str) -> Path:
    root = Path(out_dir)
    relative = page.strip("/")
    if not relative:
        return root / "index.html"
    if relative.endswith(".html"):
        return root / relative
    return root / relative / "index.html"


class BuildHook:
    def __init__(
        self,
        checker: AccessibilityChecker,
        fail_on_errors: bool = False,
        force_build: bool = False,
        config: Optional[CheckConfiguration] = None,
    ):
        self.checker = checker
        self.fail_on_errors = fail_on_errors
        self.force_build = force_build
        self.config = config or build_configuration()
        self.results: List[CheckResult] = []

    async def on_build_done(self, out_dir: Union[str, Path], pages: Iterable[str]) -> bool:
        print("\nRunning accessibility checks on built site...")
        failed_pages: List[str] = []
        for page in pages:
            path = resolve_page_file(out_dir, page)
            try:
                result = await self.checker.check_static_html(path, self.config)
            except Exception as exc:
                logger.error("Build-time accessibility check failed for %s:\n%s", path, describe_error(exc))
                failed_pages.append(page)
                continue
            self.results.append(result)
            print_report(result.report, self.config.verbose)
            if not result.passed:
                failed_pages.append(page)

        if not failed_pages:
            return True
        if self.fail_on_errors and not self.force_build:
            raise BuildCheckFailedError(failed_pages)
        if self.force_build:
            print(f"{Fore.YELLOW}{Style.BRIGHT}\n⚠️  WARNING: Building with accessibility violations!{Style.RESET_ALL}")
            print(f"{Fore.YELLOW}This is strongly discouraged as it may make your site unusable for some visitors.")
            print(f"Please fix the accessibility issues as soon as possible.{Style.RESET_ALL}\n")
        return False
