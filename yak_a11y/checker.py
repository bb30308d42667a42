"""
Check orchestrator.

A check borrows one page from the session pool, navigates, detects frameworks,
runs the configured audit phases in order, merges their violations and builds
the report. The page is closed on every exit path.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from playwright.async_api import Page

from .aggregate import merge
from .audit import AxeAuditor
from .config import CheckConfiguration, read_text
from .frameworks import FrameworkProbe
from .models import Violation
from .navigation import NavigationController, validate_url
from .phases import CheckState, Phase
from .pipeline import build_pipeline
from .report import AggregatedReport, ReportEngine
from .session import SessionPool


logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    target: str
    state: CheckState
    states: List[CheckState]
    violations: List[Violation]
    report: AggregatedReport
    detected_frameworks: Set[str] = field(default_factory=set)
    effective_frameworks: Set[str] = field(default_factory=set)
    notes: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.report.is_clean

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "state": self.state.value,
            "passed": self.passed,
            "detectedFrameworks": sorted(self.detected_frameworks),
            "effectiveFrameworks": sorted(self.effective_frameworks),
            "notes": list(self.notes),
            "report": self.report.to_dict(),
        }


class CheckRun:
    """State bookkeeping for one check."""

    def __init__(self, target: str):
        self.target = target
        self.state = CheckState.INIT
        self.states: List[CheckState] = [CheckState.INIT]
        self.violation_sets: List[List[Violation]] = []
        self.notes: List[str] = []
        self.detected: Set[str] = set()
        self.effective: Set[str] = set()

    def enter(self, state: CheckState) -> None:
        logger.debug("%s: %s -> %s", self.target, self.state.value, state.value)
        self.state = state
        self.states.append(state)

    def collect(self, phase: Phase, violations: List[Violation]) -> None:
        self.violation_sets.append(violations)
        self.notes.extend(phase.notes)
        logger.info("Phase %s found %d violation(s)", phase.name, len(violations))


class AccessibilityChecker:
    def __init__(
        self,
        pool: Optional[SessionPool] = None,
        auditor: Optional[AxeAuditor] = None,
        probe: Optional[FrameworkProbe] = None,
        navigator: Optional[NavigationController] = None,
        report_engine: Optional[ReportEngine] = None,
    ):
        self._owns_pool = pool is None
        self.pool = pool or SessionPool()
        self.auditor = auditor or AxeAuditor()
        self.probe = probe or FrameworkProbe()
        # None means a controller built from each check's navigation options.
        self.navigator = navigator
        self.report_engine = report_engine or ReportEngine()

    async def close(self) -> None:
        if self._owns_pool:
            await self.pool.close()

    async def __aenter__(self) -> "AccessibilityChecker":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def narrow_frameworks(self, run: CheckRun, config: CheckConfiguration) -> None:
        options = config.island_testing
        if options.enabled and options.auto_detect:
            # Only frameworks confirmed on the page stay eligible for island testing.
            options.frameworks &= run.detected
        run.effective = set(options.frameworks) if config.islands_requested else set()

    async def run_phases(self, run: CheckRun, page: Page, phases: List[Phase], config: CheckConfiguration) -> None:
        for phase in phases:
            run.enter(phase.state)
            violations = await phase.run(page, config)
            run.collect(phase, violations)

    def finish(self, run: CheckRun) -> CheckResult:
        run.enter(CheckState.AGGREGATING)
        violations = merge(run.violation_sets)
        run.enter(CheckState.REPORTING)
        report = self.report_engine.build(violations)
        run.enter(CheckState.DONE)
        return CheckResult(
            target=run.target,
            state=run.state,
            states=list(run.states),
            violations=violations,
            report=report,
            detected_frameworks=set(run.detected),
            effective_frameworks=set(run.effective),
            notes=list(run.notes),
        )

    async def check_url(self, url: str, config: Optional[CheckConfiguration] = None) -> CheckResult:
        config = (config or CheckConfiguration()).copy()
        run = CheckRun(url)
        try:
            run.enter(CheckState.NAVIGATING)
            validate_url(url)
            logger.info("Starting accessibility check for: %s", url)
            page = await self.pool.acquire()
            try:
                navigator = self.navigator or NavigationController(config.navigation)
                await navigator.navigate(page, url)

                run.detected = await self.probe.detect(page)
                self.narrow_frameworks(run, config)

                await self.run_phases(run, page, build_pipeline(config, self.auditor), config)
                return self.finish(run)
            finally:
                await page.close()
        except Exception:
            logger.debug("Check of %s failed during %s", url, run.state.value)
            run.enter(CheckState.FAILED)
            raise

    async def check_static_html(
        self, path: Union[str, Path], config: Optional[CheckConfiguration] = None
    ) -> CheckResult:
        config = (config or CheckConfiguration()).copy()
        run = CheckRun(str(path))
        html = read_text(path)
        page = await self.pool.acquire()
        try:
            await page.set_content(html, wait_until="load")
            await self.run_phases(run, page, build_pipeline(config, self.auditor, static_only=True), config)
            return self.finish(run)
        finally:
            await page.close()


async def check_accessibility(url: str, config: Optional[CheckConfiguration] = None) -> CheckResult:
    async with AccessibilityChecker() as checker:
        return await checker.check_url(url, config)


async def check_static_html(path: Union[str, Path], config: Optional[CheckConfiguration] = None) -> CheckResult:
    async with AccessibilityChecker() as checker:
        return await checker.check_static_html(path, config)
