from typing import List

from playwright.async_api import Page

from .audit import AxeAuditor
from .config import CheckConfiguration
from .dynamic import DynamicContentSimulator
from .islands import IslandIsolationTester
from .models import Violation
from .phases import CheckState, Phase


class StaticAuditPhase(Phase):
    name = "static"
    state = CheckState.STATIC_AUDIT

    def __init__(self, auditor: AxeAuditor):
        super().__init__()
        self.auditor = auditor

    async def run(self, page: Page, config: CheckConfiguration) -> List[Violation]:
        # Audit engine failures are fatal here and propagate unchanged.
        return await self.auditor.audit(page)


def build_pipeline(config: CheckConfiguration, auditor: AxeAuditor, static_only: bool = False) -> List[Phase]:
    phases: List[Phase] = [StaticAuditPhase(auditor)]
    if static_only:
        return phases
    if config.dynamic_testing.enabled:
        phases.append(DynamicContentSimulator(auditor))
    if config.islands_requested and config.island_testing.frameworks:
        phases.append(IslandIsolationTester(auditor))
    return phases
