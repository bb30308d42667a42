"""
Check configuration: defaults, presets and parsing from JSON / mappings.
"""

import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Set, Union


RULE_TAGS = ("wcag2a", "wcag2aa", "wcag21a", "wcag21aa", "best-practice")

BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
)

MAX_BROWSER_REUSE = 10

AXE_SOURCE_URL = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.9.1/axe.min.js"
AXE_SOURCE_ENV = "YAK_A11Y_AXE_SOURCE"
BRANDING = "yak-a11y"

DEFAULT_FRAMEWORKS: FrozenSet[str] = frozenset({"react", "vue", "svelte"})


@dataclass
class DynamicTestingOptions:
    enabled: bool = False
    wait_for_hydration: bool = True
    route_changes: bool = False
    ajax_timeout_ms: int = 5000
    strict: bool = False


@dataclass
class IslandTestingOptions:
    enabled: bool = False
    test_islands: bool = True
    frameworks: Set[str] = field(default_factory=lambda: set(DEFAULT_FRAMEWORKS))
    auto_detect: bool = True
    strict: bool = False
    settle_timeout_ms: int = 3000


@dataclass
class NavigationOptions:
    timeout_ms: int = 30000
    retries: int = 2
    retry_backoff_ms: int = 1000


@dataclass
class CheckConfiguration:
    verbose: bool = False
    dynamic_testing: DynamicTestingOptions = field(default_factory=DynamicTestingOptions)
    island_testing: IslandTestingOptions = field(default_factory=IslandTestingOptions)
    navigation: NavigationOptions = field(default_factory=NavigationOptions)

    @property
    def strict(self) -> bool:
        return self.dynamic_testing.strict or self.island_testing.strict

    @property
    def islands_requested(self) -> bool:
        return self.island_testing.enabled and self.island_testing.test_islands

    def copy(self) -> "CheckConfiguration":
        return copy.deepcopy(self)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "CheckConfiguration":
        data = data or {}
        dynamic = _section(data, "dynamic_testing", "dynamicTesting")
        islands = _section(data, "island_testing", "islandTesting", "astroTesting")
        navigation = _section(data, "navigation")

        defaults = IslandTestingOptions()
        frameworks = _pick(islands, None, "frameworks")
        return cls(
            verbose=bool(_pick(data, False, "verbose")),
            dynamic_testing=DynamicTestingOptions(
                enabled=bool(_pick(dynamic, False, "enabled")),
                wait_for_hydration=bool(_pick(dynamic, True, "wait_for_hydration", "waitForHydration")),
                route_changes=bool(_pick(dynamic, False, "route_changes", "routeChanges")),
                ajax_timeout_ms=int(_pick(dynamic, 5000, "ajax_timeout_ms", "ajaxTimeoutMs", "ajaxTimeout")),
                strict=bool(_pick(dynamic, False, "strict")),
            ),
            island_testing=IslandTestingOptions(
                enabled=bool(_pick(islands, False, "enabled")),
                test_islands=bool(_pick(islands, True, "test_islands", "testIslands")),
                frameworks=parse_frameworks(frameworks) if frameworks is not None else set(defaults.frameworks),
                auto_detect=bool(_pick(islands, True, "auto_detect", "autoDetect")),
                strict=bool(_pick(islands, False, "strict")),
                settle_timeout_ms=int(_pick(islands, 3000, "settle_timeout_ms", "settleTimeoutMs")),
            ),
            navigation=NavigationOptions(
                timeout_ms=int(_pick(navigation, 30000, "timeout_ms", "timeoutMs", "timeout")),
                retries=int(_pick(navigation, 2, "retries")),
                retry_backoff_ms=int(_pick(navigation, 1000, "retry_backoff_ms", "retryBackoffMs")),
            ),
        )


def _section(data: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    value = _pick(data, None, *keys)
    return value if isinstance(value, Mapping) else {}


def _pick(data: Mapping[str, Any], default: Any, *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def parse_frameworks(raw: Union[None, str, Iterable[str]]) -> Set[str]:
    if not raw:
        return set()
    if isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = list(raw)
    return {p.strip().lower() for p in parts if p and p.strip()}


def read_text(path: Union[str, Path]) -> str:
    return Path(path).read_text(encoding="utf-8")


def load_config(path: Union[str, Path]) -> CheckConfiguration:
    data = json.loads(read_text(path))
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object")
    return CheckConfiguration.from_mapping(data)


def axe_source() -> str:
    return os.environ.get(AXE_SOURCE_ENV) or AXE_SOURCE_URL


def dev_server_configuration() -> CheckConfiguration:
    # Route changes stay off while the dev server is rebuilding pages.
    return CheckConfiguration(
        verbose=True,
        dynamic_testing=DynamicTestingOptions(
            enabled=True,
            wait_for_hydration=True,
            route_changes=False,
            ajax_timeout_ms=3000,
        ),
        island_testing=IslandTestingOptions(enabled=True, test_islands=True, auto_detect=True),
    )


def build_configuration() -> CheckConfiguration:
    return CheckConfiguration(
        verbose=True,
        dynamic_testing=DynamicTestingOptions(
            enabled=True,
            wait_for_hydration=True,
            route_changes=True,
            ajax_timeout_ms=5000,
        ),
        island_testing=IslandTestingOptions(enabled=True, test_islands=True, auto_detect=True),
    )
