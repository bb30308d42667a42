"""
yak-a11y: accessibility auditing for pages built from hydrated islands.
"""

from .aggregate import merge, tally
from .checker import AccessibilityChecker, CheckResult, check_accessibility, check_static_html
from .config import CheckConfiguration, DynamicTestingOptions, IslandTestingOptions, NavigationOptions, load_config
from .errors import AccessibilityCheckError, InvalidUrlError, NavigationError, describe_error
from .models import Island, Violation, ViolationNode
from .report import AggregatedReport, ReportEngine
from .session import SessionPool

__version__ = "0.3.0"

__all__ = [
    "AccessibilityChecker",
    "AccessibilityCheckError",
    "AggregatedReport",
    "CheckConfiguration",
    "CheckResult",
    "DynamicTestingOptions",
    "InvalidUrlError",
    "Island",
    "IslandTestingOptions",
    "NavigationError",
    "NavigationOptions",
    "ReportEngine",
    "SessionPool",
    "Violation",
    "ViolationNode",
    "check_accessibility",
    "check_static_html",
    "describe_error",
    "load_config",
    "merge",
    "tally",
]
