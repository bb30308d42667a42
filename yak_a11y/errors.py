"""
User-facing error types.

Every fatal error shown to a user carries a problem statement and exactly one
"To fix this" block. ``describe_error`` applies the same shape to exceptions
that did not originate here (audit engine failures, file errors).
"""

from typing import Iterable, Optional, Sequence


ERROR_HEADING = "⚠️  Accessibility Check Error ⚠️"
FIX_HEADING = "To fix this:"

GENERIC_HELP = (
    "Check the troubleshooting section of the README",
    "Re-run with --verbose to see every phase of the check",
    "Make sure you have the latest version installed",
)


def numbered(items: Iterable[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


class AccessibilityCheckError(Exception):
    category = "error"

    def __init__(self, problem: str, reasons: Sequence[str] = (), fixes: Sequence[str] = ()):
        self.problem = problem
        self.reasons = tuple(reasons)
        self.fixes = tuple(fixes) or GENERIC_HELP
        super().__init__(self.render())

    def render(self) -> str:
        parts = [ERROR_HEADING, "", self.problem]
        if self.reasons:
            parts += ["", "Possible reasons:", numbered(self.reasons)]
        parts += ["", FIX_HEADING, numbered(self.fixes)]
        return "\n".join(parts) + "\n"


class InvalidUrlError(AccessibilityCheckError):
    category = "invalid URL"

    def __init__(self, url: str):
        self.url = url
        super().__init__(
            f'Invalid URL provided: "{url}"',
            fixes=(
                "Make sure your URL starts with http:// or https://",
                "Check for any typos in the URL",
                "If testing locally, use http://localhost:port",
                "For local files, use --file or serve them with a local development server",
            ),
        )


class NavigationError(AccessibilityCheckError):
    def __init__(self, url: str, local: bool, attempts: int = 1, cause: Optional[BaseException] = None):
        self.url = url
        self.local = local
        self.attempts = attempts
        self.cause = cause
        if local:
            reasons = (
                "The development server is not running",
                "The port number is incorrect",
                "The server is running but not responding",
            )
            fixes = (
                "Start your development server (e.g., npm run dev)",
                "Ensure the port matches your server configuration",
                "Wait a few seconds for the server to be ready",
            )
        else:
            reasons = (
                "The website is offline or unreachable",
                "The URL is incorrect",
                "Your internet connection is not working",
                "The site is blocking automated access",
            )
            fixes = (
                "Check if you can access the site in your browser",
                "Verify the URL is correct",
                "Check your internet connection",
            )
        super().__init__(f'Could not access "{url}" after {attempts} attempt(s)', reasons, fixes)

    @property
    def category(self) -> str:
        return "local development" if self.local else "remote site"


class HydrationTimeoutError(AccessibilityCheckError):
    category = "hydration"

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Hydration did not complete within {timeout_ms}ms and strict mode is enabled",
            reasons=("Some islands never finished hydrating", "The page does not set data-hydrated on <html>"),
            fixes=(
                "Increase the AJAX timeout (--ajax-timeout)",
                "Disable strict mode to continue with a warning",
                "Set document.documentElement.dataset.hydrated = 'true' once hydration finishes",
            ),
        )


class BuildCheckFailedError(AccessibilityCheckError):
    category = "build"

    def __init__(self, failed_pages: Sequence[str]):
        self.failed_pages = tuple(failed_pages)
        super().__init__(
            f"Accessibility checks failed for {len(self.failed_pages)} page(s): {', '.join(self.failed_pages)}",
            fixes=(
                "Fix the violations listed above",
                "Use force_build=True to bypass (NOT RECOMMENDED)",
            ),
        )


def describe_error(exc: BaseException) -> str:
    message = str(exc) or exc.__class__.__name__
    if ERROR_HEADING not in message:
        message = f"{ERROR_HEADING}\n\n{message}"
    if FIX_HEADING not in message:
        message = f"{message.rstrip()}\n\n{FIX_HEADING}\n{numbered(GENERIC_HELP)}\n"
    return message
