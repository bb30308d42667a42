import asyncio
import logging
import time
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError, Page

from .config import NavigationOptions
from .errors import InvalidUrlError, NavigationError


logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = ("localhost", "127.0.0.1", "[::1]", "0.0.0.0")
LOCAL_PREFIXES = tuple(f"{scheme}://{host}" for scheme in ("http", "https") for host in LOOPBACK_HOSTS)


def validate_url(url: str) -> str:
    try:
        parsed = urlparse(url or "")
    except ValueError:
        raise InvalidUrlError(url) from None
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidUrlError(url)
    return url


def is_local_url(url: str) -> bool:
    return (url or "").lower().startswith(LOCAL_PREFIXES)


class NavigationController:
    def __init__(self, options: Optional[NavigationOptions] = None):
        self.options = options or NavigationOptions()

    async def _attempt(self, page: Page, url: str) -> None:
        deadline = time.monotonic() + self.options.timeout_ms / 1000.0
        await page.goto(url, wait_until="domcontentloaded", timeout=self.options.timeout_ms)
        remaining_ms = max(1, int((deadline - time.monotonic()) * 1000))
        await page.wait_for_load_state("networkidle", timeout=remaining_ms)

    async def navigate(self, page: Page, url: str) -> None:
        validate_url(url)
        attempts = self.options.retries + 1
        last_error: Optional[PlaywrightError] = None
        for attempt in range(1, attempts + 1):
            try:
                await self._attempt(page, url)
                return
            except PlaywrightError as exc:
                last_error = exc
                logger.warning("Navigation to %s failed (attempt %d/%d): %s", url, attempt, attempts, exc)
                if attempt < attempts:
                    await asyncio.sleep(self.options.retry_backoff_ms / 1000.0)
        raise NavigationError(url, local=is_local_url(url), attempts=attempts, cause=last_error) from last_error
