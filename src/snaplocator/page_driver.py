from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Sequence

from playwright.sync_api import Error as PlaywrightError

from .selector_rules import is_xpath_selector

if TYPE_CHECKING:
    from playwright.sync_api import Locator, Page

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000
MIN_SELECTOR_TIMEOUT_MS = 2_000
TEXT_POLL_INTERVAL_MS = 250


class LocatorNotFoundError(RuntimeError):
    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__("All selectors failed:\n" + "\n".join(self.errors))


def per_selector_timeout(timeout_ms: int, selector_count: int) -> int:
    if selector_count <= 0:
        return max(MIN_SELECTOR_TIMEOUT_MS, timeout_ms)
    return max(MIN_SELECTOR_TIMEOUT_MS, timeout_ms // selector_count)


def playwright_selector(selector: str) -> str:
    if is_xpath_selector(selector):
        return f"xpath={selector}"
    return selector


class FallbackPage:
    """Drives a Playwright page through ordered selector fallback chains.

    Each action tries the generated selectors in order and uses the first
    one that resolves; generated page objects call these methods with the
    selector lists produced by the generator.
    """

    def __init__(self, page: Page, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.page = page
        self.timeout_ms = timeout_ms

    @property
    def current_url(self) -> str:
        return str(self.page.url or "")

    def navigate(self, url: str, timeout_ms: int | None = None) -> None:
        self.page.goto(url, timeout=timeout_ms or self.timeout_ms, wait_until="domcontentloaded")

    def find_with_fallback(self, selectors: Sequence[str], timeout_ms: int | None = None) -> Locator:
        budget = timeout_ms or self.timeout_ms
        selector_timeout = per_selector_timeout(budget, len(selectors))
        errors: list[str] = []

        for selector in selectors:
            if not is_xpath_selector(selector) and ":contains(" in selector:
                errors.append(f"{selector}: Invalid CSS selector (contains is not supported)")
                continue
            locator = self.page.locator(playwright_selector(selector)).first
            try:
                locator.wait_for(state="attached", timeout=selector_timeout)
            except PlaywrightError as exc:
                errors.append(f"{selector}: {exc}")
                logger.debug("Selector fallback skipped %s: %s", selector, exc)
                continue
            return locator

        raise LocatorNotFoundError(errors)

    def wait_visible(self, selectors: Sequence[str], timeout_ms: int | None = None) -> Locator:
        budget = timeout_ms or self.timeout_ms
        locator = self.find_with_fallback(selectors, budget)
        locator.wait_for(state="visible", timeout=budget)
        return locator

    def click(self, selectors: Sequence[str], timeout_ms: int | None = None) -> None:
        budget = timeout_ms or self.timeout_ms
        self.wait_visible(selectors, budget).click(timeout=budget)

    def fill(self, selectors: Sequence[str], value: str, timeout_ms: int | None = None) -> None:
        budget = timeout_ms or self.timeout_ms
        self.wait_visible(selectors, budget).fill(value, timeout=budget)

    def get_text(self, selectors: Sequence[str], timeout_ms: int | None = None) -> str:
        budget = timeout_ms or self.timeout_ms
        return self.wait_visible(selectors, budget).inner_text(timeout=budget)

    def wait_for_text(self, selectors: Sequence[str], text: str, timeout_ms: int | None = None) -> Locator:
        budget = timeout_ms or self.timeout_ms
        locator = self.find_with_fallback(selectors, budget)
        deadline = time.monotonic() + budget / 1000
        while True:
            if text in locator.inner_text(timeout=budget):
                return locator
            if time.monotonic() >= deadline:
                raise TimeoutError(f'Text "{text}" not found within {budget}ms')
            self.page.wait_for_timeout(TEXT_POLL_INTERVAL_MS)
