import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from snaplocator.page_driver import (
    FallbackPage,
    LocatorNotFoundError,
    per_selector_timeout,
    playwright_selector,
)


class _FakeLocator:
    def __init__(self, page: "_FakePage", selector: str) -> None:
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "_FakeLocator":
        return self

    def wait_for(self, state: str = "visible", timeout: float | None = None) -> None:
        self.page.waits.append((self.selector, state, timeout))
        if self.selector not in self.page.present:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    def click(self, timeout: float | None = None) -> None:
        self.page.actions.append(("click", self.selector))

    def fill(self, value: str, timeout: float | None = None) -> None:
        self.page.actions.append(("fill", self.selector, value))

    def inner_text(self, timeout: float | None = None) -> str:
        texts = self.page.texts.get(self.selector, [""])
        if len(texts) > 1:
            return texts.pop(0)
        return texts[0]


class _FakePage:
    def __init__(self, present: set[str], texts: dict[str, list[str]] | None = None) -> None:
        self.present = present
        self.texts = texts or {}
        self.waits: list[tuple[str, str, float | None]] = []
        self.actions: list[tuple[str, ...]] = []
        self.url = "about:blank"
        self.sleeps = 0

    def locator(self, selector: str) -> _FakeLocator:
        return _FakeLocator(self, selector)

    def goto(self, url: str, timeout: float | None = None, wait_until: str | None = None) -> None:
        self.url = url

    def wait_for_timeout(self, timeout: float) -> None:
        self.sleeps += 1


def test_per_selector_timeout_has_floor() -> None:
    assert per_selector_timeout(10_000, 2) == 5_000
    assert per_selector_timeout(10_000, 10) == 2_000
    assert per_selector_timeout(10_000, 0) == 10_000


def test_xpath_selectors_get_engine_prefix() -> None:
    assert playwright_selector('//button[@id="x"]') == 'xpath=//button[@id="x"]'
    assert playwright_selector("#x") == "#x"


def test_find_with_fallback_uses_first_resolving_selector() -> None:
    page = _FakePage(present={'xpath=//button[@id="save"]'})
    driver = FallbackPage(page)

    locator = driver.find_with_fallback(['button:contains("Save")', "#missing", '//button[@id="save"]'])

    assert locator.selector == 'xpath=//button[@id="save"]'
    assert [selector for selector, _, _ in page.waits] == ["#missing", 'xpath=//button[@id="save"]']
    assert all(timeout == 3_333 for _, _, timeout in page.waits)


def test_find_with_fallback_reports_every_failure() -> None:
    driver = FallbackPage(_FakePage(present=set()))

    with pytest.raises(LocatorNotFoundError) as excinfo:
        driver.find_with_fallback(["#a", "p:contains(x)"])

    assert len(excinfo.value.errors) == 2
    assert "contains is not supported" in excinfo.value.errors[1]
    assert str(excinfo.value).startswith("All selectors failed:")


def test_actions_go_through_fallback_chain() -> None:
    page = _FakePage(present={"#user", "#go"}, texts={"#go": ["Sign in"]})
    driver = FallbackPage(page)

    driver.navigate("https://example.org/login")
    driver.fill(["#user"], "alice")
    driver.click(["#gone", "#go"])

    assert driver.current_url == "https://example.org/login"
    assert page.actions == [("fill", "#user", "alice"), ("click", "#go")]
    assert driver.get_text(["#go"]) == "Sign in"


def test_wait_for_text_polls_until_text_appears() -> None:
    page = _FakePage(present={"#status"}, texts={"#status": ["Loading", "Loading", "Saved"]})
    driver = FallbackPage(page)

    driver.wait_for_text(["#status"], "Saved")

    assert page.sleeps == 2


def test_wait_for_text_times_out() -> None:
    page = _FakePage(present={"#status"}, texts={"#status": ["Loading"]})
    driver = FallbackPage(page)

    with pytest.raises(TimeoutError):
        driver.wait_for_text(["#status"], "Saved", timeout_ms=1)
