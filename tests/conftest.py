"""Shared fixtures and fake Playwright objects for the test suite."""

from contextlib import asynccontextmanager
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.browser import dom
from src.browser.context import BrowserManager
from src.browser.scraper import KEEPALIVE_JS
from src.config import load_selectors, settings

ENTRY_URL = settings.portal_entry_url
REPORT_URL = settings.portal_report_url
APP_URL = "https://gps3regisdataweb.com/opita/app/principal.jsp"


class FakeLocator:
    def __init__(self, count: int) -> None:
        self._count = count

    async def count(self) -> int:
        return self._count


class FakeFrame:
    """Frame stand-in answering the scripts defined in ``src.browser.dom``."""

    def __init__(
        self,
        url: str = "about:blank",
        rows: list[dict[str, Any]] | None = None,
        body: str = "",
        candidates: list[dict[str, Any]] | None = None,
        readable: bool = True,
    ) -> None:
        self.url = url
        self.rows = rows or []
        self.body = body
        self.candidates = candidates or []
        self.readable = readable
        self.candidate_error: Exception | None = None
        self.clicked: list[int] = []
        self.on_click: Callable[[], None] | None = None

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if not self.readable:
            raise Exception("Blocked a frame with origin from accessing a cross-origin frame")
        if script == dom.READ_ROWS_JS:
            return self.rows
        if script == dom.BODY_TEXT_JS:
            return self.body
        if script == dom.COLLECT_CANDIDATES_JS:
            if self.candidate_error:
                raise self.candidate_error
            return self.candidates
        if script == dom.CLICK_CANDIDATE_JS:
            self.clicked.append(arg[1])
            if self.on_click:
                self.on_click()
            return True
        if script == KEEPALIVE_JS:
            return "complete"
        raise AssertionError(f"Unexpected script: {script}")


class FakePage(FakeFrame):
    """Page stand-in that is its own main frame and records navigations."""

    def __init__(
        self,
        url: str = "about:blank",
        html: str = "",
        login_form: bool = False,
        frames: list[FakeFrame] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(url=url, **kwargs)
        self.html = html
        self.login_form = login_form
        self.child_frames = frames or []
        self.navigations: list[str] = []
        self.on_goto: Callable[["FakePage", str], None] | None = None

        self.wait_for_selector = AsyncMock()
        self.fill = AsyncMock()
        self.type = AsyncMock()
        self.keyboard = MagicMock()
        self.keyboard.press = AsyncMock(side_effect=self._record_key)

        # Submit actions seen while an expect_navigation block was open
        self.navigation_waits: list[dict[str, Any]] = []
        self.navigation_error: Exception | None = None
        self.actions_during_navigation_wait: list[str] = []
        self._awaiting_navigation = False

    def _record_key(self, key: str) -> None:
        if self._awaiting_navigation:
            self.actions_during_navigation_wait.append(f"press:{key}")

    @asynccontextmanager
    async def expect_navigation(self, **kwargs: Any):
        self.navigation_waits.append(kwargs)
        self._awaiting_navigation = True
        try:
            yield
        finally:
            self._awaiting_navigation = False
        if self.navigation_error:
            raise self.navigation_error

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == dom.CLICK_CANDIDATE_JS and self._awaiting_navigation:
            self.actions_during_navigation_wait.append(f"click:{arg[1]}")
        return await super().evaluate(script, arg)

    @property
    def main_frame(self) -> "FakePage":
        return self

    @property
    def frames(self) -> list[FakeFrame]:
        return [self, *self.child_frames]

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(1 if self.login_form else 0)

    async def content(self) -> str:
        return self.html

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.navigations.append(url)
        self.url = url
        if self.on_goto:
            self.on_goto(self, url)


def candidate(index: int, text: str = "", icon_classes: str = "", visible: bool = True) -> dict:
    return {
        "index": index,
        "text": text,
        "value": "",
        "icon_classes": icon_classes,
        "visible": visible,
    }


def row(*cells: str, header: bool = False) -> dict:
    return {"cells": list(cells), "data": [] if header else list(cells)}


@pytest.fixture
def selectors() -> dict[str, Any]:
    return load_selectors()


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """Remove fixed delays so tests run instantly."""
    monkeypatch.setattr(settings, "redirect_delay_ms", 0)
    monkeypatch.setattr(settings, "settle_delay_ms", 0)
    monkeypatch.setattr(settings, "keystroke_delay_ms", 0)
    monkeypatch.setattr(settings, "table_wait_timeout_ms", 0)
    monkeypatch.setattr(settings, "table_poll_interval_ms", 0)


@pytest.fixture(autouse=True)
def reset_browser_singleton():
    BrowserManager._instance = None
    yield
    BrowserManager._instance = None
