"""Refresh of the passenger report before extraction.

The report page has a control that reloads its table in place. When the page
is already on the report, clicking it is enough (fast path); otherwise, or if
anything goes wrong, the report is reloaded from scratch (safe path).
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import structlog
from playwright.async_api import Page

from src.browser.dom import click_first_match, navigate
from src.browser.matchers import rules_from_config
from src.config import settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RefreshOutcome:
    path: str  # "fast" or "safe"
    refreshed: bool
    rule: str | None = None


class RefreshStrategy:
    """Selects between the in-place and the full-reload refresh."""

    def __init__(self, selectors: dict[str, Any], report_url: str | None = None) -> None:
        refresh = selectors["refresh"]
        self.rules = rules_from_config(refresh.get("rules", []))
        self.clickable_selector: str = refresh["clickable_selector"]
        self.report_url = report_url or settings.portal_report_url

    async def refresh(self, page: Page) -> RefreshOutcome:
        """Bring fresh report data onto ``page``.

        Never raises for a missing control; navigation timeouts are soft.
        """
        if page.url == self.report_url:
            try:
                rule = await click_first_match(page, self.clickable_selector, self.rules)
                if rule is not None:
                    await asyncio.sleep(settings.settle_delay_ms / 1000)
                    logger.info("report_refreshed_in_place", rule=rule)
                    return RefreshOutcome(path="fast", refreshed=True, rule=rule)
                logger.info("fast_refresh_control_missing")
            except Exception as e:
                logger.warning("fast_refresh_failed", error=str(e))

        return await self._safe_refresh(page)

    async def _safe_refresh(self, page: Page) -> RefreshOutcome:
        logger.info("reloading_report", url=self.report_url)
        await navigate(page, self.report_url)
        await asyncio.sleep(settings.settle_delay_ms / 1000)

        # First render of the report can come up with an empty table
        rule = None
        try:
            rule = await click_first_match(page, self.clickable_selector, self.rules)
        except Exception as e:
            logger.warning("safe_refresh_click_failed", error=str(e))
        await asyncio.sleep(settings.settle_delay_ms / 1000)

        return RefreshOutcome(path="safe", refreshed=rule is not None, rule=rule)
