"""Passenger report scraping for the GPS portal.

This module provides the PassengerScraper class that runs one scrape against
the shared browser page: authenticate, refresh the report, extract the table.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

import structlog

from src.browser.auth import AuthManager
from src.browser.context import BrowserManager
from src.browser.extractor import FrameTableExtractor
from src.browser.refresh import RefreshStrategy
from src.browser.session import Session
from src.errors import ExtractionEmpty, RobotError, ScraperError
from src.models import Credentials, ExtractionResult

logger = structlog.get_logger(__name__)

KEEPALIVE_JS = "() => document.readyState"


class PassengerScraper:
    """Runs scrapes and keep-alive ticks against the single shared page.

    Attributes:
        browser: BrowserManager owning the page.
        auth: AuthManager keeping the session logged in.
        refresher: RefreshStrategy reloading the report.
        extractor: FrameTableExtractor reading the table.
        session: The process-wide portal session.
    """

    def __init__(
        self,
        browser: BrowserManager,
        auth: AuthManager,
        refresher: RefreshStrategy,
        extractor: FrameTableExtractor,
        session: Session | None = None,
    ) -> None:
        self.browser = browser
        self.auth = auth
        self.refresher = refresher
        self.extractor = extractor
        self.session = session or Session()
        # The page is shared, so scrapes and keep-alive ticks run one at a time
        self._lock = asyncio.Lock()

    @classmethod
    def from_selectors(
        cls, browser: BrowserManager, selectors: dict[str, Any]
    ) -> "PassengerScraper":
        return cls(
            browser=browser,
            auth=AuthManager(selectors),
            refresher=RefreshStrategy(selectors),
            extractor=FrameTableExtractor(selectors),
        )

    async def scrape_passengers(self, credentials: Credentials) -> ExtractionResult:
        """Scrape today's passenger totals per vehicle.

        Args:
            credentials: Portal credentials for this request.

        Returns:
            A successful ExtractionResult.

        Raises:
            LaunchError: If the browser cannot be started.
            LoginError: If the portal login fails.
            ExtractionEmpty: If no document on the page holds the table.
            ScraperError: On any other failure.
        """
        logger.info("scraping_passengers", username=credentials.username)

        async with self._lock:
            try:
                page = await self.browser.get_page()
                self.session = await self.auth.ensure_logged_in(
                    page, credentials, self.session
                )
                outcome = await self.refresher.refresh(page)
                logger.debug(
                    "report_refresh_outcome",
                    path=outcome.path,
                    refreshed=outcome.refreshed,
                )
                result = await self.extractor.extract(page)
            except RobotError:
                raise
            except Exception as e:
                logger.error("passenger_scraping_failed", error=str(e), exc_info=True)
                raise ScraperError(f"Failed to scrape passengers: {e}") from e

        if not result.success:
            raise ExtractionEmpty(result.diagnostic_snippet or "")

        logger.info("passengers_scraped_successfully", count=len(result.vehicles))
        return result

    async def keep_alive(self) -> bool:
        """Poke the page so a dead portal session is noticed between requests.

        On failure the session is marked EXPIRED and the next scrape logs in
        again. The browser itself is left running.

        Returns:
            True if the session still looks alive.
        """
        if not self.session.is_active or not self.browser.is_initialized:
            logger.debug("keepalive_skipped", session_state=self.session.state.value)
            return False

        async with self._lock:
            try:
                page = await self.browser.get_page()
                await page.evaluate(KEEPALIVE_JS)
                expired = await self.auth.is_expired(page)
            except Exception as e:
                logger.warning("keepalive_failed", error=str(e))
                self.session.expire()
                return False

            if expired:
                logger.info("keepalive_detected_expiry", url=page.url)
                self.session.expire()
                return False

            self.session.touch()
            logger.debug("keepalive_ok", url=page.url)
            return True

    async def check_health(self) -> dict[str, Any]:
        """Report browser and session status without touching the page."""
        return {
            "browser_initialized": self.browser.is_initialized,
            **self.session.describe(),
            "checked_at": datetime.now(timezone.utc).isoformat(),
        }
