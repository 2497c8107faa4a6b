"""Background keep-alive for the portal session."""

import asyncio

import structlog

from src.browser.scraper import PassengerScraper

logger = structlog.get_logger(__name__)


class KeepAlive:
    """Calls ``PassengerScraper.keep_alive`` on a fixed interval."""

    def __init__(self, scraper: PassengerScraper, interval_seconds: float) -> None:
        self.scraper = scraper
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="session-keepalive")
        logger.info("keepalive_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
        logger.info("keepalive_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.tick()

    async def tick(self) -> bool:
        try:
            return await self.scraper.keep_alive()
        except Exception as e:
            logger.error("keepalive_tick_error", error=str(e), exc_info=True)
            return False
