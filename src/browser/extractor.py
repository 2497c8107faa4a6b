"""Extraction of per-vehicle passenger totals from the report page.

The report table may be rendered in the main document or inside one of the
page's frames, and its column order varies. Columns are located by header
text, and the first document that yields rows wins.
"""

import asyncio
from typing import Any

import structlog
from playwright.async_api import Frame, Page

from src.browser.dom import body_text, read_rows
from src.browser.matchers import collapse_snippet, contains_any, find_header, parse_rows
from src.config import settings
from src.errors import NavigationTimeout
from src.models import ExtractionResult, VehicleRecord

logger = structlog.get_logger(__name__)

EMPTY_PAGE_SNIPPET = "(empty page)"


class FrameTableExtractor:
    """Finds the passenger table across the page's documents."""

    def __init__(self, selectors: dict[str, Any]) -> None:
        table = selectors["table"]
        self.identifier_markers: list[str] = table["identifier_markers"]
        self.total_markers: list[str] = table["total_markers"]

    async def extract(self, page: Page) -> ExtractionResult:
        """Extract vehicle records from the first document holding the table.

        Returns:
            A successful result with the vehicles, or an unsuccessful one
            whose diagnostic_snippet shows the start of the page text.
        """
        try:
            await self.wait_for_table(page)
        except NavigationTimeout as e:
            logger.warning("table_marker_wait_timed_out", error=str(e))

        for frame in self.candidate_documents(page):
            vehicles = await self._extract_from(frame)
            if vehicles:
                logger.info(
                    "vehicles_extracted",
                    count=len(vehicles),
                    frame_url=frame.url,
                )
                return ExtractionResult(vehicles=vehicles, source_url=frame.url)

        snippet = await self._diagnostic_snippet(page)
        logger.warning("passenger_table_not_found", snippet=snippet)
        return ExtractionResult(diagnostic_snippet=snippet)

    def candidate_documents(self, page: Page) -> list[Frame]:
        """Main document first, then every other frame in page order."""
        main = page.main_frame
        return [main] + [frame for frame in page.frames if frame is not main]

    async def wait_for_table(self, page: Page) -> None:
        """Poll until some document mentions the day-total marker.

        Raises:
            NavigationTimeout: If the marker does not show up in time.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.table_wait_timeout_ms / 1000

        while True:
            for frame in self.candidate_documents(page):
                text = await _readable_text(frame)
                if text is not None and contains_any(text, self.total_markers):
                    logger.debug("table_marker_found", frame_url=frame.url)
                    return
            if loop.time() >= deadline:
                raise NavigationTimeout(
                    f"Table marker not found within {settings.table_wait_timeout_ms} ms"
                )
            await asyncio.sleep(settings.table_poll_interval_ms / 1000)

    async def _extract_from(self, frame: Frame) -> list[VehicleRecord]:
        try:
            rows = await read_rows(frame)
        except Exception as e:
            # Cross-origin and detached frames cannot be read
            logger.debug("frame_unreadable", frame_url=frame.url, error=str(e))
            return []

        header = find_header(rows, self.identifier_markers, self.total_markers)
        if header is None:
            return []

        col_identifier, col_total = header
        logger.debug(
            "table_header_found",
            frame_url=frame.url,
            col_identifier=col_identifier,
            col_total=col_total,
        )
        return parse_rows(rows, col_identifier, col_total, settings.identifier_max_length)

    async def _diagnostic_snippet(self, page: Page) -> str:
        text = await _readable_text(page.main_frame)
        snippet = collapse_snippet(text, settings.snippet_length)
        return snippet or EMPTY_PAGE_SNIPPET


async def _readable_text(frame: Frame) -> str | None:
    try:
        return await body_text(frame)
    except Exception:
        return None
