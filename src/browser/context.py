"""Browser and page management with Playwright.

This module provides a singleton BrowserManager that owns a single Chromium
instance and a single page. The page is shared by every request so the portal
session cookie survives between them; other components receive the page and
never create or close pages themselves.
"""

import asyncio
from typing import Any, ClassVar

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Request,
    Response,
    Route,
    async_playwright,
)

from src.browser.observer import NullObserver, TrafficObserver
from src.config import settings
from src.errors import LaunchError

logger = structlog.get_logger(__name__)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})
OBSERVED_RESOURCE_TYPES = frozenset({"xhr", "fetch", "script"})


class BrowserManager:
    """Singleton manager for the Playwright browser and its one page.

    Usage:
        manager = BrowserManager.get_instance()
        page = await manager.get_page()  # launches on first use
        # ... use page, never close it ...
        # On shutdown:
        await manager.shutdown()
    """

    _instance: ClassVar["BrowserManager | None"] = None
    _playwright: Playwright | None
    _browser: Browser | None
    _context: BrowserContext | None
    _page: Page | None
    _lock: asyncio.Lock

    def __init__(
        self,
        traffic: dict[str, Any] | None = None,
        observer: TrafficObserver | None = None,
    ) -> None:
        """Initialize browser manager (use get_instance() instead).

        Args:
            traffic: The ``traffic`` section of selectors.yaml.
            observer: Receiver for observed requests and responses.
        """
        traffic = traffic or {}
        self.request_keywords = [k.lower() for k in traffic.get("request_keywords", [])]
        self.request_body_keywords = [
            k.lower() for k in traffic.get("request_body_keywords", [])
        ]
        self.response_keywords = [k.lower() for k in traffic.get("response_keywords", [])]
        self.observer: TrafficObserver = observer or NullObserver()

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._lock = asyncio.Lock()

    @classmethod
    def get_instance(cls, **kwargs: Any) -> "BrowserManager":
        """Get the singleton instance of BrowserManager.

        Keyword arguments are only used when the instance is first created.
        """
        if cls._instance is None:
            cls._instance = cls(**kwargs)
        return cls._instance

    @property
    def is_initialized(self) -> bool:
        return self._page is not None

    async def initialize(self) -> None:
        """Launch Chromium and open the shared page.

        Safe to call repeatedly; only the first call launches anything.

        Raises:
            LaunchError: If the browser fails to launch. The manager is left
                uninitialized and is not retried here.
        """
        async with self._lock:
            if self._page is not None:
                logger.debug("browser_already_initialized")
                return

            try:
                logger.info("initializing_playwright")
                self._playwright = await async_playwright().start()

                logger.info("launching_browser", headless=settings.browser_headless)
                self._browser = await self._playwright.chromium.launch(
                    headless=settings.browser_headless,
                    args=[
                        "--no-sandbox",
                        "--disable-setuid-sandbox",
                        "--disable-dev-shm-usage",
                        "--disable-gpu",
                    ],
                )
                self._context = await self._browser.new_context(
                    viewport={
                        "width": settings.viewport_width,
                        "height": settings.viewport_height,
                    },
                    locale="es-CO",
                    timezone_id="America/Bogota",
                )

                page = await self._context.new_page()
                page.set_default_timeout(settings.navigation_timeout_ms)
                await page.route("**/*", self._handle_route)
                page.on("response", self._handle_response)
                self._page = page

                logger.info("browser_initialized_successfully")

            except Exception as e:
                logger.error("browser_initialization_failed", error=str(e), exc_info=True)
                await self._release()
                raise LaunchError(f"Failed to initialize browser: {e}") from e

    async def get_page(self) -> Page:
        """Return the shared page, launching the browser first if needed.

        Raises:
            LaunchError: If the browser cannot be launched.
        """
        if self._page is None:
            await self.initialize()

        if self._page is None:
            raise LaunchError("Browser page is not available")

        return self._page

    async def shutdown(self) -> None:
        """Close the browser and stop Playwright."""
        async with self._lock:
            await self._release()
            logger.info("browser_shutdown_complete")

    async def _release(self) -> None:
        self._page = None

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.warning("error_closing_context", error=str(e))
            finally:
                self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning("error_closing_browser", error=str(e))
            finally:
                self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning("error_stopping_playwright", error=str(e))
            finally:
                self._playwright = None

    async def _handle_route(self, route: Route) -> None:
        """Abort heavy resources and report data-endpoint requests."""
        request = route.request

        if request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
            return

        if request.resource_type in OBSERVED_RESOURCE_TYPES and _url_matches(
            request.url, self.request_keywords
        ):
            body = None
            if _url_matches(request.url, self.request_body_keywords):
                body = _post_data(request)
            self._notify("on_request", request.method, request.url, body)

        await route.continue_()

    async def _handle_response(self, response: Response) -> None:
        """Report the start of data-endpoint response bodies."""
        if not _url_matches(response.url, self.response_keywords):
            return

        try:
            text = await response.text()
        except Exception as e:
            logger.debug("response_body_unavailable", url=response.url, error=str(e))
            return

        self._notify(
            "on_response",
            response.url,
            response.status,
            text[: settings.response_preview_length],
        )

    def _notify(self, hook: str, *args: Any) -> None:
        try:
            getattr(self.observer, hook)(*args)
        except Exception as e:
            logger.warning("traffic_observer_failed", hook=hook, error=str(e))


def _url_matches(url: str, keywords: list[str]) -> bool:
    lowered = url.lower()
    return any(keyword in lowered for keyword in keywords)


def _post_data(request: Request) -> str | None:
    try:
        return request.post_data
    except Exception:
        return None
