"""FastMCP server entry point for the passenger robot.

This module exposes the passenger scraper both as MCP tools and as plain
HTTP routes (``POST /api/scrape-passengers``, ``GET /health``) used by the
earnings calculator front-end.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from src.browser.context import BrowserManager
from src.browser.keepalive import KeepAlive
from src.browser.observer import LoggingObserver
from src.browser.scraper import PassengerScraper
from src.config import load_selectors, settings
from src.errors import LaunchError


# Configure structlog
def configure_logging() -> None:
    """Configure structlog for JSON or console output."""
    if settings.log_format == "json":
        processors = [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=True,
    )


# Initialize logging
configure_logging()
logger = structlog.get_logger(__name__)

# Global instances (initialized in lifespan, or on first request)
browser_manager: BrowserManager | None = None
scraper: PassengerScraper | None = None
keepalive: KeepAlive | None = None


def get_scraper() -> PassengerScraper:
    """Return the shared scraper, building it on first use."""
    global browser_manager, scraper

    if scraper is None:
        selectors = load_selectors()
        browser_manager = BrowserManager.get_instance(
            traffic=selectors.get("traffic"),
            observer=LoggingObserver(),
        )
        scraper = PassengerScraper.from_selectors(browser_manager, selectors)
        logger.info("scraper_initialized", selectors_path=settings.selectors_path)

    return scraper


@asynccontextmanager
async def lifespan(server):
    """Manage server startup and shutdown."""
    global keepalive

    logger.info(
        "server_starting",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )

    try:
        shared_scraper = get_scraper()
    except Exception as e:
        logger.error("failed_to_load_selectors", error=str(e), exc_info=True)
        sys.exit(1)

    if settings.eager_browser_start:
        try:
            await shared_scraper.browser.initialize()
            logger.info("browser_manager_initialized")
        except LaunchError as e:
            logger.error("browser_initialization_failed", error=str(e))
            sys.exit(1)

    if settings.keepalive_enabled:
        keepalive = KeepAlive(shared_scraper, settings.keepalive_interval_seconds)
        keepalive.start()

    logger.info("server_startup_complete")

    try:
        yield
    finally:
        logger.info("server_shutting_down")

        if keepalive:
            await keepalive.stop()

        if browser_manager:
            try:
                await browser_manager.shutdown()
                logger.info("browser_manager_shutdown")
            except Exception as e:
                logger.warning("browser_shutdown_error", error=str(e))

        logger.info("server_shutdown_complete")


# Create FastMCP instance
mcp = FastMCP("Passenger Robot", lifespan=lifespan)


# Tool: Scrape Passengers
@mcp.tool()
async def scrape_passengers(username: str, password: str) -> dict:
    """Get today's passenger total for every vehicle from the GPS portal.

    Logs into the portal (or reuses the live session), refreshes the daily
    report and reads its table.

    Args:
        username: Portal username
        password: Portal password

    Returns:
        Dictionary containing:
            - success: Whether vehicles were found (bool)
            - vehicles: List of {identifier, pasajeros} (if success)
            - message: Error description (if not success)
    """
    from src.tools.passengers import scrape_passengers as scrape_passengers_impl

    return await scrape_passengers_impl(get_scraper(), username, password)


# Tool: Health Check
@mcp.tool()
async def health_check() -> dict:
    """Report browser and portal session status.

    Returns:
        Dictionary containing:
            - status: "healthy"
            - browser_initialized: Whether the browser is running (bool)
            - session_state: uninitialized, login_required, active or expired
            - last_interaction_at: ISO 8601 timestamp or null
    """
    from src.tools.health import health_check as health_check_impl

    return await health_check_impl(get_scraper())


@mcp.custom_route("/api/scrape-passengers", methods=["POST"])
async def http_scrape_passengers(request: Request) -> JSONResponse:
    """HTTP endpoint for the calculator front-end.

    Returns 200 with the vehicles, 500 with a message for any failure.
    """
    from src.tools.passengers import scrape_passengers as scrape_passengers_impl

    try:
        body: Any = await request.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        body = {}

    response = await scrape_passengers_impl(
        get_scraper(), body.get("username"), body.get("password")
    )
    return JSONResponse(response, status_code=200 if response["success"] else 500)


# HTTP health endpoint (for container healthcheck)
@mcp.custom_route("/health", methods=["GET"])
async def http_health(request: Request) -> JSONResponse:
    from src.tools.health import health_check as health_check_impl

    response = await health_check_impl(get_scraper())
    return JSONResponse(response, status_code=200 if response["success"] else 500)


def create_app():
    """Build the ASGI app with CORS for the browser front-end."""
    return mcp.http_app(
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=settings.cors_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            )
        ]
    )


if __name__ == "__main__":
    # Run with `python -m src.server`; PORT and HOST come from the environment
    logger.info("starting_server", host=settings.host, port=settings.port)
    uvicorn.run(create_app(), host=settings.host, port=settings.port)
