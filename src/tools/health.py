"""Tool for health checking.

This module provides the health_check tool which reports whether the browser
is up and what state the portal session is in.
"""

from typing import Any

import structlog

from src.tools.common import build_error_response

logger = structlog.get_logger(__name__)


async def health_check(scraper: Any) -> dict[str, Any]:
    """Check health of the robot.

    Args:
        scraper: PassengerScraper instance.

    Returns:
        Dictionary containing:
            - status: "healthy"
            - browser_initialized: Whether the browser is running
            - session_state: Portal session state
            - last_interaction_at: Last time the page was used
    """
    logger.debug("health_check_called")

    try:
        health = await scraper.check_health()
        return {"success": True, "status": "healthy", **health}

    except Exception as e:
        logger.error("health_check_failed", error=str(e), exc_info=True)
        return build_error_response(f"Health check failed: {e}")
