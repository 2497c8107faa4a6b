"""Tool for scraping today's passenger totals.

This module provides the scrape_passengers tool which logs into the portal
with the caller's credentials and returns one record per vehicle.
"""

from typing import Any

import structlog
from pydantic import SecretStr, ValidationError

from src.errors import ExtractionEmpty, LaunchError, LoginError, RobotError
from src.models import Credentials
from src.tools.common import build_error_response, build_success_response

logger = structlog.get_logger(__name__)


def parse_credentials(username: Any, password: Any) -> Credentials | None:
    """Validate raw request fields, returning None when they are unusable."""
    if not isinstance(username, str) or not isinstance(password, str) or not password:
        return None
    try:
        return Credentials(username=username.strip(), password=SecretStr(password))
    except ValidationError:
        return None


async def scrape_passengers(
    scraper: Any,
    username: Any,
    password: Any,
) -> dict[str, Any]:
    """Scrape per-vehicle passenger totals for today.

    Args:
        scraper: PassengerScraper instance.
        username: Portal username.
        password: Portal password.

    Returns:
        Response containing either ``vehicles`` or a ``message``.

    Examples:
        >>> response = await scrape_passengers(scraper, "user", "secret")
        >>> response["vehicles"][0]
        {'identifier': '15', 'pasajeros': '42'}
    """
    credentials = parse_credentials(username, password)
    if credentials is None:
        return build_error_response("username and password are required")

    logger.info("scrape_passengers_called", username=credentials.username)

    try:
        result = await scraper.scrape_passengers(credentials)
        return build_success_response(result)

    except LaunchError as e:
        logger.error("browser_unavailable", error=str(e))
        return build_error_response(f"Browser unavailable: {e}")
    except LoginError as e:
        return build_error_response(f"Portal login failed: {e}")
    except ExtractionEmpty as e:
        return build_error_response(str(e))
    except RobotError as e:
        return build_error_response(str(e))
    except Exception as e:
        logger.error("scrape_passengers_failed", error=str(e), exc_info=True)
        return build_error_response(f"Failed to scrape passengers: {e}")
