"""Tools exposing the passenger robot.

This module provides the handlers shared by the MCP tools and HTTP routes:
- Passenger scraping
- Health check
"""

from src.tools.health import health_check
from src.tools.passengers import scrape_passengers

__all__ = [
    "scrape_passengers",
    "health_check",
]
