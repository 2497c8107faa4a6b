"""Common utilities for the robot's tools.

This module provides the response shapes shared by the MCP tools and the
HTTP routes:

- success: ``{"success": true, "vehicles": [...]}``
- failure: ``{"success": false, "message": "..."}``
"""

from typing import Any

import structlog

from src.models import ExtractionResult

logger = structlog.get_logger(__name__)


def build_success_response(result: ExtractionResult) -> dict[str, Any]:
    """Build the success body for an extraction.

    Args:
        result: A successful extraction result.

    Returns:
        Response dictionary with the vehicle list.
    """
    return {
        "success": True,
        "vehicles": [vehicle.model_dump() for vehicle in result.vehicles],
    }


def build_error_response(message: str) -> dict[str, Any]:
    """Build the failure body.

    Args:
        message: Human-readable error message.

    Returns:
        Response dictionary with ``success`` false.
    """
    return {
        "success": False,
        "message": message,
    }
