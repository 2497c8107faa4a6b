"""Observability hooks for portal traffic.

BrowserManager reports matching requests and response previews to a
TrafficObserver. The default observer does nothing; the server installs
LoggingObserver so traffic shows up in the structured logs at debug level.
"""

from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class TrafficObserver(Protocol):
    """Callbacks for data-endpoint traffic. Must not mutate the request."""

    def on_request(self, method: str, url: str, body: str | None) -> None: ...

    def on_response(self, url: str, status: int, preview: str) -> None: ...


class NullObserver:
    """Observer that ignores all traffic."""

    def on_request(self, method: str, url: str, body: str | None) -> None:
        pass

    def on_response(self, url: str, status: int, preview: str) -> None:
        pass


class LoggingObserver:
    """Observer that writes traffic to structlog."""

    def on_request(self, method: str, url: str, body: str | None) -> None:
        logger.debug("portal_request", method=method, url=url, body=body)

    def on_response(self, url: str, status: int, preview: str) -> None:
        logger.debug("portal_response", url=url, status=status, preview=preview)
