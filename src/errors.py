"""Exception hierarchy for the passenger robot.

Every caller-facing failure derives from RobotError so the tool layer can
turn it into a uniform error response.
"""


class RobotError(Exception):
    """Base class for all robot failures."""

    pass


class LaunchError(RobotError):
    """Raised when the browser process or page cannot be created."""

    pass


class LoginError(RobotError):
    """Raised when the portal login flow fails."""

    pass


class NavigationTimeout(RobotError):
    """Raised when a bounded wait on the page times out."""

    pass


class ScraperError(RobotError):
    """Raised when a scrape fails for an unexpected reason."""

    pass


class ExtractionEmpty(RobotError):
    """Raised when no document on the page yields a vehicle row.

    Attributes:
        diagnostic_snippet: Leading visible text of the page, for operators.
    """

    def __init__(self, diagnostic_snippet: str) -> None:
        self.diagnostic_snippet = diagnostic_snippet
        super().__init__(
            f'No passenger table found. Current page says: "{diagnostic_snippet}"'
        )
