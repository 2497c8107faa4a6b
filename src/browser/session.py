"""Logical state of the shared, authenticated browser session.

The session is a plain value passed to and returned from the authenticator,
so its transitions can be tested without a browser.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel


class SessionState(str, Enum):
    """Authentication state of the single portal session."""

    UNINITIALIZED = "uninitialized"
    LOGIN_REQUIRED = "login_required"
    ACTIVE = "active"
    EXPIRED = "expired"


class Session(BaseModel):
    """Process-wide session against the portal."""

    state: SessionState = SessionState.UNINITIALIZED
    last_interaction_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def touch(self) -> None:
        """Record an interaction with the live page."""
        self.last_interaction_at = datetime.now(timezone.utc)

    def activate(self) -> None:
        self.state = SessionState.ACTIVE
        self.touch()

    def require_login(self) -> None:
        self.state = SessionState.LOGIN_REQUIRED

    def expire(self) -> None:
        self.state = SessionState.EXPIRED

    def describe(self) -> dict[str, str | None]:
        """Return a JSON-friendly view for health reporting."""
        return {
            "session_state": self.state.value,
            "last_interaction_at": (
                self.last_interaction_at.isoformat() if self.last_interaction_at else None
            ),
        }
