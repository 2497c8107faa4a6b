"""Tests for session state transitions and models."""

from src.browser.session import Session, SessionState
from src.models import ExtractionResult, VehicleRecord


def test_new_session_is_uninitialized():
    session = Session()

    assert session.state is SessionState.UNINITIALIZED
    assert session.last_interaction_at is None
    assert not session.is_active


def test_activate_touches():
    session = Session()

    session.activate()

    assert session.is_active
    assert session.last_interaction_at is not None


def test_expire_and_require_login():
    session = Session(state=SessionState.ACTIVE)

    session.require_login()
    assert session.state is SessionState.LOGIN_REQUIRED

    session.expire()
    assert session.state is SessionState.EXPIRED
    assert session.describe()["session_state"] == "expired"


def test_extraction_success_follows_vehicles():
    """Test that success is true exactly when vehicles are present."""
    assert ExtractionResult().success is False
    assert ExtractionResult(vehicles=[VehicleRecord(identifier="1", pasajeros="2")]).success
