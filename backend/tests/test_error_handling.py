"""
Tests for the non-domain error paths: store outages and broken capacity invariants.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from structlog.testing import capture_logs

from app.core.exceptions import CapacityInvariantViolation
from app.db.session import get_session_factory
from app.main import app
from app.services import capacity_service, invitation_service

from conftest import registration_payload


def connection_refused():
    return OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


@pytest.mark.asyncio
async def test_store_unreachable_returns_503_with_retry_after(
    client: AsyncClient, make_event, make_invitation, db_state, mailer
):
    event_id = await make_event(capacity=10)
    token = await make_invitation(event_id)

    def unreachable_store():
        raise connection_refused()

    app.dependency_overrides[get_session_factory] = lambda: unreachable_store

    response = await client.post("/api/v1/rsvp/submit", json=registration_payload(token))

    assert response.status_code == 503
    assert response.json()["code"] == "store_unavailable"
    assert response.headers["Retry-After"] == "1"

    state = await db_state(event_id, token)
    assert state["registrants"] == 0
    assert state["current_registrations"] == 0
    assert state["invitation_used"] is False
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_connection_lost_mid_submission_rolls_back_and_returns_503(
    client: AsyncClient, make_event, make_invitation, db_state, monkeypatch
):
    """Seats reserved before the outage are released with the rest of the unit of work."""
    event_id = await make_event(capacity=10, current_registrations=3)
    token = await make_invitation(event_id)

    async def connection_dropped(db, invitation_id):
        raise connection_refused()

    monkeypatch.setattr(invitation_service, "consume", connection_dropped)

    response = await client.post("/api/v1/rsvp/submit", json=registration_payload(token, companion=True))

    assert response.status_code == 503
    assert response.json()["code"] == "store_unavailable"
    assert "Retry-After" in response.headers

    state = await db_state(event_id, token)
    assert state["current_registrations"] == 3
    assert state["registrants"] == 0
    assert state["companions"] == 0
    assert state["invitation_used"] is False


@pytest.mark.asyncio
async def test_capacity_invariant_violation_is_logged_internal_error(
    client: AsyncClient, make_event, make_invitation, db_state, mailer, monkeypatch
):
    event_id = await make_event(capacity=10)
    token = await make_invitation(event_id)
    real_admit = capacity_service.admit

    async def admit_then_detect_corruption(db, event_id, requested_slots):
        await real_admit(db, event_id, requested_slots)
        raise CapacityInvariantViolation(event_id, requested_slots, "counter exceeded capacity")

    monkeypatch.setattr(capacity_service, "admit", admit_then_detect_corruption)

    with capture_logs() as logs:
        response = await client.post("/api/v1/rsvp/submit", json=registration_payload(token))

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal Server Error.", "code": "internal_error"}

    violations = [log for log in logs if log["event"] == "capacity_invariant_violation"]
    assert len(violations) == 1
    assert violations[0]["log_level"] == "error"
    assert violations[0]["event_id"] == event_id

    state = await db_state(event_id, token)
    assert state["current_registrations"] == 0
    assert state["registrants"] == 0
    assert state["invitation_used"] is False
    assert mailer.sent == []
