"""
Tests for the capacity ledger: conditional admit and release.
"""

import re
from contextlib import contextmanager

import pytest
from sqlalchemy import event as sa_event

from app.core.exceptions import CapacityInvariantViolation
from app.db.unit_of_work import UnitOfWork
from app.models.enums import AdmissionOutcome
from app.schemas.registration import RegistrationCreate
from app.services import capacity_service, registration_service

from conftest import registration_payload

# Placeholders differ per driver: ? (sqlite), $1::INTEGER (asyncpg)
CONDITIONAL_ADMIT = re.compile(
    r"^UPDATE events SET .*current_registrations=\(?events\.current_registrations \+ \S+\)?.*"
    r" WHERE events\.id = \S+ AND events\.current_registrations \+ \S+ <= events\.capacity$"
)
CONDITIONAL_RELEASE = re.compile(
    r"^UPDATE events SET .*current_registrations=\(?events\.current_registrations - \S+\)?.*"
    r" WHERE events\.id = \S+ AND events\.current_registrations - \S+ >= \S+$"
)


@contextmanager
def captured_sql(engine):
    """Every statement sent to the driver, whitespace-normalised."""
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(" ".join(statement.split()))

    sa_event.listen(engine.sync_engine, "before_cursor_execute", record)
    try:
        yield statements
    finally:
        sa_event.remove(engine.sync_engine, "before_cursor_execute", record)


def touching_events(statements):
    return [s for s in statements if re.search(r"\bevents\b", s)]


async def admit(session_factory, event_id, slots):
    async with UnitOfWork(session_factory) as uow:
        return await capacity_service.admit(uow.session, event_id, slots)


@pytest.mark.asyncio
async def test_admit_confirms_and_increments(session_factory, make_event, db_state):
    event_id = await make_event(capacity=3)

    assert await admit(session_factory, event_id, 1) == AdmissionOutcome.CONFIRMED
    assert await admit(session_factory, event_id, 2) == AdmissionOutcome.CONFIRMED

    state = await db_state(event_id)
    assert state["current_registrations"] == 3


@pytest.mark.asyncio
async def test_admit_waitlists_without_touching_counter(session_factory, make_event, db_state):
    event_id = await make_event(capacity=2, current_registrations=2)

    assert await admit(session_factory, event_id, 1) == AdmissionOutcome.WAITLISTED
    assert (await db_state(event_id))["current_registrations"] == 2


@pytest.mark.asyncio
async def test_party_is_admitted_whole_or_not_at_all(session_factory, make_event, db_state):
    """A party of two never takes the last single seat."""
    event_id = await make_event(capacity=5, current_registrations=4)

    assert await admit(session_factory, event_id, 2) == AdmissionOutcome.WAITLISTED
    assert (await db_state(event_id))["current_registrations"] == 4

    assert await admit(session_factory, event_id, 1) == AdmissionOutcome.CONFIRMED
    assert (await db_state(event_id))["current_registrations"] == 5


@pytest.mark.asyncio
async def test_admit_is_undone_by_rollback(session_factory, make_event, db_state):
    event_id = await make_event(capacity=2)

    with pytest.raises(RuntimeError):
        async with UnitOfWork(session_factory) as uow:
            await capacity_service.admit(uow.session, event_id, 2)
            raise RuntimeError("later step failed")

    assert (await db_state(event_id))["current_registrations"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("slots", [0, 3, -1])
async def test_invalid_party_size(session_factory, make_event, slots):
    event_id = await make_event()
    with pytest.raises(ValueError):
        await admit(session_factory, event_id, slots)


@pytest.mark.asyncio
async def test_release_returns_seats(session_factory, make_event, db_state):
    event_id = await make_event(capacity=2, current_registrations=2)

    async with UnitOfWork(session_factory) as uow:
        await capacity_service.release(uow.session, event_id, 2)

    assert (await db_state(event_id))["current_registrations"] == 0


@pytest.mark.asyncio
async def test_release_below_zero_is_invariant_violation(session_factory, make_event, db_state):
    """Never clamps: the counter stays where it was."""
    event_id = await make_event(capacity=5, current_registrations=1)

    with pytest.raises(CapacityInvariantViolation) as exc_info:
        async with UnitOfWork(session_factory) as uow:
            await capacity_service.release(uow.session, event_id, 2)

    assert exc_info.value.event_id == event_id
    assert exc_info.value.delta == -2
    assert (await db_state(event_id))["current_registrations"] == 1


@pytest.mark.asyncio
async def test_available_seats(session_factory, make_event):
    event_id = await make_event(capacity=10, current_registrations=7)
    async with session_factory() as db:
        assert await capacity_service.available_seats(db, event_id) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "capacity, current, expected",
    [
        (5, 0, AdmissionOutcome.CONFIRMED),
        (5, 5, AdmissionOutcome.WAITLISTED),
    ],
)
async def test_admit_decides_with_one_conditional_update(
    engine, session_factory, make_event, capacity, current, expected
):
    """
    The seat decision is the UPDATE itself: no read of the counter comes before
    it, and the increment is relative to the stored value, never a computed total.
    """
    event_id = await make_event(capacity=capacity, current_registrations=current)

    with captured_sql(engine) as statements:
        assert await admit(session_factory, event_id, 1) == expected

    on_events = touching_events(statements)
    updates = [s for s in on_events if s.startswith("UPDATE events")]
    assert len(updates) == 1
    assert on_events[0] == updates[0], f"counter read before the seat decision: {on_events}"
    assert CONDITIONAL_ADMIT.match(updates[0]), updates[0]


@pytest.mark.asyncio
async def test_submission_writes_counter_only_through_conditional_update(
    engine, session_factory, make_event, make_invitation, db_state
):
    event_id = await make_event(capacity=3, current_registrations=1)
    token = await make_invitation(event_id)
    data = RegistrationCreate(**registration_payload(token, companion=True))

    with captured_sql(engine) as statements:
        result = await registration_service.submit_registration(session_factory, data)

    assert result.outcome == AdmissionOutcome.CONFIRMED
    updates = [s for s in touching_events(statements) if s.startswith("UPDATE events")]
    assert len(updates) == 1
    assert CONDITIONAL_ADMIT.match(updates[0]), updates[0]
    assert (await db_state(event_id))["current_registrations"] == 3


@pytest.mark.asyncio
async def test_release_is_one_conditional_update(engine, session_factory, make_event):
    event_id = await make_event(capacity=4, current_registrations=2)

    with captured_sql(engine) as statements:
        async with UnitOfWork(session_factory) as uow:
            await capacity_service.release(uow.session, event_id, 2)

    on_events = touching_events(statements)
    assert len(on_events) == 1
    assert CONDITIONAL_RELEASE.match(on_events[0]), on_events[0]
