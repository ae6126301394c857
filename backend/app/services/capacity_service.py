"""
Capacity ledger: the only writer of Event.current_registrations.

CONCURRENCY STRATEGY: single conditional UPDATE
================================================

Problem:
  Two submissions for the last seat both read available=1, both decide CONFIRMED,
  both increment. Result: current_registrations > capacity.

Solution:
  The read-decide-write collapses into one statement:

    UPDATE events
       SET current_registrations = current_registrations + :n,
           version = version + 1
     WHERE id = :event_id
       AND current_registrations + :n <= capacity

  rows_affected == 1 -> CONFIRMED, seats are held by this transaction.
  rows_affected == 0 -> WAITLISTED, the counter was not touched.

  Under PostgreSQL READ COMMITTED a second writer blocks on the row lock and
  re-evaluates the WHERE clause against the committed value, so no retry loop is
  needed (unlike version-matching optimistic locking). The CHECK constraints on
  events are the final safety net.

  The ledger does not know whether waitlisting is allowed; that policy lives in
  the registration coordinator.

Releasing seats uses the mirror condition (current_registrations - :n >= 0). A
release that matches no row means a cancellation tried to return seats that were
never held: that is a CapacityInvariantViolation, never a clamp.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import CapacityInvariantViolation
from app.core.logging import get_logger
from app.core.metrics import capacity_invariant_violations, capacity_releases, record_admission
from app.models.enums import AdmissionOutcome
from app.models.event import Event

logger = get_logger(__name__)

MAX_PARTY_SIZE = 2


def _check_slots(slots: int) -> None:
    if not 1 <= slots <= MAX_PARTY_SIZE:
        raise ValueError(f"party size must be between 1 and {MAX_PARTY_SIZE}, got {slots}")


async def _counter(db: AsyncSession, event_id: int) -> tuple[int, int]:
    result = await db.execute(
        select(Event.current_registrations, Event.capacity).where(Event.id == event_id)
    )
    row = result.one()
    return row.current_registrations, row.capacity


async def admit(db: AsyncSession, event_id: int, requested_slots: int) -> AdmissionOutcome:
    """
    Decide CONFIRMED vs WAITLISTED for a party and, if confirmed, reserve the seats
    in the caller's transaction. The party shares one outcome.
    """
    _check_slots(requested_slots)

    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.current_registrations + requested_slots <= Event.capacity,
        )
        .values(
            current_registrations=Event.current_registrations + requested_slots,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        record_admission(False)
        logger.info("capacity_insufficient", event_id=event_id, requested=requested_slots)
        return AdmissionOutcome.WAITLISTED

    current, capacity = await _counter(db, event_id)
    if not 0 <= current <= capacity:
        capacity_invariant_violations.inc()
        logger.error(
            "capacity_invariant_violated",
            event_id=event_id,
            current_registrations=current,
            capacity=capacity,
        )
        raise CapacityInvariantViolation(event_id, requested_slots, "counter exceeded capacity")

    record_admission(True)
    logger.info(
        "capacity_reserved",
        event_id=event_id,
        seats=requested_slots,
        current_registrations=current,
        capacity=capacity,
    )
    return AdmissionOutcome.CONFIRMED


async def release(db: AsyncSession, event_id: int, slots: int) -> None:
    """Return seats held by a confirmed party that is being cancelled."""
    _check_slots(slots)

    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.current_registrations - slots >= 0,
        )
        .values(
            current_registrations=Event.current_registrations - slots,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        capacity_invariant_violations.inc()
        logger.error("capacity_invariant_violated", event_id=event_id, release=slots)
        raise CapacityInvariantViolation(event_id, -slots, "release would drop counter below zero")

    capacity_releases.inc(slots)
    logger.info("capacity_released", event_id=event_id, seats=slots)


async def available_seats(db: AsyncSession, event_id: int) -> int:
    current, capacity = await _counter(db, event_id)
    return capacity - current
