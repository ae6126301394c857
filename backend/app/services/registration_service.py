"""
Registration coordinator: redeem an invitation into a registrant (+ companion).

TRANSACTION SHAPE
=================

  advisory   validate(token)                  own short session, rejects early
  ---------- UnitOfWork ----------------------------------------------------
  1          validate(token, FOR UPDATE)      concurrent redemptions of one token
                                              queue here; the loser sees is_used
  2          capacity.admit(event, party)     conditional UPDATE on the counter
             waitlist policy                  EventFull if waitlist disabled
  3          identifiers                      registration IDs, check-in tokens
  4          insert registrant / companion,
             consume(invitation)
  5          commit                           all of it, or none of it
  ---------------------------------------------------------------------------
  after      dispatcher.dispatch_registration fire-and-forget tasks

A failure anywhere inside the unit of work rolls back the invitation flag, the
seat reservation and both rows together. A unique-constraint collision on a
generated identifier retries the whole unit of work (SUBMIT_MAX_ATTEMPTS); every
other error propagates unchanged.
"""

import time
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.core.exceptions import (
    AlreadyCancelled,
    EventFull,
    EventNotFound,
    RegistrantNotFound,
    RegistrationClosed,
    RegistrationConflict,
    RegistrationError,
)
from app.core.logging import get_logger
from app.core.metrics import record_registration, registration_latency, registration_retries
from app.db.unit_of_work import UnitOfWork
from app.models.companion import Companion
from app.models.enums import AdmissionOutcome, RegistrationStatus
from app.models.event import Event
from app.models.registrant import Registrant
from app.schemas.event import EventSummary
from app.schemas.registration import CompanionCredential, RegistrantResponse, RegistrationCreate, RegistrationResult
from app.services import capacity_service, identifiers, invitation_service
from app.services.dispatcher import SideEffectDispatcher

logger = get_logger(__name__)


@dataclass(frozen=True)
class CancellationResult:
    registrant_id: uuid.UUID
    previous_status: RegistrationStatus
    seats_released: int


def _build_result(event: Event, registrant: Registrant, outcome: Optional[AdmissionOutcome]) -> RegistrationResult:
    companion = None
    if registrant.companion is not None:
        companion = CompanionCredential.model_validate(registrant.companion)
    return RegistrationResult(
        registrant=RegistrantResponse.model_validate(registrant),
        companion=companion,
        event=EventSummary.model_validate(event),
        outcome=outcome,
    )


async def _admit(db: AsyncSession, data: RegistrationCreate) -> RegistrationResult:
    invitation = await invitation_service.validate(db, data.token, for_update=True)

    event = await db.get(Event, invitation.event_id)
    if event is None:
        raise EventNotFound(f"Event {invitation.event_id} not found")
    if not event.registration_open:
        raise RegistrationClosed()

    outcome = await capacity_service.admit(db, event.id, data.party_size)
    if outcome == AdmissionOutcome.WAITLISTED and not event.waitlist_enabled:
        logger.info("registration_rejected_full", event_id=event.id, party_size=data.party_size)
        raise EventFull()

    registration_id = identifiers.new_registration_id()

    companion = None
    if data.companion is not None:
        companion = Companion(
            name=data.companion.name,
            company=data.companion.company,
            title=data.companion.title,
            email=data.companion.email,
            registration_id=identifiers.companion_registration_id(registration_id),
            qr_code=identifiers.new_check_in_token(),
            checked_in_at=None,
        )

    registrant = Registrant(
        name=data.name,
        company=data.company,
        title=data.title,
        email=data.email,
        status=outcome.status.value,
        registration_id=registration_id,
        qr_code=identifiers.new_check_in_token(),
        checked_in_at=None,
        invitation_id=invitation.id,
        event_id=event.id,
        companion=companion,
    )
    db.add(registrant)
    await invitation_service.consume(db, invitation.id)
    await db.flush()

    # Pick up the counter written by the ledger's UPDATE
    await db.refresh(event)
    return _build_result(event, registrant, outcome)


async def submit_registration(
    session_factory: async_sessionmaker[AsyncSession],
    data: RegistrationCreate,
    dispatcher: Optional[SideEffectDispatcher] = None,
) -> RegistrationResult:
    """
    Redeem an invitation. Returns the committed result; side effects are only
    scheduled, never awaited.

    Raises:
        InvitationNotFound, InvitationAlreadyUsed, InvitationExpired,
        EventNotFound, RegistrationClosed, EventFull, RegistrationConflict
    """
    settings = get_settings()
    started = time.perf_counter()

    try:
        async with session_factory() as db:
            await invitation_service.validate(db, data.token)

        result = None
        for attempt in range(1, settings.SUBMIT_MAX_ATTEMPTS + 1):
            try:
                async with UnitOfWork(session_factory) as uow:
                    result = await _admit(uow.session, data)
                break
            except IntegrityError as e:
                registration_retries.inc()
                logger.info(
                    "registration_retry",
                    attempt=attempt,
                    reason="integrity_error",
                    error=str(e.orig),
                )
                if attempt == settings.SUBMIT_MAX_ATTEMPTS:
                    raise RegistrationConflict() from e

    except RegistrationError as e:
        record_registration("rejected")
        logger.info("registration_rejected", code=e.code, detail=e.detail)
        raise
    except Exception:
        record_registration("error")
        logger.exception("registration_failed")
        raise
    finally:
        registration_latency.observe(time.perf_counter() - started)

    record_registration(result.outcome.value.lower())
    logger.info(
        "registration_admitted" if result.outcome == AdmissionOutcome.CONFIRMED else "registration_waitlisted",
        registrant_id=str(result.registrant.id),
        registration_id=result.registrant.registration_id,
        event_id=result.event.id,
        party_size=data.party_size,
        current_registrations=result.event.current_registrations,
        capacity=result.event.capacity,
    )

    if dispatcher is not None:
        dispatcher.dispatch_registration(result)

    return result


async def get_registration(
    session_factory: async_sessionmaker[AsyncSession],
    registrant_id: uuid.UUID,
) -> RegistrationResult:
    async with session_factory() as db:
        registrant = await db.get(Registrant, registrant_id)
        if registrant is None:
            raise RegistrantNotFound()
        event = await db.get(Event, registrant.event_id)

        outcome = None
        if registrant.status != RegistrationStatus.CANCELLED.value:
            outcome = AdmissionOutcome(registrant.status)
        return _build_result(event, registrant, outcome)


async def cancel_registration(
    session_factory: async_sessionmaker[AsyncSession],
    registrant_id: uuid.UUID,
) -> CancellationResult:
    """
    Cancel a registration and, if it held seats, return them to the event in the
    same unit of work. Cancelling twice raises AlreadyCancelled.
    """
    async with UnitOfWork(session_factory) as uow:
        db = uow.session
        result = await db.execute(
            select(Registrant).where(Registrant.id == registrant_id).with_for_update()
        )
        registrant = result.scalar_one_or_none()

        if registrant is None:
            raise RegistrantNotFound()
        if registrant.status == RegistrationStatus.CANCELLED.value:
            raise AlreadyCancelled()

        previous = RegistrationStatus(registrant.status)
        updated = await db.execute(
            update(Registrant)
            .where(Registrant.id == registrant.id, Registrant.status == previous.value)
            .values(status=RegistrationStatus.CANCELLED.value)
        )
        if updated.rowcount != 1:
            raise AlreadyCancelled()

        seats = 0
        if previous == RegistrationStatus.CONFIRMED:
            seats = registrant.party_size
            await capacity_service.release(db, registrant.event_id, seats)

    logger.info(
        "registration_cancelled",
        registrant_id=str(registrant_id),
        previous_status=previous.value,
        seats_released=seats,
    )
    return CancellationResult(registrant_id=registrant_id, previous_status=previous, seats_released=seats)
