"""
QR check-in.

A check-in token belongs to either a registrant or a companion. Stamping
checked_in_at is a conditional UPDATE (`... WHERE checked_in_at IS NULL`), so two
door scanners racing on the same code produce one success and one AlreadyCheckedIn.
Only parties whose primary registrant is CONFIRMED may enter.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import AlreadyCheckedIn, CheckInNotAllowed, CheckInTokenNotFound
from app.core.logging import get_logger
from app.core.metrics import check_ins
from app.db.unit_of_work import UnitOfWork
from app.models.companion import Companion
from app.models.enums import RegistrationStatus
from app.models.event import Event
from app.models.registrant import Registrant
from app.schemas.check_in import CheckInResponse
from app.services.dispatcher import SideEffectDispatcher

logger = get_logger(__name__)


async def _resolve(db: AsyncSession, token: str) -> tuple[Optional[Registrant], Optional[Companion], Registrant]:
    """Return (registrant, companion, primary) for a token; exactly one of the first two is set."""
    result = await db.execute(select(Registrant).where(Registrant.qr_code == token))
    registrant = result.scalar_one_or_none()
    if registrant is not None:
        return registrant, None, registrant

    result = await db.execute(select(Companion).where(Companion.qr_code == token))
    companion = result.scalar_one_or_none()
    if companion is None:
        raise CheckInTokenNotFound()

    primary = await db.get(Registrant, companion.registrant_id)
    return None, companion, primary


def _response(
    event: Event,
    primary: Registrant,
    registrant: Optional[Registrant],
    companion: Optional[Companion],
    already_checked_in: bool,
) -> CheckInResponse:
    person = registrant if registrant is not None else companion
    return CheckInResponse(
        kind="registrant" if registrant is not None else "companion",
        id=person.id,
        name=person.name,
        company=person.company,
        email=person.email,
        registration_id=person.registration_id,
        status=RegistrationStatus(primary.status),
        event_id=event.id,
        event_name=event.name,
        checked_in_at=person.checked_in_at,
        already_checked_in=already_checked_in,
        primary_name=primary.name if companion is not None else None,
    )


async def lookup(session_factory: async_sessionmaker[AsyncSession], token: str) -> CheckInResponse:
    """Read-only: who does this code belong to, and have they already entered?"""
    async with session_factory() as db:
        registrant, companion, primary = await _resolve(db, token)
        event = await db.get(Event, primary.event_id)
        person = registrant if registrant is not None else companion
        return _response(event, primary, registrant, companion, person.checked_in_at is not None)


async def check_in(
    session_factory: async_sessionmaker[AsyncSession],
    token: str,
    dispatcher: Optional[SideEffectDispatcher] = None,
) -> CheckInResponse:
    now = datetime.now(timezone.utc)

    async with UnitOfWork(session_factory) as uow:
        db = uow.session
        registrant, companion, primary = await _resolve(db, token)

        if primary.status != RegistrationStatus.CONFIRMED.value:
            logger.info("check_in_refused", registration_id=primary.registration_id, status=primary.status)
            raise CheckInNotAllowed(f"Registration is {primary.status.lower()}")

        model = Registrant if registrant is not None else Companion
        person = registrant if registrant is not None else companion
        updated = await db.execute(
            update(model)
            .where(model.id == person.id, model.checked_in_at.is_(None))
            .values(checked_in_at=now)
        )
        if updated.rowcount != 1:
            raise AlreadyCheckedIn()

        event = await db.get(Event, primary.event_id)
        response = _response(event, primary, registrant, companion, already_checked_in=False)

    check_ins.labels(kind=response.kind).inc()
    logger.info(
        "check_in_completed",
        kind=response.kind,
        registration_id=response.registration_id,
        event_id=response.event_id,
    )

    if dispatcher is not None:
        dispatcher.dispatch_check_in(response.registration_id)

    return response
