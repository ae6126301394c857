"""
On-demand check-in images and calendar files.

The same renderers the dispatcher attaches to confirmation emails, served again
for the confirmation page (lost email, or an attachment that failed to render).
Only CONFIRMED parties get artifacts: a waitlisted or cancelled guest has no
seat to check in to.
"""

import asyncio
import re
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import CheckInNotAllowed, CompanionNotFound, RegistrantNotFound
from app.models.companion import Companion
from app.models.enums import RegistrationStatus
from app.models.event import Event
from app.models.registrant import Registrant
from app.schemas.event import EventSummary
from app.services.interfaces.notifications import CalendarRenderer, CheckInArtifactRenderer


@dataclass(frozen=True)
class CalendarDownload:
    content: bytes
    filename: str


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def calendar_filename(event_name: str, attendee_name: str) -> str:
    """founders-dinner-ada-lovelace.ics"""
    return f"{_slug(event_name)}-{_slug(attendee_name)}.ics"


def _require_confirmed(primary: Registrant) -> None:
    if primary.status != RegistrationStatus.CONFIRMED.value:
        raise CheckInNotAllowed()


async def _confirmed_registrant(db: AsyncSession, registrant_id: uuid.UUID) -> Registrant:
    registrant = await db.get(Registrant, registrant_id)
    if registrant is None:
        raise RegistrantNotFound()
    _require_confirmed(registrant)
    return registrant


async def registrant_check_in_image(
    session_factory: async_sessionmaker[AsyncSession],
    registrant_id: uuid.UUID,
    renderer: CheckInArtifactRenderer,
) -> bytes:
    async with session_factory() as db:
        registrant = await _confirmed_registrant(db, registrant_id)
        token = registrant.qr_code
    return await asyncio.to_thread(renderer.render, token)


async def companion_check_in_image(
    session_factory: async_sessionmaker[AsyncSession],
    companion_id: uuid.UUID,
    renderer: CheckInArtifactRenderer,
) -> bytes:
    """The companion's own code; admission follows the primary registrant."""
    async with session_factory() as db:
        companion = await db.get(Companion, companion_id)
        if companion is None:
            raise CompanionNotFound()
        primary = await db.get(Registrant, companion.registrant_id)
        _require_confirmed(primary)
        token = companion.qr_code
    return await asyncio.to_thread(renderer.render, token)


async def registrant_calendar(
    session_factory: async_sessionmaker[AsyncSession],
    registrant_id: uuid.UUID,
    renderer: CalendarRenderer,
) -> CalendarDownload:
    async with session_factory() as db:
        registrant = await _confirmed_registrant(db, registrant_id)
        event = EventSummary.model_validate(await db.get(Event, registrant.event_id))
        name, email, registration_id = registrant.name, registrant.email, registrant.registration_id

    content = await asyncio.to_thread(renderer.render, event, name, email, registration_id)
    return CalendarDownload(content=content, filename=calendar_filename(event.name, name))
