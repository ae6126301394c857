"""
RSVP endpoints: submit, look up and cancel a registration, and fetch its
check-in image and calendar file.
"""

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import get_session_factory
from app.schemas.registration import RegistrationCancelResponse, RegistrationCreate, RegistrationResponse
from app.services import artifact_service
from app.services.collaborator_factory import get_dispatcher
from app.services.dispatcher import SideEffectDispatcher
from app.services.rate_limit_service import enforce_submission_rate_limit
from app.services.registration_service import cancel_registration, get_registration, submit_registration

router = APIRouter(prefix="/rsvp", tags=["Registrations"])


@router.post(
    "/submit",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_submission_rate_limit)],
)
async def submit(
    registration: RegistrationCreate,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """
    Redeem an invitation token.

    The response is final once returned: CONFIRMED or WAITLISTED is committed
    before any email or spreadsheet work starts, and those never change it.
    """
    result = await submit_registration(session_factory, registration, dispatcher)
    return RegistrationResponse.from_result(result)


@router.get("/{registrant_id}", response_model=RegistrationResponse)
async def details(
    registrant_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """Registration details for the confirmation page."""
    result = await get_registration(session_factory, registrant_id)
    return RegistrationResponse.from_result(result)


@router.delete("/{registrant_id}", response_model=RegistrationCancelResponse)
async def cancel(
    registrant_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """Cancel a registration; confirmed seats go back to the event."""
    result = await cancel_registration(session_factory, registrant_id)
    return RegistrationCancelResponse(
        message="RSVP cancelled successfully",
        registrant_id=result.registrant_id,
        status="CANCELLED",
        seats_released=result.seats_released,
    )


@router.get("/{registrant_id}/qr", response_class=Response)
async def registrant_qr(
    registrant_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Check-in QR code (PNG) for a confirmed registrant."""
    image = await artifact_service.registrant_check_in_image(
        session_factory, registrant_id, dispatcher.qr_renderer
    )
    return Response(content=image, media_type="image/png")


@router.get("/companions/{companion_id}/qr", response_class=Response)
async def companion_qr(
    companion_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Check-in QR code (PNG) for the companion of a confirmed registrant."""
    image = await artifact_service.companion_check_in_image(
        session_factory, companion_id, dispatcher.qr_renderer
    )
    return Response(content=image, media_type="image/png")


@router.get("/{registrant_id}/calendar", response_class=Response)
async def registrant_calendar(
    registrant_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Calendar file (.ics) download."""
    download = await artifact_service.registrant_calendar(
        session_factory, registrant_id, dispatcher.calendar_renderer
    )
    return Response(
        content=download.content,
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{download.filename}"'},
    )
