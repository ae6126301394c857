"""
Advisory invitation check used by the RSVP landing page.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import InvitationError
from app.db.session import get_session_factory
from app.models.event import Event
from app.schemas.event import EventSummary
from app.schemas.invitation import InvitationResponse, InvitationValidationResponse
from app.services import invitation_service

router = APIRouter(prefix="/invitations", tags=["Invitations"])


@router.get("/validate/{token}", response_model=InvitationValidationResponse)
async def validate_invitation(
    token: str,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """
    Always 200: the page renders the form for a valid token and an explanation
    otherwise. Redemption re-checks everything inside its own transaction.
    """
    async with session_factory() as db:
        try:
            invitation = await invitation_service.validate(db, token)
        except InvitationError as e:
            return InvitationValidationResponse(valid=False, code=e.code, message=e.detail)

        event = await db.get(Event, invitation.event_id)
        return InvitationValidationResponse(
            valid=True,
            invitation=InvitationResponse(
                email=invitation.email,
                invite_type=invitation.invite_type,
                expires_at=invitation.expires_at,
                event=EventSummary.model_validate(event),
            ),
        )
