"""
Door check-in by QR code.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import get_session_factory
from app.schemas.check_in import CheckInResponse
from app.services import check_in_service
from app.services.collaborator_factory import get_dispatcher
from app.services.dispatcher import SideEffectDispatcher

router = APIRouter(prefix="/check-in", tags=["Check-in"])


@router.get("/{token}", response_model=CheckInResponse)
async def lookup(
    token: str,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """Scan preview: who the code belongs to and whether they are already in."""
    return await check_in_service.lookup(session_factory, token)


@router.post("/{token}", response_model=CheckInResponse)
async def check_in(
    token: str,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    return await check_in_service.check_in(session_factory, token, dispatcher)
