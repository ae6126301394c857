"""
Invitation ledger: issue, validate and consume single-use invitation tokens.

Validation order is fixed (exists -> unused -> not expired) so a token that is
both used and expired always reports AlreadyUsed.

consume() is a conditional UPDATE (`... WHERE is_used = false`). If it matches no
row the invitation was already consumed, which the coordinator must have
prevented, so it raises rather than succeeding silently.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import EventNotFound, InvitationAlreadyUsed, InvitationExpired, InvitationNotFound
from app.core.logging import get_logger
from app.core.metrics import record_invitation_rejection
from app.models.enums import InviteType
from app.models.event import Event
from app.models.invitation import Invitation
from app.services.identifiers import new_invitation_token

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def issue_invitation(
    db: AsyncSession,
    event_id: int,
    email: str,
    invite_type: InviteType = InviteType.GENERAL,
) -> Invitation:
    """Create one invitation expiring INVITATION_TTL_DAYS from now."""
    if await db.get(Event, event_id) is None:
        raise EventNotFound(f"Event {event_id} not found")

    invitation = Invitation(
        email=email,
        token=new_invitation_token(),
        is_used=False,
        expires_at=utcnow() + timedelta(days=get_settings().INVITATION_TTL_DAYS),
        invite_type=invite_type.value,
        event_id=event_id,
    )
    db.add(invitation)
    await db.flush()

    logger.info("invitation_issued", invitation_id=invitation.id, event_id=event_id, invite_type=invite_type.value)
    return invitation


async def find_by_token(db: AsyncSession, token: str, for_update: bool = False) -> Optional[Invitation]:
    query = select(Invitation).where(Invitation.token == token)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def validate(
    db: AsyncSession,
    token: str,
    for_update: bool = False,
    now: Optional[datetime] = None,
) -> Invitation:
    """
    Return the invitation if it can be redeemed right now.

    With for_update=True the row is locked (SELECT ... FOR UPDATE) until the
    surrounding transaction ends, so a concurrent redemption of the same token
    waits and then observes is_used=True.
    """
    invitation = await find_by_token(db, token, for_update=for_update)

    if invitation is None:
        record_invitation_rejection("not_found")
        logger.info("invitation_rejected", reason="not_found")
        raise InvitationNotFound()

    if invitation.is_used:
        record_invitation_rejection("already_used")
        logger.info("invitation_rejected", reason="already_used", invitation_id=invitation.id)
        raise InvitationAlreadyUsed()

    if (now or utcnow()) > as_utc(invitation.expires_at):
        record_invitation_rejection("expired")
        logger.info("invitation_rejected", reason="expired", invitation_id=invitation.id)
        raise InvitationExpired()

    return invitation


async def consume(db: AsyncSession, invitation_id: int, now: Optional[datetime] = None) -> None:
    """Flip is_used false -> true. Raises InvitationAlreadyUsed if it was already true."""
    result = await db.execute(
        update(Invitation)
        .where(Invitation.id == invitation_id, Invitation.is_used.is_(False))
        .values(is_used=True, used_at=now or utcnow())
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        logger.warning("invitation_double_consume", invitation_id=invitation_id)
        raise InvitationAlreadyUsed()

    logger.debug("invitation_consumed", invitation_id=invitation_id)
