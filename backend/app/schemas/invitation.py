"""
Pydantic schemas for the advisory invitation check.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.enums import InviteType
from app.schemas.event import EventSummary


class InvitationResponse(BaseModel):
    email: str
    invite_type: InviteType
    expires_at: datetime
    event: EventSummary


class InvitationValidationResponse(BaseModel):
    valid: bool
    invitation: Optional[InvitationResponse] = None
    code: Optional[str] = None
    message: Optional[str] = None
