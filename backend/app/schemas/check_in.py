"""
Pydantic schemas for QR check-in.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel

from app.models.enums import RegistrationStatus


class CheckInResponse(BaseModel):
    kind: Literal["registrant", "companion"]
    id: uuid.UUID
    name: str
    company: str
    email: str
    registration_id: str
    status: RegistrationStatus  # of the primary registrant
    event_id: int
    event_name: str
    checked_in_at: Optional[datetime]
    already_checked_in: bool
    primary_name: Optional[str] = None
