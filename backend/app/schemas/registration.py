"""
Pydantic schemas for registration submission, details and cancellation.
"""

import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.enums import AdmissionOutcome, RegistrationStatus
from app.schemas.event import EventSummary


class PersonCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class CompanionCreate(PersonCreate):
    pass


class RegistrationCreate(PersonCreate):
    token: str = Field(..., min_length=1, max_length=64)
    companion: Optional[CompanionCreate] = None

    @property
    def party_size(self) -> int:
        return 2 if self.companion is not None else 1


class RegistrantResponse(BaseModel):
    id: uuid.UUID
    name: str
    company: str
    title: str
    email: str
    status: RegistrationStatus
    registration_id: str
    qr_code: str
    checked_in_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CompanionResponse(BaseModel):
    name: str
    company: str
    title: str
    email: str
    registration_id: str

    model_config = {"from_attributes": True}


class CompanionCredential(CompanionResponse):
    """
    Companion including its check-in credential. Internal only: never returned to
    the primary. The id addresses the companion's QR image download.
    """

    id: uuid.UUID
    qr_code: str


class RegistrationResult(BaseModel):
    """Committed outcome of a submission, as handed to side effects."""

    registrant: RegistrantResponse
    companion: Optional[CompanionCredential] = None
    event: EventSummary
    outcome: Optional[AdmissionOutcome] = None  # None once cancelled

    @property
    def is_waitlisted(self) -> bool:
        return self.outcome == AdmissionOutcome.WAITLISTED


class RegistrationResponse(BaseModel):
    registrant: RegistrantResponse
    companion: Optional[CompanionResponse] = None
    event: EventSummary
    outcome: Optional[AdmissionOutcome] = None
    is_waitlisted: bool

    @classmethod
    def from_result(cls, result: RegistrationResult) -> "RegistrationResponse":
        companion = None
        if result.companion is not None:
            companion = CompanionResponse.model_validate(result.companion.model_dump())
        return cls(
            registrant=result.registrant,
            companion=companion,
            event=result.event,
            outcome=result.outcome,
            is_waitlisted=result.is_waitlisted,
        )


class RegistrationCancelResponse(BaseModel):
    message: str
    registrant_id: uuid.UUID
    status: RegistrationStatus
    seats_released: int
