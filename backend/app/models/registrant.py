"""
Registrant: the primary attendee admitted through one invitation.

Key design decisions:
- `invitation_id` is unique, so one invitation can never yield two registrants
  even if the ledger's conditional consume were bypassed.
- `registration_id` and `qr_code` carry store-level uniqueness; the identifier
  issuer only makes collisions improbable.
- Status is a string guarded by a CHECK constraint. The only legal mutations after
  creation are X -> CANCELLED and stamping `checked_in_at`.
"""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Uuid, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Registrant(Base, TimestampMixin):
    __tablename__ = "registrants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    registration_id = Column(String(40), nullable=False, unique=True)
    qr_code = Column(String(128), nullable=False, unique=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)

    invitation_id = Column(Integer, ForeignKey("invitations.id"), nullable=False, unique=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)

    invitation = relationship("Invitation", back_populates="registrant", lazy="raise")
    event = relationship("Event", back_populates="registrants", lazy="raise")
    companion = relationship(
        "Companion",
        back_populates="registrant",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('CONFIRMED', 'WAITLISTED', 'CANCELLED')",
            name="check_registrant_status",
        ),
    )

    @property
    def party_size(self) -> int:
        return 2 if self.companion is not None else 1

    def __repr__(self) -> str:
        return f"<Registrant(id={self.id}, registration_id={self.registration_id}, status={self.status})>"
