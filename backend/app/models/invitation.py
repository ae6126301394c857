"""
Single-use invitation to register for one event.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, CheckConstraint, func
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.enums import InviteType


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False)
    token = Column(String(64), nullable=False, unique=True, index=True)
    is_used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    invite_type = Column(String(20), nullable=False, default=InviteType.GENERAL.value)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    event = relationship("Event", back_populates="invitations", lazy="raise")
    registrant = relationship("Registrant", back_populates="invitation", uselist=False, lazy="raise")

    __table_args__ = (
        CheckConstraint("invite_type IN ('VIP', 'PARTNER', 'GENERAL')", name="check_invite_type"),
    )

    def __repr__(self) -> str:
        return f"<Invitation(id={self.id}, event={self.event_id}, used={self.is_used})>"
