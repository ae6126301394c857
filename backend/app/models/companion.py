"""
Companion (plus-one): owned by exactly one registrant, shares its admission outcome,
but has its own registration ID and check-in credential.
"""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import relationship

from app.db.base import Base


class Companion(Base):
    __tablename__ = "companions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    registration_id = Column(String(40), nullable=False, unique=True)
    qr_code = Column(String(128), nullable=False, unique=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    registrant_id = Column(
        Uuid, ForeignKey("registrants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    registrant = relationship("Registrant", back_populates="companion", lazy="raise")

    def __repr__(self) -> str:
        return f"<Companion(id={self.id}, registration_id={self.registration_id})>"
