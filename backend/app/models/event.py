"""
Event model owning the seat counter.

Key design decisions:
- `current_registrations` counts CONFIRMED seats (a registrant with a companion holds 2).
  Only the capacity ledger writes it, always through a conditional UPDATE.
- CHECK constraints restate 0 <= current_registrations <= capacity so a defect in
  the ledger fails the transaction instead of committing an overbooked event.
- `version` is bumped on every counter mutation, which makes concurrent writers
  visible in audits and keeps the optimistic-locking column available.
"""

from sqlalchemy import Boolean, Column, Integer, String, DateTime, CheckConstraint, Index
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)
    venue_name = Column(String(255), nullable=False)
    venue_address = Column(String(255), nullable=False)
    venue_city = Column(String(100), nullable=False)
    venue_state = Column(String(100), nullable=False)
    venue_zip_code = Column(String(20), nullable=False)
    dress_code = Column(String(255), nullable=False, default="")

    capacity = Column(Integer, nullable=False)
    current_registrations = Column(Integer, nullable=False, default=0)
    waitlist_enabled = Column(Boolean, nullable=False, default=True)
    registration_open = Column(Boolean, nullable=False, default=True)

    version = Column(Integer, nullable=False, default=1)

    invitations = relationship("Invitation", back_populates="event", lazy="raise")
    registrants = relationship("Registrant", back_populates="event", lazy="raise")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_capacity_positive"),
        CheckConstraint("current_registrations >= 0", name="check_registrations_non_negative"),
        CheckConstraint("current_registrations <= capacity", name="check_registrations_lte_capacity"),
        Index("ix_events_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, registered={self.current_registrations}/{self.capacity})>"
