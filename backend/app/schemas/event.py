"""
Pydantic schema for the event snapshot attached to registrations and invitations.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class EventSummary(BaseModel):
    id: int
    name: str
    description: Optional[str]
    date: datetime
    start_time: str
    end_time: str
    venue_name: str
    venue_address: str
    venue_city: str
    venue_state: str
    venue_zip_code: str
    dress_code: str
    capacity: int
    current_registrations: int
    waitlist_enabled: bool
    registration_open: bool

    model_config = {"from_attributes": True}
