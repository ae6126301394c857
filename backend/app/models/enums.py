"""
Enumerations shared by models, services and schemas.
Stored as plain strings guarded by CHECK constraints.
"""

import enum


class RegistrationStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    CANCELLED = "CANCELLED"


class AdmissionOutcome(str, enum.Enum):
    """Result of a capacity decision. A subset of RegistrationStatus by value."""

    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"

    @property
    def status(self) -> RegistrationStatus:
        return RegistrationStatus(self.value)


class InviteType(str, enum.Enum):
    VIP = "VIP"
    PARTNER = "PARTNER"
    GENERAL = "GENERAL"
