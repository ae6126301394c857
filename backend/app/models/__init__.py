from app.models.event import Event
from app.models.invitation import Invitation
from app.models.registrant import Registrant
from app.models.companion import Companion
from app.models.enums import AdmissionOutcome, InviteType, RegistrationStatus

__all__ = [
    "Event", "Invitation", "Registrant", "Companion",
    "AdmissionOutcome", "InviteType", "RegistrationStatus",
]
