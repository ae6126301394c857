from app.schemas.event import EventSummary
from app.schemas.invitation import InvitationResponse, InvitationValidationResponse
from app.schemas.registration import (
    CompanionCreate, CompanionCredential, CompanionResponse, RegistrantResponse,
    RegistrationCancelResponse, RegistrationCreate, RegistrationResponse, RegistrationResult,
)
from app.schemas.check_in import CheckInResponse

__all__ = [
    "EventSummary",
    "InvitationResponse", "InvitationValidationResponse",
    "CompanionCreate", "CompanionCredential", "CompanionResponse", "RegistrantResponse",
    "RegistrationCancelResponse", "RegistrationCreate", "RegistrationResponse", "RegistrationResult",
    "CheckInResponse",
]
