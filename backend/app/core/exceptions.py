"""
Error taxonomy for the registration core.

RegistrationError subclasses are client-correctable: they carry the HTTP status,
a stable machine-readable code and a human message, and are surfaced verbatim.
CapacityInvariantViolation is deliberately NOT one of them: it means the seat
counter was about to leave 0..capacity, which is a concurrency-control defect.
"""


class RegistrationError(Exception):
    status_code: int = 400
    code: str = "registration_error"
    detail: str = "Registration failed"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


# Invitation ledger
class InvitationError(RegistrationError):
    code = "invitation_error"


class InvitationNotFound(InvitationError):
    status_code = 404
    code = "invitation_not_found"
    detail = "Invalid invite token"


class InvitationAlreadyUsed(InvitationError):
    status_code = 409
    code = "invitation_already_used"
    detail = "Invite token has already been used"


class InvitationExpired(InvitationError):
    status_code = 410
    code = "invitation_expired"
    detail = "Invite token has expired"


# Events and admission
class EventNotFound(RegistrationError):
    status_code = 404
    code = "event_not_found"
    detail = "Event not found"


class RegistrationClosed(RegistrationError):
    status_code = 409
    code = "registration_closed"
    detail = "Registration for this event is closed"


class EventFull(RegistrationError):
    status_code = 409
    code = "event_full"
    detail = "This event is full and is not accepting waitlist registrations"


class RegistrationConflict(RegistrationError):
    status_code = 409
    code = "registration_conflict"
    detail = "Registration failed due to high demand. Please try again."


# Cancellation
class RegistrantNotFound(RegistrationError):
    status_code = 404
    code = "registration_not_found"
    detail = "Registration not found"


class AlreadyCancelled(RegistrationError):
    status_code = 400
    code = "registration_already_cancelled"
    detail = "Registration is already cancelled"


class CompanionNotFound(RegistrationError):
    status_code = 404
    code = "companion_not_found"
    detail = "Companion not found"


# Check-in
class CheckInTokenNotFound(RegistrationError):
    status_code = 404
    code = "check_in_token_not_found"
    detail = "Invalid QR code"


class AlreadyCheckedIn(RegistrationError):
    status_code = 400
    code = "already_checked_in"
    detail = "Already checked in"


class CheckInNotAllowed(RegistrationError):
    status_code = 403
    code = "check_in_not_allowed"
    detail = "Registration is not confirmed"


# Throttling
class RateLimitExceeded(RegistrationError):
    status_code = 429
    code = "rate_limited"
    detail = "Too many registration attempts. Please wait a minute and try again."


class CapacityInvariantViolation(RuntimeError):
    """The capacity counter would leave 0..capacity. Never clamp, never swallow."""

    def __init__(self, event_id: int, delta: int, message: str):
        self.event_id = event_id
        self.delta = delta
        super().__init__(f"event {event_id}: {message} (delta={delta})")
