"""
Outbound collaborator interfaces.

The registration core only ever talks to these. Every call is best-effort: the
dispatcher invokes them after commit and absorbs their failures.
"""

from abc import ABC, abstractmethod
from typing import Optional

from app.schemas.event import EventSummary
from app.schemas.registration import CompanionCredential, RegistrantResponse


class Mailer(ABC):
    """Renders and delivers registration notices."""

    @abstractmethod
    async def send_confirmation(
        self,
        event: EventSummary,
        registrant: RegistrantResponse,
        companion: Optional[CompanionCredential],
        check_in_image: Optional[bytes],
        calendar_file: Optional[bytes],
    ) -> None:
        """
        Confirmation to the primary registrant.

        Args:
            check_in_image: PNG of the registrant's QR code, None if rendering failed
            calendar_file: .ics bytes, None if rendering failed
        """
        pass

    @abstractmethod
    async def send_companion_confirmation(
        self,
        event: EventSummary,
        companion: CompanionCredential,
        primary_name: str,
        check_in_image: Optional[bytes],
        calendar_file: Optional[bytes],
    ) -> None:
        pass

    @abstractmethod
    async def send_waitlist_notice(
        self,
        event: EventSummary,
        registrant: RegistrantResponse,
        companion: Optional[CompanionCredential],
    ) -> None:
        pass


class SheetSync(ABC):
    """Mirrors registrations into the organisers' spreadsheet."""

    @abstractmethod
    async def sync_registrant(
        self,
        registrant: RegistrantResponse,
        companion: Optional[CompanionCredential],
        event_name: str,
    ) -> None:
        pass

    @abstractmethod
    async def update_check_in(self, registration_id: str) -> None:
        pass


class CheckInArtifactRenderer(ABC):
    @abstractmethod
    def render(self, token: str) -> bytes:
        """Scannable image (PNG) encoding the check-in token."""
        pass


class CalendarRenderer(ABC):
    @abstractmethod
    def render(self, event: EventSummary, attendee_name: str, attendee_email: str, registration_id: str) -> bytes:
        """Calendar file (.ics) for one attendee."""
        pass
