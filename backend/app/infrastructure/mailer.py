"""
Default mailer.

LogMailer renders each notice into a structured log record (recipient, subject,
attachments) instead of delivering it. Deployments plug a delivery provider in
by implementing Mailer and registering it in collaborator_factory.
"""

from typing import Optional

from app.core.config import get_settings
from app.core.logging import get_logger
from app.schemas.event import EventSummary
from app.schemas.registration import CompanionCredential, RegistrantResponse
from app.services.interfaces.notifications import Mailer

logger = get_logger(__name__)


def _attachments(check_in_image: Optional[bytes], calendar_file: Optional[bytes]) -> list[str]:
    names = []
    if check_in_image is not None:
        names.append("qr-code.png")
    if calendar_file is not None:
        names.append("event.ics")
    return names


class LogMailer(Mailer):
    def __init__(self):
        self.sender = get_settings().MAIL_FROM

    def _emit(self, kind: str, to: str, subject: str, attachments: list[str]) -> None:
        logger.info(
            "email_sent",
            kind=kind,
            sender=self.sender,
            to=to,
            subject=subject,
            attachments=attachments,
        )

    async def send_confirmation(
        self,
        event: EventSummary,
        registrant: RegistrantResponse,
        companion: Optional[CompanionCredential],
        check_in_image: Optional[bytes],
        calendar_file: Optional[bytes],
    ) -> None:
        subject = f"You're confirmed: {event.name}"
        if companion is not None:
            subject += f" (with {companion.name})"
        self._emit("confirmation", registrant.email, subject, _attachments(check_in_image, calendar_file))

    async def send_companion_confirmation(
        self,
        event: EventSummary,
        companion: CompanionCredential,
        primary_name: str,
        check_in_image: Optional[bytes],
        calendar_file: Optional[bytes],
    ) -> None:
        subject = f"{primary_name} registered you for {event.name}"
        self._emit("companion_confirmation", companion.email, subject, _attachments(check_in_image, calendar_file))

    async def send_waitlist_notice(
        self,
        event: EventSummary,
        registrant: RegistrantResponse,
        companion: Optional[CompanionCredential],
    ) -> None:
        self._emit("waitlist", registrant.email, f"You're on the waitlist for {event.name}", [])
