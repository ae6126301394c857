"""
iCalendar (.ics) files attached to confirmations.
"""

from datetime import datetime, time
from zoneinfo import ZoneInfo

from ics import Calendar
from ics import Event as ICSEvent
from ics.attendee import Organizer

from app.core.config import get_settings
from app.schemas.event import EventSummary
from app.services.interfaces.notifications import CalendarRenderer


def _parse_clock(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


class IcsCalendarRenderer(CalendarRenderer):
    def render(self, event: EventSummary, attendee_name: str, attendee_email: str, registration_id: str) -> bytes:
        settings = get_settings()
        tz = ZoneInfo(settings.EVENT_TIMEZONE)
        day = event.date.date()

        c = Calendar()
        e = ICSEvent()
        e.name = event.name
        e.begin = datetime.combine(day, _parse_clock(event.start_time), tzinfo=tz)
        e.end = datetime.combine(day, _parse_clock(event.end_time), tzinfo=tz)
        e.location = ", ".join([
            event.venue_name,
            event.venue_address,
            f"{event.venue_city}, {event.venue_state} {event.venue_zip_code}",
        ])
        e.description = "\n".join([
            event.description or "",
            "",
            f"Attendee: {attendee_name} <{attendee_email}>",
            f"Registration ID: {registration_id}",
            f"Dress Code: {event.dress_code}",
            "",
            "Please bring your QR code for check-in.",
        ])
        e.organizer = Organizer(
            email=settings.CALENDAR_ORGANIZER_EMAIL,
            common_name=settings.CALENDAR_ORGANIZER_NAME,
        )
        e.uid = f"{registration_id}@{event.id}.rsvp"
        c.events.add(e)

        return c.serialize().encode("utf-8")
