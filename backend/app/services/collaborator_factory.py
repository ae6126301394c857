"""
Side-effect collaborator factory.
Configures which mailer / sheet sync / renderers the dispatcher uses.
"""

from typing import Optional

from app.infrastructure.calendar_renderer import IcsCalendarRenderer
from app.infrastructure.mailer import LogMailer
from app.infrastructure.qr_renderer import QrCodeRenderer
from app.infrastructure.sheets import build_sheet_sync
from app.services.dispatcher import SideEffectDispatcher


def build_dispatcher() -> SideEffectDispatcher:
    """
    Build the dispatcher from settings.

    Sheet sync goes to SHEETS_WEBHOOK_URL when set, otherwise it is a no-op.
    """
    return SideEffectDispatcher(
        mailer=LogMailer(),
        sheets=build_sheet_sync(),
        qr_renderer=QrCodeRenderer(),
        calendar_renderer=IcsCalendarRenderer(),
    )


# Singleton instance
_dispatcher: Optional[SideEffectDispatcher] = None

def get_dispatcher() -> SideEffectDispatcher:
    """Get dispatcher singleton. Also the FastAPI dependency."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher()
    return _dispatcher
