"""
Infrastructure layer: Redis plus the default side-effect collaborators
(QR images, calendar files, mail, spreadsheet webhook).
"""

from .redis_client import get_redis, close_redis, get_redis_status
from .calendar_renderer import IcsCalendarRenderer
from .mailer import LogMailer
from .qr_renderer import QrCodeRenderer
from .sheets import NullSheetSync, WebhookSheetSync, build_sheet_sync

__all__ = [
    'get_redis', 'close_redis', 'get_redis_status',
    'IcsCalendarRenderer', 'LogMailer', 'QrCodeRenderer',
    'NullSheetSync', 'WebhookSheetSync', 'build_sheet_sync',
]
