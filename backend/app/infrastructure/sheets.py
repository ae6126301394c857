"""
Spreadsheet sync for organisers.

WebhookSheetSync posts one JSON row per registration (and a check-in update per
scan) to a webhook that appends/updates the organisers' sheet. Errors raise;
the dispatcher decides what a failure means.
"""

from typing import Optional

import httpx

from app.core.config import get_settings
from app.core.logging import get_logger
from app.schemas.registration import CompanionCredential, RegistrantResponse
from app.services.interfaces.notifications import SheetSync

logger = get_logger(__name__)


class WebhookSheetSync(SheetSync):
    def __init__(self, url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def _post(self, payload: dict) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()

    async def sync_registrant(
        self,
        registrant: RegistrantResponse,
        companion: Optional[CompanionCredential],
        event_name: str,
    ) -> None:
        rows = [{
            "registration_id": registrant.registration_id,
            "name": registrant.name,
            "company": registrant.company,
            "title": registrant.title,
            "email": registrant.email,
            "status": registrant.status.value,
            "companion_of": None,
            "checked_in": "No",
        }]
        if companion is not None:
            rows.append({
                "registration_id": companion.registration_id,
                "name": companion.name,
                "company": companion.company,
                "title": companion.title,
                "email": companion.email,
                "status": registrant.status.value,
                "companion_of": registrant.registration_id,
                "checked_in": "No",
            })
        await self._post({"action": "append", "event_name": event_name, "rows": rows})
        logger.debug("sheet_rows_appended", rows=len(rows), registration_id=registrant.registration_id)

    async def update_check_in(self, registration_id: str) -> None:
        await self._post({"action": "check_in", "registration_id": registration_id, "checked_in": "Yes"})


class NullSheetSync(SheetSync):
    """Used when no SHEETS_WEBHOOK_URL is configured."""

    async def sync_registrant(self, registrant, companion, event_name) -> None:
        logger.debug("sheet_sync_disabled", registration_id=registrant.registration_id)

    async def update_check_in(self, registration_id: str) -> None:
        logger.debug("sheet_sync_disabled", registration_id=registration_id)


def build_sheet_sync() -> SheetSync:
    settings = get_settings()
    if settings.SHEETS_WEBHOOK_URL:
        return WebhookSheetSync(settings.SHEETS_WEBHOOK_URL, timeout=settings.SHEETS_TIMEOUT_SECONDS)
    return NullSheetSync()
