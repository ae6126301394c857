"""
Identifier issuer.

Registration IDs are shown to people (emails, badges, the sign-in sheet), so they
are short and sort by creation time:

    REG-0M2ZQ8K1C-7F3A
        |         |
        |         +-- 4 random hex chars, separates same-millisecond registrations
        +------------ epoch milliseconds in base36, zero-padded to 9 chars

Check-in tokens are the only credential a QR code carries. They come from the OS
CSPRNG and share nothing with the registration ID or the email address.

Neither generator guarantees uniqueness on its own; the unique constraints on
registrants/companions do, and the coordinator retries on a collision.
"""

import secrets
import uuid
import time
from typing import Optional

from app.core.config import get_settings

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_TIME_WIDTH = 9


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_registration_id(now: Optional[float] = None) -> str:
    settings = get_settings()
    millis = int((time.time() if now is None else now) * 1000)
    stamp = _to_base36(millis).rjust(_TIME_WIDTH, "0")
    return f"{settings.REGISTRATION_ID_PREFIX}-{stamp}-{secrets.token_hex(2).upper()}"


def companion_registration_id(primary_registration_id: str) -> str:
    return f"{primary_registration_id}{get_settings().COMPANION_ID_SUFFIX}"


def new_check_in_token() -> str:
    """Opaque, fixed-length (2 * CHECK_IN_TOKEN_BYTES hex chars) credential."""
    return secrets.token_hex(get_settings().CHECK_IN_TOKEN_BYTES)


def new_invitation_token() -> str:
    return str(uuid.uuid4())
