"""
QR code rendering for check-in credentials.
"""

from io import BytesIO

import qrcode

from app.services.interfaces.notifications import CheckInArtifactRenderer


class QrCodeRenderer(CheckInArtifactRenderer):
    """PNG QR codes with high error correction so crumpled printouts still scan."""

    def __init__(self, box_size: int = 10, border: int = 2):
        self.box_size = box_size
        self.border = border

    def render(self, token: str) -> bytes:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(token)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buffered = BytesIO()
        img.save(buffered, "PNG")
        return buffered.getvalue()
