"""
QR Code Service

Renders the verification payload of a clearance or permit to a PNG.
Payload formats:
    CLEARANCE:{clearanceNumber}:{livestockTag}:{expiryDate}
    PERMIT:{permitNumber}:{livestockTag}:{validUntil}
"""
import io
import logging
from datetime import date
from uuid import uuid4

import qrcode

from ...config import QR_BOX_SIZE, QR_BORDER

logger = logging.getLogger(__name__)


def clearance_payload(clearance_number: str, livestock_tag: str, expiry_date: date) -> str:
    return f"CLEARANCE:{clearance_number}:{livestock_tag}:{expiry_date.isoformat()}"


def permit_payload(permit_number: str, livestock_tag: str, valid_until: date) -> str:
    return f"PERMIT:{permit_number}:{livestock_tag}:{valid_until.isoformat()}"


class QrCodeService:
    """Generate QR images for document verification."""

    def __init__(self, box_size: int = QR_BOX_SIZE, border: int = QR_BORDER):
        self.box_size = box_size
        self.border = border

    def render_png(self, content: str) -> bytes:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(content)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer)
        logger.debug(f"Rendered QR code for payload {content}")
        return buffer.getvalue()

    @staticmethod
    def object_key(entity_type: str, entity_id: str) -> str:
        """Storage key for a QR image: qr/{entity_type}/{entity_id}/{uuid}.png"""
        return f"qr/{entity_type}/{entity_id}/{uuid4()}.png"
