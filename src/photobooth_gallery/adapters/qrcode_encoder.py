"""QR code rendering for gallery links."""

import io
from dataclasses import dataclass

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from photobooth_gallery.services.reconciler import QrEncoder


@dataclass
class QrcodeEncoder(QrEncoder):
    """Renders URLs as PNG QR codes through Pillow."""

    box_size: int = 10
    border: int = 2

    def encode(self, url: str) -> bytes:
        """Return PNG bytes for a QR code encoding the URL."""
        code = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        code.add_data(url)
        code.make(fit=True)
        image = code.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        image.save(buffer)
        return buffer.getvalue()
