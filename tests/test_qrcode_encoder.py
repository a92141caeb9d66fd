"""Tests for QR code rendering."""

import io

from PIL import Image

from photobooth_gallery.adapters.qrcode_encoder import QrcodeEncoder


def test_encode_returns_square_png() -> None:
    data = QrcodeEncoder().encode(
        "http://192.168.1.20:3000/gallery/Event1?token=" + "a" * 32
    )

    assert data.startswith(b"\x89PNG")
    with Image.open(io.BytesIO(data)) as image:
        width, height = image.size
        assert width == height
        assert width > 0


def test_encode_scales_with_box_size() -> None:
    url = "http://localhost:3000/gallery/Event1?token=" + "b" * 32

    small = Image.open(io.BytesIO(QrcodeEncoder(box_size=4).encode(url)))
    large = Image.open(io.BytesIO(QrcodeEncoder(box_size=8).encode(url)))

    assert large.size[0] == small.size[0] * 2
