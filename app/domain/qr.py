"""QR-код со ссылкой на профиль стикера для печати"""
import io
from enum import Enum
from typing import Optional

import segno
from pydantic import BaseModel

from app.domain.exceptions import InvalidQrRequestError

SCREEN_DPI = 96
QUIET_ZONE = 2


class QrFormat(str, Enum):
    PNG = "png"
    SVG = "svg"


class QrImage(BaseModel):
    content: bytes
    media_type: str
    extension: str


MEDIA_TYPES = {
    QrFormat.PNG: "image/png",
    QrFormat.SVG: "image/svg+xml",
}


def print_size(size: int, dpi: int) -> int:
    """Размер в пикселях для печати: size задан в CSS-пикселях (96 dpi)"""
    return round(size / SCREEN_DPI * dpi)


def render_qr(url: Optional[str], fmt: str = "png", size: int = 512, dpi: int = 300) -> QrImage:
    if not url:
        raise InvalidQrRequestError("El parámetro url es obligatorio")
    try:
        qr_format = QrFormat(fmt)
    except ValueError:
        raise InvalidQrRequestError("El formato debe ser png o svg")
    if size <= 0 or dpi <= 0:
        raise InvalidQrRequestError("El tamaño y los dpi deben ser positivos")

    # коррекция ошибок уровня H для печати
    qr = segno.make(url, error="h", micro=False)
    width, _ = qr.symbol_size(scale=1, border=QUIET_ZONE)
    scale = max(1, print_size(size, dpi) // width)

    buffer = io.BytesIO()
    qr.save(
        buffer,
        kind=qr_format.value,
        scale=scale,
        border=QUIET_ZONE,
        dark="#000000",
        light="#ffffff"
    )
    return QrImage(
        content=buffer.getvalue(),
        media_type=MEDIA_TYPES[qr_format],
        extension=qr_format.value
    )
