import base64
import io
from dataclasses import dataclass

import qrcode
from PIL import Image


@dataclass(frozen=True)
class QRStyle:
    size: int
    border: int
    fill_color: str
    back_color: str = "#ffffff"


STANDARD = QRStyle(size=300, border=2, fill_color="#1e40af")
PRINTABLE = QRStyle(size=600, border=4, fill_color="#000000")


def render_qr_png(data: str, printable: bool = False) -> bytes:
    """Render payload text as a square PNG with error correction level H"""
    style = PRINTABLE if printable else STANDARD

    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=style.border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color=style.fill_color, back_color=style.back_color).get_image()
    img = img.convert("RGB").resize((style.size, style.size), Image.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_url(data: str, printable: bool = False) -> str:
    encoded = base64.b64encode(render_qr_png(data, printable=printable)).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def qr_filename(batch_number: str, printable: bool = False) -> str:
    return f"QR_{batch_number}_{'printable' if printable else 'standard'}.png"
