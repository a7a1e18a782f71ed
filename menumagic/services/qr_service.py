import base64
import io

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_M

from menumagic.core.config import settings
from menumagic.core.errors import ValidationFailed

PNG_DATA_URI_PREFIX = "data:image/png;base64,"


def render_qr_png(url: str, *, size_px: int | None = None, margin: int | None = None) -> bytes:
    """Black-on-white PNG of ``url``, scaled to exactly ``size_px`` square."""
    if not url or not url.strip():
        raise ValidationFailed("URL is required")
    size_px = size_px or settings.qr_size_px
    margin = settings.qr_margin if margin is None else margin

    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=margin)
    qr.add_data(url.strip())
    qr.make(fit=True)

    modules = qr.modules_count + 2 * margin
    qr.box_size = max(1, size_px // modules)
    image = qr.make_image(fill_color="black", back_color="white").get_image()
    if image.size != (size_px, size_px):
        image = image.resize((size_px, size_px), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def qr_data_uri(url: str) -> str:
    encoded = base64.b64encode(render_qr_png(url)).decode("ascii")
    return f"{PNG_DATA_URI_PREFIX}{encoded}"
