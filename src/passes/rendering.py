import base64
from functools import lru_cache
from io import BytesIO

import qrcode
from django.conf import settings


def render_qr_png(data: str) -> bytes:
    """Render data as a QR code PNG.

    The output only depends on the input, so identical tokens render identical images.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=settings.CREDENTIAL_QR_BOX_SIZE,
        border=settings.CREDENTIAL_QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    return buffered.getvalue()


@lru_cache(maxsize=256)
def render_qr_data_uri(data: str) -> str:
    """Render data as a QR code PNG embedded in a data URI."""
    return "data:image/png;base64," + base64.b64encode(render_qr_png(data)).decode("utf-8")
