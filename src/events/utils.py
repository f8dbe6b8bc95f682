import base64
from io import BytesIO

import qrcode


def qr_code_png(data: str) -> bytes:
    """Render ``data`` as a PNG QR code with high error correction, so scuffed prints still scan."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=1,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    return buffered.getvalue()


def qr_code_data_url(data: str) -> str:
    """The QR code for ``data`` as a ``data:image/png;base64`` URL, ready for an ``<img>`` tag."""
    return "data:image/png;base64," + base64.b64encode(qr_code_png(data)).decode("utf-8")
