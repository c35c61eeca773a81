"""QR code rendering for the leader's check-in display."""
import io

import qrcode
from qrcode.image.svg import SvgImage


def generate_qr_code(data: str) -> io.BytesIO:
    """Generate a QR code as an SVG document.

    Args:
        data: The data to encode in the QR code (the session's QR token)

    Returns:
        io.BytesIO: A BytesIO object containing the QR code image in SVG format
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(image_factory=SvgImage)
    buffer = io.BytesIO()
    img.save(buffer)
    buffer.seek(0)
    return buffer
