"""
QR code rendering for submission viewing links.
"""

from .encoder import (
    LocalQRCodeEncoder,
    QRCodeError,
    RemoteQRCodeEncoder,
    create_link_encoder,
    render_qr_png,
)

__all__ = [
    "LocalQRCodeEncoder",
    "QRCodeError",
    "RemoteQRCodeEncoder",
    "create_link_encoder",
    "render_qr_png",
]
