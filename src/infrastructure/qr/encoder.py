"""
QR code rendering and storage.

A submission's viewing page URL is rendered as a PNG QR code, then made
reachable in one of two ways:
- local: written under the upload directory and served as a static file
- remote: uploaded to object storage next to the video

Only one mode is active per deployment (QR_STORAGE setting).
"""

import io
import logging
from pathlib import Path
from typing import Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from ..storage.client import StorageClient

logger = logging.getLogger(__name__)

QR_SUBDIR = "qrcodes"


class QRCodeError(Exception):
    """Raised when a QR code can't be rendered or stored."""
    pass


def render_qr_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    """Encode `data` as a black-on-white PNG QR image."""
    if not data:
        raise QRCodeError("Cannot encode empty data")

    try:
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(data)
        qr.make(fit=True)
        image = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        image.save(buffer)
        return buffer.getvalue()
    except Exception as e:
        raise QRCodeError(f"QR rendering failed: {e}")


class LocalQRCodeEncoder:
    """
    Writes QR images to {upload_dir}/qrcodes/{id}.png.

    Returns the path relative to the site root, e.g.
    /uploads/qrcodes/1718000000000-3f9a1c.png, which the app serves statically.
    """

    def __init__(self, upload_dir: str, url_prefix: str = "/uploads") -> None:
        self._directory = Path(upload_dir) / QR_SUBDIR
        self._url_prefix = "/" + url_prefix.strip("/")

    async def encode(self, page_url: str, submission_id: str) -> str:
        image_data = render_qr_png(page_url)
        file_path = self._directory / f"{submission_id}.png"

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(image_data)
        except OSError as e:
            logger.error(
                "Failed to write QR code",
                extra={"submission_id": submission_id, "path": str(file_path), "error": str(e)}
            )
            raise QRCodeError(f"QR code write failed: {e}")

        logger.debug(
            "Wrote QR code",
            extra={"submission_id": submission_id, "path": str(file_path)}
        )

        return f"{self._url_prefix}/{QR_SUBDIR}/{submission_id}.png"


class RemoteQRCodeEncoder:
    """Uploads QR images through the object storage client."""

    def __init__(self, storage: StorageClient) -> None:
        self._storage = storage

    async def encode(self, page_url: str, submission_id: str) -> str:
        image_data = render_qr_png(page_url)
        return await self._storage.upload_qr_code(image_data, submission_id)


def create_link_encoder(
    mode: str,
    storage: Optional[StorageClient] = None,
    upload_dir: str = "uploads",
    url_prefix: str = "/uploads",
):
    """
    Create the QR encoder for the configured mode.

    Args:
        mode: "remote" or "local"
        storage: Storage client (required for remote mode)
        upload_dir: Directory for local mode
        url_prefix: Static URL prefix for local mode
    """
    if mode == "local":
        return LocalQRCodeEncoder(upload_dir=upload_dir, url_prefix=url_prefix)

    if mode == "remote":
        if storage is None:
            raise ValueError("storage is required for remote QR codes")
        return RemoteQRCodeEncoder(storage)

    raise ValueError(f"Unknown QR storage mode: {mode}")
