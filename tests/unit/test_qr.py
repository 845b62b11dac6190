"""
Unit tests for QR code rendering and storage.
"""

import io

import pytest
from PIL import Image

from src.infrastructure.qr.encoder import (
    LocalQRCodeEncoder,
    QRCodeError,
    RemoteQRCodeEncoder,
    create_link_encoder,
    render_qr_png,
)
from src.infrastructure.storage.client import MockStorageClient

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestRenderQrPng:
    def test_renders_png_bytes(self):
        image = render_qr_png("https://app.example.com/user/123")

        assert image.startswith(PNG_SIGNATURE)

    def test_longer_urls_produce_larger_images(self):
        """More data means more modules at the same box size."""
        short = Image.open(io.BytesIO(render_qr_png("https://a.io/user/1")))
        long = Image.open(io.BytesIO(render_qr_png("https://app.example.com/user/" + "9" * 200)))

        assert long.size[0] > short.size[0]

    def test_empty_data_is_rejected(self):
        with pytest.raises(QRCodeError, match="empty"):
            render_qr_png("")


class TestLocalQRCodeEncoder:
    @pytest.mark.asyncio
    async def test_writes_file_and_returns_static_path(self, tmp_path):
        encoder = LocalQRCodeEncoder(upload_dir=str(tmp_path), url_prefix="/uploads")

        path = await encoder.encode("https://app.example.com/user/123", "123")

        assert path == "/uploads/qrcodes/123.png"
        written = tmp_path / "qrcodes" / "123.png"
        assert written.read_bytes().startswith(PNG_SIGNATURE)

    @pytest.mark.asyncio
    async def test_unwritable_directory_raises(self, tmp_path):
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory")
        encoder = LocalQRCodeEncoder(upload_dir=str(blocker))

        with pytest.raises(QRCodeError, match="write failed"):
            await encoder.encode("https://app.example.com/user/123", "123")


class TestRemoteQRCodeEncoder:
    @pytest.mark.asyncio
    async def test_uploads_through_storage(self):
        storage = MockStorageClient()
        encoder = RemoteQRCodeEncoder(storage)

        url = await encoder.encode("https://app.example.com/user/123", "123")

        assert url == "mock://storage/qrcodes/123.png"
        assert storage.get_object("qrcodes/123.png").startswith(PNG_SIGNATURE)


class TestFactory:
    def test_local_mode(self, tmp_path):
        assert isinstance(create_link_encoder("local", upload_dir=str(tmp_path)), LocalQRCodeEncoder)

    def test_remote_mode_needs_storage(self):
        with pytest.raises(ValueError, match="storage is required"):
            create_link_encoder("remote")

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown"):
            create_link_encoder("ftp")
