"""
Object storage client for submission videos and QR images.

Supports Cloudflare R2 (S3-compatible) with mock mode for local development.
Objects are written to the bucket and served from its public URL (custom
domain or r2.dev), so the URL we hand back is durable, not presigned.

Keys are derived from the submission id and overwritten on conflict, so
re-uploading under the same id replaces the object.

Mock mode stores objects in memory, enabling API testing without
provisioning actual object storage.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


CONTENT_TYPES = {
    'mp4': 'video/mp4',
    'mov': 'video/quicktime',
    'avi': 'video/x-msvideo',
    'webm': 'video/webm',
    'mkv': 'video/x-matroska',
}


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """Configuration for R2/S3-compatible storage."""
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str
    public_base_url: str
    video_folder: str = "video_templates"
    qr_folder: str = "qrcodes"
    region: str = "auto"  # R2 uses 'auto' for region


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    async def upload_video(
        self,
        video_data: bytes,
        submission_id: str,
        filename: str,
        content_type: Optional[str] = None,
    ) -> str:
        """Upload video file and return its public URL."""
        ...

    async def upload_qr_code(
        self,
        image_data: bytes,
        submission_id: str,
    ) -> str:
        """Upload QR PNG and return its public URL."""
        ...


def video_extension(filename: str) -> str:
    """Extension from the uploaded filename, default mp4."""
    if '.' not in filename:
        return 'mp4'
    ext = filename.rsplit('.', 1)[-1].lower()
    return ext or 'mp4'


def build_video_key(folder: str, submission_id: str, filename: str) -> str:
    """Key for a submission's video: {folder}/user_{id}.{ext}"""
    return f"{folder}/user_{submission_id}.{video_extension(filename)}"


def build_qr_key(folder: str, submission_id: str) -> str:
    """Key for a submission's QR image: {folder}/{id}.png"""
    return f"{folder}/{submission_id}.png"


def guess_video_content_type(filename: str, content_type: Optional[str] = None) -> str:
    """Prefer the uploader's content type, fall back to the extension."""
    if content_type and content_type.startswith('video/'):
        return content_type
    return CONTENT_TYPES.get(video_extension(filename), 'video/mp4')


class R2StorageClient:
    """
    Cloudflare R2 object storage client.

    Uses boto3 because R2 is S3-compatible. This abstraction means
    we could swap to actual S3, MinIO, or other S3-compatible storage
    with minimal changes.

    All methods are async to match the Protocol even though boto3 is
    synchronous.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize R2 client with boto3.

        We import boto3 here (not at module level) because mock mode
        doesn't need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for R2 storage. Install with: pip install boto3"
            )

        self._config = config

        # R2 requires v4 signatures and has specific endpoint patterns
        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized R2 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    async def upload_video(
        self,
        video_data: bytes,
        submission_id: str,
        filename: str,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload a submission video to R2 storage.

        Path structure: {video_folder}/user_{submission_id}.{ext}
        """
        storage_path = build_video_key(self._config.video_folder, submission_id, filename)

        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=storage_path,
                Body=video_data,
                ContentType=guess_video_content_type(filename, content_type),
                Metadata={
                    'submission-id': submission_id,
                    'original-filename': filename,
                }
            )
        except Exception as e:
            logger.error(
                "Failed to upload video",
                extra={"submission_id": submission_id, "error": str(e)}
            )
            raise StorageError(f"Video upload failed: {e}")

        logger.info(
            "Uploaded video",
            extra={
                "submission_id": submission_id,
                "size_bytes": len(video_data),
                "storage_path": storage_path,
            }
        )

        return self.public_url(storage_path)

    async def upload_qr_code(self, image_data: bytes, submission_id: str) -> str:
        """Upload a QR image. Path structure: {qr_folder}/{submission_id}.png"""
        storage_path = build_qr_key(self._config.qr_folder, submission_id)

        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=storage_path,
                Body=image_data,
                ContentType='image/png',
                Metadata={'submission-id': submission_id},
            )
        except Exception as e:
            logger.error(
                "Failed to upload QR code",
                extra={"submission_id": submission_id, "error": str(e)}
            )
            raise StorageError(f"QR code upload failed: {e}")

        logger.debug(
            "Uploaded QR code",
            extra={"submission_id": submission_id, "storage_path": storage_path}
        )

        return self.public_url(storage_path)

    def public_url(self, storage_path: str) -> str:
        """Public URL for an object key."""
        return f"{self._config.public_base_url.rstrip('/')}/{storage_path}"


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects are stored in a dictionary and "URLs" are mock URIs.
    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, video_folder: str = "video_templates", qr_folder: str = "qrcodes") -> None:
        # {storage_path: bytes}
        self._objects: dict[str, bytes] = {}
        self._video_folder = video_folder
        self._qr_folder = qr_folder
        logger.info("Initialized mock storage client (in-memory)")

    async def upload_video(
        self,
        video_data: bytes,
        submission_id: str,
        filename: str,
        content_type: Optional[str] = None,
    ) -> str:
        """Store video in memory."""
        storage_path = build_video_key(self._video_folder, submission_id, filename)
        self._objects[storage_path] = video_data

        logger.debug(
            "Stored video in mock storage",
            extra={
                "submission_id": submission_id,
                "size_bytes": len(video_data),
                "storage_path": storage_path,
            }
        )

        return f"mock://storage/{storage_path}"

    async def upload_qr_code(self, image_data: bytes, submission_id: str) -> str:
        """Store QR image in memory."""
        storage_path = build_qr_key(self._qr_folder, submission_id)
        self._objects[storage_path] = image_data
        return f"mock://storage/{storage_path}"

    def get_object(self, storage_path: str) -> bytes:
        """Retrieve a stored object (for local inspection and tests)."""
        if storage_path not in self._objects:
            raise StorageError(f"Object not found: {storage_path}")
        return self._objects[storage_path]


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (R2 or Mock)
    """
    if mock_mode:
        if config is None:
            return MockStorageClient()
        return MockStorageClient(video_folder=config.video_folder, qr_folder=config.qr_folder)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return R2StorageClient(config)
