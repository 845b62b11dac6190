"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be mocked for testing
- Configuration is centralized
- Resource lifecycle (connections, clients) is managed properly

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated, Generator

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..core.submissions.pipeline import LinkEncoder, SubmissionPipeline
from ..infrastructure.mail.client import MailConfig, SubmissionNotifier, create_notifier
from ..infrastructure.qr.encoder import create_link_encoder
from ..infrastructure.snowflake.client import MockSnowflakeConnection, get_snowflake_connection
from ..infrastructure.snowflake.repositories.submissions import (
    SnowflakeConfig,
    SubmissionRepository,
)
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)

# Global mock instances (shared across requests so data survives between them)
_mock_storage_client = None
_mock_snowflake_connection = None
_mock_notifier = None


# ---------------------------------------------------------------------------
# Infrastructure Dependencies
# ---------------------------------------------------------------------------

def get_submission_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[SubmissionRepository, None, None]:
    """
    Provide SubmissionRepository with database connection.

    This is a generator function because we need to manage the
    connection lifecycle: open, yield the repository, close after the
    request.

    In mock mode, we reuse the same connection across requests
    so that submissions persist for the life of the process.
    """
    global _mock_snowflake_connection

    if settings.snowflake_mock_mode:
        if _mock_snowflake_connection is None:
            _mock_snowflake_connection = MockSnowflakeConnection()
            logger.info("Created shared mock Snowflake connection")

        yield SubmissionRepository(_mock_snowflake_connection)
    else:
        config = SnowflakeConfig(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            private_key_base64=settings.snowflake_private_key_base64,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )

        with get_snowflake_connection(config) as conn:
            logger.debug("Created SubmissionRepository with Snowflake connection")
            yield SubmissionRepository(conn)


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide storage client for video and QR uploads.

    Returns either R2 client or mock client based on settings.
    """
    global _mock_storage_client

    config = StorageConfig(
        access_key_id=settings.r2_access_key_id,
        secret_access_key=settings.r2_secret_access_key,
        bucket_name=settings.r2_bucket_name,
        endpoint_url=settings.r2_endpoint,
        public_base_url=settings.r2_public_base_url,
        video_folder=settings.r2_video_folder,
        qr_folder=settings.r2_qr_folder,
    )

    if settings.r2_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(config=config, mock_mode=True)
            logger.info("Created shared mock storage client")
        return _mock_storage_client

    return create_storage_client(config=config)


def get_link_encoder(
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> LinkEncoder:
    """Provide the QR encoder for the configured QR storage mode."""
    return create_link_encoder(
        settings.qr_storage,
        storage=storage,
        upload_dir=settings.upload_dir,
        url_prefix=settings.static_url_prefix,
    )


def get_notifier(
    settings: Annotated[Settings, Depends(get_settings)],
) -> SubmissionNotifier:
    """Provide the admin notifier (SMTP or in-memory)."""
    global _mock_notifier

    if settings.mail_mock_mode:
        if _mock_notifier is None:
            _mock_notifier = create_notifier(mock_mode=True)
        return _mock_notifier

    config = MailConfig(
        host=settings.mail_host,
        port=settings.mail_port,
        sender=settings.mail_sender,
        recipient=settings.admin_email,
        user=settings.mail_user,
        password=settings.mail_password,
        secure=settings.mail_secure,
        reject_unauthorized=settings.mail_reject_unauthorized,
        timeout_seconds=settings.mail_timeout_seconds,
    )
    return create_notifier(config=config)


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_submission_pipeline(
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    link_encoder: Annotated[LinkEncoder, Depends(get_link_encoder)],
    repository: Annotated[SubmissionRepository, Depends(get_submission_repository)],
    notifier: Annotated[SubmissionNotifier, Depends(get_notifier)],
) -> SubmissionPipeline:
    """
    Provide the intake workflow wired to this request's collaborators.

    The pipeline is stateless, so we create a new instance per request.
    """
    return SubmissionPipeline(
        media_store=storage,
        link_encoder=link_encoder,
        repository=repository,
        notifier=notifier,
        frontend_url=settings.frontend_url,
        notification_required=settings.notification_required,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SubmissionPipelineDep = Annotated[SubmissionPipeline, Depends(get_submission_pipeline)]
SubmissionRepositoryDep = Annotated[SubmissionRepository, Depends(get_submission_repository)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
