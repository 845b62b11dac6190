"""
Submission intake workflow.

This is the one piece of orchestration in the service: upload the video,
encode the viewing link as a QR code, persist the record, tell the admin.
Steps run strictly in order and nothing is retried. The record is written
only after every derived field exists, so a failure before persistence
leaves nothing behind.

The workflow doesn't know about HTTP, boto3, Snowflake or SMTP. It talks to
its collaborators through the protocols below.
"""

import logging
from typing import Callable, Optional, Protocol

from .models import Submission, SubmissionForm, build_page_url, new_submission_id

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class MediaStore(Protocol):
    """Remote object storage for uploaded videos."""

    async def upload_video(
        self,
        video_data: bytes,
        submission_id: str,
        filename: str,
        content_type: Optional[str] = None,
    ) -> str:
        """Upload video and return its public URL."""
        ...


class LinkEncoder(Protocol):
    """Renders a URL as a QR image and makes the image reachable."""

    async def encode(self, page_url: str, submission_id: str) -> str:
        """Return a path or URL where the QR image can be fetched."""
        ...


class SubmissionStore(Protocol):
    """Persistence for submission records."""

    def create(self, submission: Submission) -> None: ...
    def get(self, submission_id: str) -> Submission: ...
    def list_all(self) -> list[Submission]: ...


class Notifier(Protocol):
    """Administrative notification channel."""

    async def notify_submission(self, submission: Submission) -> None: ...


class SubmissionFailedError(Exception):
    """Raised when a step of the intake workflow fails."""

    def __init__(self, step: str, cause: Exception) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Submission failed at {step}: {cause}")


# ---------------------------------------------------------------------------
# Pipeline Service
# ---------------------------------------------------------------------------

class SubmissionPipeline:
    """
    Orchestrates one submission from raw upload to stored record.

    Stateless beyond its collaborators; each call to `submit` is
    independent.
    """

    def __init__(
        self,
        media_store: MediaStore,
        link_encoder: LinkEncoder,
        repository: SubmissionStore,
        notifier: Notifier,
        frontend_url: str,
        notification_required: bool = False,
        id_generator: Callable[[], str] = new_submission_id,
    ) -> None:
        self._media_store = media_store
        self._link_encoder = link_encoder
        self._repository = repository
        self._notifier = notifier
        self._frontend_url = frontend_url
        self._notification_required = notification_required
        self._id_generator = id_generator

    async def submit(
        self,
        form: SubmissionForm,
        video_data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> Submission:
        """
        Run the full intake workflow.

        Raises SubmissionFailedError naming the step that broke. When the
        failure happens at upload or QR encoding nothing is persisted.
        """
        if not video_data:
            raise ValueError("Video data cannot be empty")

        submission_id = self._id_generator()

        logger.info(
            "Submission started",
            extra={
                "submission_id": submission_id,
                "video_filename": filename,
                "size_bytes": len(video_data),
            }
        )

        try:
            video_url = await self._media_store.upload_video(
                video_data=video_data,
                submission_id=submission_id,
                filename=filename,
                content_type=content_type,
            )
        except Exception as e:
            raise SubmissionFailedError("video upload", e) from e

        page_url = build_page_url(self._frontend_url, submission_id)

        try:
            qr_path = await self._link_encoder.encode(page_url, submission_id)
        except Exception as e:
            raise SubmissionFailedError("qr code", e) from e

        try:
            submission = Submission.from_form(
                submission_id,
                form,
                video_url=video_url,
                qr_path=qr_path,
                page_url=page_url,
            )
        except ValueError as e:
            raise SubmissionFailedError("record", e) from e

        try:
            self._repository.create(submission)
        except Exception as e:
            raise SubmissionFailedError("persist", e) from e

        logger.info(
            "Submission stored",
            extra={
                "submission_id": submission_id,
                "video_url": video_url,
                "qr_path": qr_path,
            }
        )

        await self._notify(submission)

        return submission

    async def _notify(self, submission: Submission) -> None:
        """Send the admin email. Best-effort unless notification is required."""
        try:
            await self._notifier.notify_submission(submission)
        except Exception as e:
            if self._notification_required:
                raise SubmissionFailedError("notify", e) from e
            logger.warning(
                "Admin notification failed, submission kept",
                extra={"submission_id": submission.id, "error": str(e)}
            )
