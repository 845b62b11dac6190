"""
Unit tests for the submission intake workflow.

Collaborators are small in-memory fakes so each test can control exactly
which step succeeds or fails.
"""

from typing import Optional

import pytest

from src.core.submissions.models import Submission, SubmissionForm, SubmissionIdGenerator
from src.core.submissions.pipeline import SubmissionFailedError, SubmissionPipeline
from src.infrastructure.qr.encoder import RemoteQRCodeEncoder
from src.infrastructure.snowflake.client import MockSnowflakeConnection
from src.infrastructure.snowflake.repositories.submissions import SubmissionRepository
from src.infrastructure.storage.client import MockStorageClient


FRONTEND = "https://app.example.com"


class FakeMediaStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: list[tuple[str, str, Optional[str]]] = []

    async def upload_video(self, video_data, submission_id, filename, content_type=None):
        if self.fail:
            raise RuntimeError("bucket unavailable")
        self.uploads.append((submission_id, filename, content_type))
        return f"https://cdn.example.com/video_templates/user_{submission_id}.mp4"


class FakeLinkEncoder:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.encoded: list[str] = []

    async def encode(self, page_url, submission_id):
        if self.fail:
            raise RuntimeError("encoder broke")
        self.encoded.append(page_url)
        return f"/uploads/qrcodes/{submission_id}.png"


class FakeRepository:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.records: dict[str, Submission] = {}

    def create(self, submission):
        if self.fail:
            raise RuntimeError("database down")
        self.records[submission.id] = submission

    def get(self, submission_id):
        return self.records[submission_id]

    def list_all(self):
        return list(self.records.values())


class FakeNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.notified: list[Submission] = []

    async def notify_submission(self, submission):
        if self.fail:
            raise RuntimeError("relay refused")
        self.notified.append(submission)


@pytest.fixture
def form() -> SubmissionForm:
    return SubmissionForm(
        name="Ana",
        email="a@x.com",
        company="Acme",
        location="NY",
        template="t1",
    )


def make_pipeline(
    media_store=None,
    link_encoder=None,
    repository=None,
    notifier=None,
    notification_required=False,
) -> SubmissionPipeline:
    return SubmissionPipeline(
        media_store=media_store or FakeMediaStore(),
        link_encoder=link_encoder or FakeLinkEncoder(),
        repository=repository if repository is not None else FakeRepository(),
        notifier=notifier or FakeNotifier(),
        frontend_url=FRONTEND,
        notification_required=notification_required,
        id_generator=lambda: "1718000000000",
    )


class TestSuccessfulSubmission:
    """The happy path runs every step in order."""

    @pytest.mark.asyncio
    async def test_returns_fully_populated_submission(self, form):
        """The result carries every derived field."""
        repository = FakeRepository()
        pipeline = make_pipeline(repository=repository)

        submission = await pipeline.submit(form, b"video-bytes", "clip.mp4", "video/mp4")

        assert submission.id == "1718000000000"
        assert submission.video_url == "https://cdn.example.com/video_templates/user_1718000000000.mp4"
        assert submission.qr_path == "/uploads/qrcodes/1718000000000.png"
        assert submission.page_url == f"{FRONTEND}/user/1718000000000"
        assert repository.records["1718000000000"] is submission

    @pytest.mark.asyncio
    async def test_qr_code_encodes_page_url(self, form):
        """The QR code points at the viewing page, not the video."""
        encoder = FakeLinkEncoder()
        pipeline = make_pipeline(link_encoder=encoder)

        await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert encoder.encoded == [f"{FRONTEND}/user/1718000000000"]

    @pytest.mark.asyncio
    async def test_admin_is_notified(self, form):
        """One notification per successful submission."""
        notifier = FakeNotifier()
        pipeline = make_pipeline(notifier=notifier)

        submission = await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert notifier.notified == [submission]

    @pytest.mark.asyncio
    async def test_rejects_empty_video(self, form):
        """No bytes, no workflow."""
        media_store = FakeMediaStore()
        pipeline = make_pipeline(media_store=media_store)

        with pytest.raises(ValueError, match="empty"):
            await pipeline.submit(form, b"", "clip.mp4")

        assert media_store.uploads == []


class TestFailedSteps:
    """A failing step aborts everything after it."""

    @pytest.mark.asyncio
    async def test_upload_failure_persists_nothing(self, form):
        """Storage failure leaves no record and sends no email."""
        repository = FakeRepository()
        notifier = FakeNotifier()
        encoder = FakeLinkEncoder()
        pipeline = make_pipeline(
            media_store=FakeMediaStore(fail=True),
            link_encoder=encoder,
            repository=repository,
            notifier=notifier,
        )

        with pytest.raises(SubmissionFailedError) as exc_info:
            await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert exc_info.value.step == "video upload"
        assert encoder.encoded == []
        assert repository.records == {}
        assert notifier.notified == []

    @pytest.mark.asyncio
    async def test_qr_failure_persists_nothing(self, form):
        repository = FakeRepository()
        pipeline = make_pipeline(
            link_encoder=FakeLinkEncoder(fail=True),
            repository=repository,
        )

        with pytest.raises(SubmissionFailedError) as exc_info:
            await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert exc_info.value.step == "qr code"
        assert repository.records == {}

    @pytest.mark.asyncio
    async def test_persist_failure_skips_notification(self, form):
        notifier = FakeNotifier()
        pipeline = make_pipeline(
            repository=FakeRepository(fail=True),
            notifier=notifier,
        )

        with pytest.raises(SubmissionFailedError) as exc_info:
            await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert exc_info.value.step == "persist"
        assert notifier.notified == []

    @pytest.mark.asyncio
    async def test_empty_qr_reference_persists_nothing(self, form):
        """An encoder that returns no reference can't produce a record."""

        class BlankLinkEncoder(FakeLinkEncoder):
            async def encode(self, page_url, submission_id):
                return ""

        repository = FakeRepository()
        pipeline = make_pipeline(link_encoder=BlankLinkEncoder(), repository=repository)

        with pytest.raises(SubmissionFailedError) as exc_info:
            await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert exc_info.value.step == "record"
        assert repository.records == {}


class TestNotificationPolicy:
    """Email is best-effort unless configured as required."""

    @pytest.mark.asyncio
    async def test_best_effort_notification_failure_still_succeeds(self, form):
        """The record is kept and the submission returned."""
        repository = FakeRepository()
        pipeline = make_pipeline(
            repository=repository,
            notifier=FakeNotifier(fail=True),
        )

        submission = await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert submission.id in repository.records

    @pytest.mark.asyncio
    async def test_required_notification_failure_raises(self, form):
        """With notification required, a failed email fails the submission."""
        pipeline = make_pipeline(
            notifier=FakeNotifier(fail=True),
            notification_required=True,
        )

        with pytest.raises(SubmissionFailedError) as exc_info:
            await pipeline.submit(form, b"video-bytes", "clip.mp4")

        assert exc_info.value.step == "notify"


class TestConcurrentWorkers:
    """Several worker processes share one bucket and one table."""

    @pytest.mark.asyncio
    async def test_same_millisecond_in_two_workers_keeps_both_videos(self, form):
        """Each record's video object holds the bytes that were submitted with it."""
        storage = MockStorageClient()
        repository = SubmissionRepository(MockSnowflakeConnection())

        def worker_pipeline() -> SubmissionPipeline:
            return SubmissionPipeline(
                media_store=storage,
                link_encoder=RemoteQRCodeEncoder(storage),
                repository=repository,
                notifier=FakeNotifier(),
                frontend_url=FRONTEND,
                id_generator=SubmissionIdGenerator(clock=lambda: 1718000000.0),
            )

        first = await worker_pipeline().submit(form, b"VIDEO-A", "a.mp4")
        second = await worker_pipeline().submit(form, b"VIDEO-B", "b.mp4")

        assert first.id != second.id
        assert [s.id for s in repository.list_all()] == [first.id, second.id]

        prefix = "mock://storage/"
        stored_first = repository.get(first.id)
        stored_second = repository.get(second.id)
        assert storage.get_object(stored_first.video_url[len(prefix):]) == b"VIDEO-A"
        assert storage.get_object(stored_second.video_url[len(prefix):]) == b"VIDEO-B"
