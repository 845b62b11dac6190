"""
Unit tests for the submission repository.

Runs against the in-memory Snowflake connection, which is also what the
service uses in mock mode.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from src.core.submissions.models import Submission
from src.infrastructure.snowflake.client import MockSnowflakeConnection
from src.infrastructure.snowflake.repositories.submissions import (
    DuplicateSubmissionError,
    SubmissionNotFoundError,
    SubmissionRepository,
)


def make_submission(submission_id: str, name: str = "Ana", created_at=None) -> Submission:
    created_at = created_at or datetime.now(timezone.utc)
    return Submission(
        id=submission_id,
        name=name,
        email="a@x.com",
        company="Acme",
        location="NY",
        template="t1",
        video_url=f"https://cdn.example.com/video_templates/user_{submission_id}.mp4",
        qr_path=f"/uploads/qrcodes/{submission_id}.png",
        page_url=f"https://app.example.com/user/{submission_id}",
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.fixture
def connection() -> MockSnowflakeConnection:
    return MockSnowflakeConnection()


@pytest.fixture
def repository(connection) -> SubmissionRepository:
    return SubmissionRepository(connection)


class TestCreateAndGet:
    def test_created_submission_can_be_fetched(self, repository):
        """get returns exactly what create stored."""
        original = make_submission("100")

        repository.create(original)
        loaded = repository.get("100")

        assert loaded == original

    def test_unknown_id_raises_not_found(self, repository):
        with pytest.raises(SubmissionNotFoundError):
            repository.get("does-not-exist")

    def test_duplicate_id_is_rejected(self, repository):
        """The first record for an id wins; the second create fails."""
        repository.create(make_submission("100", name="First"))

        with pytest.raises(DuplicateSubmissionError):
            repository.create(make_submission("100", name="Second"))

        assert repository.get("100").name == "First"
        assert len(repository.list_all()) == 1

    def test_repositories_share_connection_state(self, connection):
        """Per-request repositories over one mock connection see the same data."""
        SubmissionRepository(connection).create(make_submission("100"))

        assert SubmissionRepository(connection).get("100").id == "100"


class TestListAll:
    def test_empty_store_lists_nothing(self, repository):
        assert repository.list_all() == []

    def test_lists_in_insertion_order(self, repository):
        base = datetime(2024, 6, 1, tzinfo=timezone.utc)
        for i, submission_id in enumerate(["1", "2", "3"]):
            repository.create(make_submission(submission_id, created_at=base + timedelta(seconds=i)))

        assert [s.id for s in repository.list_all()] == ["1", "2", "3"]

    def test_concurrent_creates_keep_every_record(self, repository):
        """Writers on different threads don't lose each other's records."""
        def worker(offset: int):
            for i in range(50):
                repository.create(make_submission(f"{offset}-{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(repository.list_all()) == 200

    def test_concurrent_duplicate_creates_store_one(self, repository):
        """Racing creates for one id leave exactly one record."""
        errors: list[Exception] = []

        def worker():
            try:
                repository.create(make_submission("same"))
            except DuplicateSubmissionError as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(repository.list_all()) == 1
        assert len(errors) == 7


class TestHealthCheck:
    def test_health_check_passes_on_mock(self, repository):
        repository.health_check()


class TestMockModeDependency:
    """In mock mode every request gets a repository over one shared connection."""

    def test_records_survive_between_requests(self, monkeypatch):
        from src.api import dependencies
        from src.config.settings import Settings

        monkeypatch.setattr(dependencies, "_mock_snowflake_connection", None)
        settings = Settings(frontend_url="https://app.example.com", snowflake_mock_mode=True)

        first_request = dependencies.get_submission_repository(settings)
        next(first_request).create(make_submission("200"))
        first_request.close()

        second_request = dependencies.get_submission_repository(settings)
        loaded = next(second_request).get("200")
        second_request.close()

        assert loaded.id == "200"
