"""
Snowflake repository for submissions.

This module implements the repository pattern for submission data access.
The repository:
1. Translates between the Submission model and database rows
2. Encapsulates all SQL queries
3. Provides a clean interface for the application layer

Records are insert-only. A submission id can be created once; a second
create for the same id is rejected rather than merged.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from src.core.submissions.models import Submission


logger = logging.getLogger(__name__)


SUBMISSIONS_DDL = """
    CREATE TABLE IF NOT EXISTS submissions (
        submission_id VARCHAR NOT NULL PRIMARY KEY,
        name VARCHAR,
        email VARCHAR,
        company VARCHAR,
        location VARCHAR,
        template VARCHAR,
        video_url VARCHAR NOT NULL,
        qr_path VARCHAR NOT NULL,
        page_url VARCHAR NOT NULL,
        created_at TIMESTAMP_TZ NOT NULL,
        updated_at TIMESTAMP_TZ NOT NULL
    )
"""

_COLUMNS = """
    submission_id, name, email, company, location, template,
    video_url, qr_path, page_url, created_at, updated_at
"""


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_base64: Optional[str] = None
    database: str = "VIDEO_INTAKE"
    schema: str = "PUBLIC"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


class SubmissionNotFoundError(Exception):
    """Raised when a requested submission doesn't exist."""
    pass


class DuplicateSubmissionError(Exception):
    """Raised when a submission id is already taken."""
    pass


class SubmissionRepository:
    """
    Repository for submission persistence.

    - create: Persist a new, fully populated submission
    - get: Load a submission by its public id
    - list_all: Every submission, oldest first
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def create(self, submission: Submission) -> None:
        """
        Insert a submission.

        The MERGE only has a NOT MATCHED branch, so an existing id is left
        untouched and reported as DuplicateSubmissionError.
        """
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                MERGE INTO submissions AS target
                USING (SELECT %s AS submission_id) AS source
                ON target.submission_id = source.submission_id
                WHEN NOT MATCHED THEN INSERT ({_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """, (
                submission.id,
                submission.id,
                submission.name,
                submission.email,
                submission.company,
                submission.location,
                submission.template,
                submission.video_url,
                submission.qr_path,
                submission.page_url,
                submission.created_at,
                submission.updated_at,
            ))

            row = cursor.fetchone()
            inserted = row[0] if row else 0
            if not inserted:
                raise DuplicateSubmissionError(f"Submission {submission.id} already exists")

            self._conn.commit()

        except DuplicateSubmissionError:
            logger.warning(
                "Rejected duplicate submission id",
                extra={"submission_id": submission.id}
            )
            raise
        except Exception as e:
            logger.error(
                "Failed to save submission",
                extra={"submission_id": submission.id, "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def get(self, submission_id: str) -> Submission:
        """Load a submission by id."""
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_COLUMNS}
                FROM submissions
                WHERE submission_id = %s
            """, (submission_id,))

            row = cursor.fetchone()
            if not row:
                raise SubmissionNotFoundError(f"Submission {submission_id} not found")

            return self._build_submission(row)

        finally:
            cursor.close()

    def list_all(self) -> list[Submission]:
        """All submissions in creation order. No paging."""
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_COLUMNS}
                FROM submissions
                ORDER BY created_at, submission_id
            """)

            return [self._build_submission(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    def health_check(self) -> None:
        """Round-trip a trivial query. Raises if the database is unreachable."""
        cursor = self._conn.cursor()
        try:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        finally:
            cursor.close()

    def _build_submission(self, row) -> Submission:
        """Construct a Submission from a database row."""
        return Submission(
            id=row[0],
            name=row[1] or "",
            email=row[2] or "",
            company=row[3] or "",
            location=row[4] or "",
            template=row[5] or "",
            video_url=row[6],
            qr_path=row[7],
            page_url=row[8],
            created_at=row[9],
            updated_at=row[10],
        )
