"""
Repository pattern implementations for Snowflake.

Repositories translate between domain models and database representations.
"""

from .submissions import (
    DuplicateSubmissionError,
    SubmissionNotFoundError,
    SubmissionRepository,
)

__all__ = [
    "DuplicateSubmissionError",
    "SubmissionNotFoundError",
    "SubmissionRepository",
]
