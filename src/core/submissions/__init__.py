"""
Submission intake logic.

Contains the Submission model and the intake workflow.
"""

from .models import (
    Submission,
    SubmissionForm,
    SubmissionIdGenerator,
    build_page_url,
    new_submission_id,
)
from .pipeline import SubmissionFailedError, SubmissionPipeline

__all__ = [
    "Submission",
    "SubmissionForm",
    "SubmissionIdGenerator",
    "build_page_url",
    "new_submission_id",
    "SubmissionFailedError",
    "SubmissionPipeline",
]
