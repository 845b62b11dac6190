"""
Administrative endpoints.

Lists every submission. No paging, filtering or access control.
"""

import logging

from fastapi import APIRouter, status

from ..dependencies import SubmissionRepositoryDep
from .submissions import SubmissionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/submissions",
    response_model=list[SubmissionResponse],
    status_code=status.HTTP_200_OK,
    summary="List all submissions",
    description="Every stored submission, oldest first",
)
async def list_submissions(repository: SubmissionRepositoryDep) -> list[SubmissionResponse]:
    submissions = repository.list_all()

    logger.info("Listed submissions", extra={"count": len(submissions)})

    return [SubmissionResponse.from_submission(s) for s in submissions]
