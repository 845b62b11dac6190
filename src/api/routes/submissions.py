"""
Submission intake and viewing endpoints.

POST /submit takes the multipart form (five text fields plus the video),
runs the intake workflow and returns the new id. GET /user/{id} returns the
stored record for the viewing page the QR code points at.

Errors come back as {"error": "..."}. Details of a pipeline failure are
logged, never returned.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Optional, Union

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field
from starlette.datastructures import UploadFile as StarletteUploadFile

from ...core.submissions.models import Submission, SubmissionForm
from ...core.submissions.pipeline import SubmissionFailedError
from ...infrastructure.snowflake.repositories.submissions import SubmissionNotFoundError
from ..dependencies import SettingsDep, SubmissionPipelineDep, SubmissionRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class SubmissionResponse(BaseModel):
    """A stored submission as the frontend sees it (camelCase keys)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Submission identifier")
    name: str = Field(default="", description="Submitter name")
    email: str = Field(default="", description="Submitter email")
    company: str = Field(default="", description="Submitter company")
    location: str = Field(default="", description="Submitter location")
    template: str = Field(default="", description="Chosen video template")
    video_url: str = Field(alias="videoUrl", description="Public URL of the uploaded video")
    qr_path: str = Field(alias="qrPath", description="Path or URL of the QR image")
    page_url: str = Field(alias="pageUrl", description="Viewing page encoded in the QR code")
    created_at: datetime = Field(alias="createdAt", description="When the submission was stored")
    updated_at: datetime = Field(alias="updatedAt", description="Last update time")

    @classmethod
    def from_submission(cls, submission: Submission) -> "SubmissionResponse":
        return cls(
            id=submission.id,
            name=submission.name,
            email=submission.email,
            company=submission.company,
            location=submission.location,
            template=submission.template,
            video_url=submission.video_url,
            qr_path=submission.qr_path,
            page_url=submission.page_url,
            created_at=submission.created_at,
            updated_at=submission.updated_at,
        )


class SubmitResponse(BaseModel):
    """Response after a successful submission."""
    id: str = Field(description="Submission identifier")


class ErrorResponse(BaseModel):
    error: str


# ---------------------------------------------------------------------------
# Upload Validation
# ---------------------------------------------------------------------------

@dataclass
class VideoUpload:
    data: bytes
    filename: str
    content_type: Optional[str]


async def require_video(
    settings: SettingsDep,
    video: Annotated[Union[UploadFile, str, None], File(description="Video file")] = None,
) -> VideoUpload:
    """
    Read the uploaded video, rejecting the request if there isn't one.

    `video` is declared loosely so a plain text field under that name gets
    the same 400 as a missing file instead of a validation error.

    Runs before the pipeline dependency so a bad request never opens a
    database connection or builds a storage client.
    """
    if not isinstance(video, StarletteUploadFile) or not video.filename:
        logger.warning("Submission rejected: no video file")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Video file is required",
        )

    data = await video.read()

    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Video file is empty",
        )

    max_size_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(data) > max_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"Video too large. Maximum size: {settings.max_upload_size_mb}MB",
        )

    return VideoUpload(data=data, filename=video.filename, content_type=video.content_type)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/submit",
    response_model=SubmitResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit a video",
    description="Upload a video with contact details. Returns the new submission id.",
    responses={
        400: {"model": ErrorResponse, "description": "No video file"},
        413: {"model": ErrorResponse, "description": "Video too large"},
        500: {"model": ErrorResponse, "description": "Submission failed"},
    },
)
async def submit(
    video: Annotated[VideoUpload, Depends(require_video)],
    pipeline: SubmissionPipelineDep,
    name: Annotated[str, Form()] = "",
    email: Annotated[str, Form()] = "",
    company: Annotated[str, Form()] = "",
    location: Annotated[str, Form()] = "",
    template: Annotated[str, Form()] = "",
) -> SubmitResponse:
    """
    Store the video, render the QR code, save the record, notify the admin.

    The response is only sent once every step has finished.
    """
    form = SubmissionForm(
        name=name,
        email=email,
        company=company,
        location=location,
        template=template,
    )

    try:
        submission = await pipeline.submit(
            form,
            video_data=video.data,
            filename=video.filename,
            content_type=video.content_type,
        )
    except SubmissionFailedError as e:
        logger.error(
            "Error during submission",
            extra={"step": e.step, "error": str(e.cause)},
            exc_info=e.cause,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Submission failed",
        )

    return SubmitResponse(id=submission.id)


@router.get(
    "/user/{submission_id}",
    response_model=SubmissionResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a submission",
    description="Retrieve one submission for its viewing page",
    responses={404: {"model": ErrorResponse, "description": "Not found"}},
)
async def get_submission(
    submission_id: str,
    repository: SubmissionRepositoryDep,
) -> SubmissionResponse:
    try:
        submission = repository.get(submission_id)
    except SubmissionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not found",
        )

    return SubmissionResponse.from_submission(submission)
