"""
Domain models for video submissions.

These models have no dependencies on external frameworks, databases, or
APIs. A Submission is only ever constructed once every derived field is
known, so anything that reaches the record store is complete.
"""

import secrets
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class SubmissionForm:
    """The free-text fields a caller sends alongside the video."""
    name: str = ""
    email: str = ""
    company: str = ""
    location: str = ""
    template: str = ""


@dataclass
class Submission:
    """
    One completed form intake.

    `id` is the external lookup key (it appears in the viewing page URL),
    not a surrogate database key.
    """
    id: str
    video_url: str
    qr_path: str
    page_url: str
    name: str = ""
    email: str = ""
    company: str = ""
    location: str = ""
    template: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ValueError("Submission id cannot be empty")
        for name in ("video_url", "qr_path", "page_url"):
            if not getattr(self, name):
                raise ValueError(f"Submission {name} cannot be empty")

    @classmethod
    def from_form(
        cls,
        submission_id: str,
        form: SubmissionForm,
        video_url: str,
        qr_path: str,
        page_url: str,
    ) -> "Submission":
        return cls(
            id=submission_id,
            name=form.name,
            email=form.email,
            company=form.company,
            location=form.location,
            template=form.template,
            video_url=video_url,
            qr_path=qr_path,
            page_url=page_url,
        )


def build_page_url(frontend_url: str, submission_id: str) -> str:
    """Viewing page URL encoded into the QR code: {frontend}/user/{id}."""
    return f"{frontend_url.rstrip('/')}/user/{submission_id}"


class SubmissionIdGenerator:
    """
    Millisecond-timestamp ids with a per-generator node suffix.

    An id looks like "1718000000000-3f9a1c". The timestamp part is strictly
    increasing within one generator, so two submissions landing in the same
    millisecond get consecutive values. The node is random per generator,
    so separate worker processes drawing the same millisecond still produce
    different ids and never share an object key.
    """

    def __init__(self, clock=time.time, node: Optional[str] = None) -> None:
        self._clock = clock
        self._node = node or secrets.token_hex(3)
        self._last = 0
        self._lock = threading.Lock()

    @property
    def node(self) -> str:
        return self._node

    def __call__(self) -> str:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            self._last = max(now_ms, self._last + 1)
            return f"{self._last}-{self._node}"


new_submission_id = SubmissionIdGenerator()
