"""Submission domain Pydantic V2 schemas."""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learning.models.enums import SubmissionStatus
from learning.results import OperationResult


class GradeDecision(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_RESUBMIT = "REQUEST_RESUBMIT"


class SubmitAssignmentRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1, max_length=20000)


class GradeSubmissionRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    decision: GradeDecision
    feedback: str | None = Field(default=None, max_length=5000)


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    assignment_id: UUID
    trainee_id: UUID
    status: SubmissionStatus
    content: str | None = None
    feedback: str | None = None
    submitted_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by_id: UUID | None = None
    admin_approved_at: datetime | None = None


class SubmissionResult(OperationResult):
    submission: SubmissionResponse | None = None
