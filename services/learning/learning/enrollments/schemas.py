"""Enrollment domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learning.results import OperationResult


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AtRiskRequest(BaseModel):
    at_risk: bool


class ExtendDeadlineRequest(BaseModel):
    new_end_date: datetime = Field(description="Must be strictly after the current effective end date.")


class BulkEnrollRequest(BaseModel):
    trainee_ids: list[UUID] = Field(min_length=1, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    trainee_id: UUID
    cohort_id: UUID
    at_risk: bool
    extended_end_date: datetime | None = None
    last_reminder_at: datetime | None = None
    enrolled_at: datetime
    effective_end_date: datetime | None = None


class EnrollmentResult(OperationResult):
    enrollment: EnrollmentResponse | None = None


class ReminderResult(OperationResult):
    enrollment_id: UUID | None = None
    last_reminder_at: datetime | None = None
    message: str | None = None


class ReminderCandidate(EnrollmentResponse):
    trainee_name: str
    trainee_email: str
    cohort_name: str
    program_name: str | None = None


class ReminderCandidatesResult(OperationResult):
    enrollments: list[ReminderCandidate] = Field(default_factory=list)


class BulkEnrollmentResult(OperationResult):
    cohort_id: UUID | None = None
    enrolled: list[UUID] = Field(default_factory=list)
    already_enrolled: list[UUID] = Field(default_factory=list)
    skipped: list[UUID] = Field(
        default_factory=list,
        description="Unknown users and users whose role is not TRAINEE.",
    )
