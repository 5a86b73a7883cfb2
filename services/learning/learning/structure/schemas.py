"""Structure domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learning.models.enums import ProgramStatus
from learning.results import OperationResult


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateLessonRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    module_id: UUID
    title: str = Field(min_length=1, max_length=300)
    sort_order: int = Field(ge=0, le=32767)
    content_body: str | None = None


class CreateAssignmentRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    module_id: UUID
    title: str = Field(min_length=1, max_length=300)
    instructions: str | None = None
    due_date: datetime | None = None
    mandatory: bool | None = Field(
        default=None,
        description="Defaults to true when the module has no mandatory assignment yet.",
    )


class CreateCohortRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    program_id: UUID | None = None
    mentor_id: UUID | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    module_id: UUID
    title: str
    sort_order: int
    created_at: datetime


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    module_id: UUID
    title: str
    due_date: datetime | None = None
    mandatory: bool


class CohortResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    program_id: UUID | None = None
    mentor_id: UUID | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool


class LessonResult(OperationResult):
    lesson: LessonResponse | None = None


class AssignmentResult(OperationResult):
    assignment: AssignmentResponse | None = None


class CohortResult(OperationResult):
    cohort: CohortResponse | None = None
    program_status: ProgramStatus | None = None


class ProgramStatusResult(OperationResult):
    program_id: UUID | None = None
    status: ProgramStatus | None = None


class ModuleValidation(BaseModel):
    module_id: UUID
    title: str
    complete: bool
    lesson_count: int
    mandatory_assignment_count: int
    errors: list[str] = Field(default_factory=list)


class StructureValidationResult(OperationResult):
    program_id: UUID | None = None
    valid: bool = False
    modules: list[ModuleValidation] = Field(default_factory=list)
