"""Progress domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learning.models.enums import ProgressStatus
from learning.results import OperationResult


class ModuleProgress(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    module_id: UUID
    title: str
    status: ProgressStatus
    percent_complete: int = Field(ge=0, le=100)
    unlocked: bool = Field(
        description="First module of the program, or the previous module is COMPLETED.",
    )
    completed_at: datetime | None = None


class ProgramProgress(BaseModel):
    program_id: UUID
    overall_percent: int = Field(ge=0, le=100)
    all_completed: bool
    modules: list[ModuleProgress] = Field(default_factory=list)


class ProgramProgressResult(OperationResult):
    progress: ProgramProgress | None = None
