"""Access domain Pydantic V2 schemas."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from learning.exceptions import ErrorCode, LearningError
from learning.results import OperationResult


class AccessDecision(BaseModel):
    allowed: bool
    reason: str | None = None
    code: ErrorCode | None = None

    @classmethod
    def deny(cls, exc: LearningError) -> AccessDecision:
        return cls(allowed=False, reason=exc.message, code=exc.code)


class LessonAccessResult(OperationResult):
    lesson_id: UUID | None = None
    already_recorded: bool = False
