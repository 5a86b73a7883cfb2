"""Submission controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learning.http_errors import unwrap
from learning.submissions import service
from learning.submissions.schemas import (
    GradeSubmissionRequest,
    SubmissionResponse,
    SubmitAssignmentRequest,
)
from shared.models.user import ActorContext


async def submit_assignment(
    db: AsyncSession,
    actor: ActorContext,
    assignment_id: UUID,
    body: SubmitAssignmentRequest,
) -> SubmissionResponse:
    result = unwrap(await service.submit_assignment(db, actor, assignment_id, body.content))
    return result.submission


async def grade_submission(
    db: AsyncSession,
    actor: ActorContext,
    submission_id: UUID,
    body: GradeSubmissionRequest,
) -> SubmissionResponse:
    result = unwrap(
        await service.grade_submission(db, actor, submission_id, body.decision, body.feedback)
    )
    return result.submission
