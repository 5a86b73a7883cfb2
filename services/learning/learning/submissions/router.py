"""Submission router: trainee hand-in and mentor/admin grading."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from learning.database import get_db
from learning.dependencies import get_current_actor
from learning.submissions import controller
from learning.submissions.schemas import (
    GradeSubmissionRequest,
    SubmissionResponse,
    SubmitAssignmentRequest,
)
from shared.models.user import ActorContext

router = APIRouter(tags=["Submissions"])


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an assignment",
    description="Requires every lesson of the module to have been accessed. "
    "After RESUBMIT_REQUESTED the existing submission is reopened.",
)
async def submit_assignment(
    assignment_id: UUID,
    body: SubmitAssignmentRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> SubmissionResponse:
    return await controller.submit_assignment(db, actor, assignment_id, body)


@router.post(
    "/submissions/{submission_id}/grade",
    response_model=SubmissionResponse,
    summary="Grade a submission",
    description="Mentor approval moves the submission to PENDING_ADMIN_APPROVAL; "
    "admin approval makes it APPROVED.",
)
async def grade_submission(
    submission_id: UUID,
    body: GradeSubmissionRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> SubmissionResponse:
    return await controller.grade_submission(db, actor, submission_id, body)
