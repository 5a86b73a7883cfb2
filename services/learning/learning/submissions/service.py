"""Assignment submission and grading.

Grading is what moves a module past PENDING_REVIEW: a mentor approval is
held at PENDING_ADMIN_APPROVAL until an admin confirms it, and only APPROVED
counts towards module completion.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learning import catalog
from learning.access.service import ensure_program_window, is_assignment_unlocked
from learning.audit.service import AuditAction, log_audit
from learning.authz import Capability, has_capability, require_capability
from learning.exceptions import (
    AssignmentLockedError,
    AssignmentNotFoundError,
    InvalidSubmissionTransitionError,
    LessonNotInProgramError,
    PermissionDeniedError,
    SubmissionNotFoundError,
)
from learning.models.assignment import Assignment
from learning.models.enums import AWAITING_REVIEW, SubmissionStatus
from learning.models.submission import Submission
from learning.progress.service import revalidate_progress
from learning.results import returns_result
from learning.submissions.schemas import GradeDecision, SubmissionResponse, SubmissionResult
from shared.database.types import ensure_utc, utcnow
from shared.models.user import ActorContext

logger = logging.getLogger(__name__)


async def _latest_submission(
    db: AsyncSession,
    trainee_id: UUID,
    assignment_id: UUID,
) -> Submission | None:
    return await db.scalar(
        select(Submission)
        .where(
            Submission.trainee_id == trainee_id,
            Submission.assignment_id == assignment_id,
        )
        .order_by(Submission.submitted_at.desc())
        .limit(1)
    )


@returns_result(SubmissionResult)
async def submit_assignment(
    db: AsyncSession,
    actor: ActorContext,
    assignment_id: UUID,
    content: str,
    *,
    now: datetime | None = None,
) -> SubmissionResult:
    require_capability(actor, Capability.SUBMIT_ASSIGNMENT)
    now = ensure_utc(now) if now is not None else utcnow()
    trainee_id = actor.actor_id

    assignment = await db.get(Assignment, assignment_id)
    if assignment is None:
        raise AssignmentNotFoundError(str(assignment_id))
    program_id = await catalog.module_program_id(db, assignment.module_id)
    if program_id is None:
        raise LessonNotInProgramError("Assignment not in a program")
    await ensure_program_window(db, trainee_id, program_id, now)
    if not await is_assignment_unlocked(db, trainee_id, assignment_id):
        raise AssignmentLockedError()

    latest = await _latest_submission(db, trainee_id, assignment_id)
    if latest is not None and (
        latest.status in AWAITING_REVIEW or latest.status == SubmissionStatus.APPROVED
    ):
        raise InvalidSubmissionTransitionError(latest.status.value, SubmissionStatus.PENDING.value)

    if latest is not None and latest.status == SubmissionStatus.RESUBMIT_REQUESTED:
        submission = latest
        submission.content = content
        submission.status = SubmissionStatus.PENDING
        submission.submitted_at = now
        submission.reviewed_at = None
        submission.reviewed_by_id = None
    else:
        submission = Submission(
            assignment_id=assignment_id,
            trainee_id=trainee_id,
            content=content,
            status=SubmissionStatus.PENDING,
            submitted_at=now,
        )
        db.add(submission)
    await db.flush()

    await revalidate_progress(db, trainee_id, assignment.module_id)
    return SubmissionResult(submission=SubmissionResponse.model_validate(submission))


async def _ensure_can_grade(
    db: AsyncSession,
    actor: ActorContext,
    submission: Submission,
    program_id: UUID | None,
) -> None:
    if actor.is_admin:
        return
    cohorts = []
    if program_id is not None:
        cohorts = [
            cohort
            for _, cohort in await catalog.program_enrollments(db, submission.trainee_id, program_id)
        ]
    if not any(has_capability(actor, Capability.GRADE_SUBMISSION, cohort=c) for c in cohorts):
        raise PermissionDeniedError()


def _next_status(actor: ActorContext, current: SubmissionStatus, decision: GradeDecision) -> SubmissionStatus:
    if current == SubmissionStatus.PENDING_ADMIN_APPROVAL and not actor.is_admin:
        raise InvalidSubmissionTransitionError(current.value, decision.value)
    if current not in AWAITING_REVIEW:
        raise InvalidSubmissionTransitionError(current.value, decision.value)
    if decision == GradeDecision.APPROVE:
        return SubmissionStatus.APPROVED if actor.is_admin else SubmissionStatus.PENDING_ADMIN_APPROVAL
    if decision == GradeDecision.REJECT:
        return SubmissionStatus.REJECTED
    return SubmissionStatus.RESUBMIT_REQUESTED


@returns_result(SubmissionResult)
async def grade_submission(
    db: AsyncSession,
    actor: ActorContext,
    submission_id: UUID,
    decision: GradeDecision,
    feedback: str | None = None,
    *,
    now: datetime | None = None,
) -> SubmissionResult:
    """Mentor (of the trainee's cohort) or admin review of a pending submission."""
    now = ensure_utc(now) if now is not None else utcnow()
    submission = await db.get(Submission, submission_id)
    if submission is None:
        raise SubmissionNotFoundError(str(submission_id))
    assignment = await db.get(Assignment, submission.assignment_id)
    program_id = await catalog.module_program_id(db, assignment.module_id)
    await _ensure_can_grade(db, actor, submission, program_id)

    previous = submission.status
    submission.status = _next_status(actor, previous, decision)
    submission.reviewed_at = now
    submission.reviewed_by_id = actor.actor_id
    if feedback is not None:
        submission.feedback = feedback
    if submission.status == SubmissionStatus.APPROVED:
        submission.admin_approved_at = now
    await db.flush()

    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.SUBMISSION_GRADE,
        entity_type="Submission",
        entity_id=submission.id,
        details={"from": previous.value, "to": submission.status.value},
    )
    await revalidate_progress(db, submission.trainee_id, assignment.module_id)
    return SubmissionResult(submission=SubmissionResponse.model_validate(submission))
