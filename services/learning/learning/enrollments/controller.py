"""Enrollment controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learning.enrollments import service
from learning.enrollments.schemas import (
    AtRiskRequest,
    BulkEnrollmentResult,
    BulkEnrollRequest,
    EnrollmentResponse,
    ExtendDeadlineRequest,
    ReminderCandidate,
    ReminderResult,
)
from learning.http_errors import unwrap
from shared.models.user import ActorContext


async def set_at_risk(
    db: AsyncSession, actor: ActorContext, enrollment_id: UUID, body: AtRiskRequest,
) -> EnrollmentResponse:
    result = unwrap(await service.set_enrollment_at_risk(db, actor, enrollment_id, body.at_risk))
    return result.enrollment


async def extend_deadline(
    db: AsyncSession, actor: ActorContext, enrollment_id: UUID, body: ExtendDeadlineRequest,
) -> EnrollmentResponse:
    result = unwrap(
        await service.extend_enrollment_deadline(db, actor, enrollment_id, body.new_end_date)
    )
    return result.enrollment


async def record_reminder(
    db: AsyncSession, actor: ActorContext, enrollment_id: UUID,
) -> ReminderResult:
    return unwrap(await service.record_reminder(db, actor, enrollment_id))


async def list_reminder_candidates(
    db: AsyncSession, actor: ActorContext,
) -> list[ReminderCandidate]:
    return unwrap(await service.list_reminder_candidates(db, actor)).enrollments


async def enroll_trainees(
    db: AsyncSession, actor: ActorContext, cohort_id: UUID, body: BulkEnrollRequest,
) -> BulkEnrollmentResult:
    return unwrap(await service.enroll_trainees(db, actor, cohort_id, body.trainee_ids))
