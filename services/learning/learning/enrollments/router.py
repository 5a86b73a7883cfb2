"""Enrollment router: at-risk flags, deadline extensions, reminders, bulk enrollment."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learning.database import get_db
from learning.dependencies import get_current_actor
from learning.enrollments import controller
from learning.enrollments.schemas import (
    AtRiskRequest,
    BulkEnrollmentResult,
    BulkEnrollRequest,
    EnrollmentResponse,
    ExtendDeadlineRequest,
    ReminderCandidate,
    ReminderResult,
)
from shared.models.user import ActorContext

router = APIRouter(tags=["Enrollments"])


@router.post(
    "/cohorts/{cohort_id}/enroll",
    response_model=BulkEnrollmentResult,
    summary="Enroll trainees into a cohort (admin)",
    description="Users that do not exist or are not trainees are reported in `skipped`. "
    "Progress rows are seeded for every module of the cohort's program.",
)
async def enroll_trainees(
    cohort_id: UUID,
    body: BulkEnrollRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> BulkEnrollmentResult:
    return await controller.enroll_trainees(db, actor, cohort_id, body)


@router.get(
    "/enrollments/reminders",
    response_model=list[ReminderCandidate],
    summary="Enrollments that may need a reminder",
    description="Mentors: every enrollment in cohorts they mentor. Admins: at-risk enrollments.",
)
async def list_reminder_candidates(
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[ReminderCandidate]:
    return await controller.list_reminder_candidates(db, actor)


@router.patch(
    "/enrollments/{enrollment_id}/at-risk",
    response_model=EnrollmentResponse,
    summary="Flag or unflag an enrollment as at risk",
)
async def set_at_risk(
    enrollment_id: UUID,
    body: AtRiskRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> EnrollmentResponse:
    return await controller.set_at_risk(db, actor, enrollment_id, body)


@router.post(
    "/enrollments/{enrollment_id}/extend-deadline",
    response_model=EnrollmentResponse,
    summary="Extend a trainee's deadline (admin)",
    description="Returns 409 unless the new date is strictly after the current effective end date.",
)
async def extend_deadline(
    enrollment_id: UUID,
    body: ExtendDeadlineRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> EnrollmentResponse:
    return await controller.extend_deadline(db, actor, enrollment_id, body)


@router.post(
    "/enrollments/{enrollment_id}/remind",
    response_model=ReminderResult,
    summary="Record that a reminder was sent",
)
async def record_reminder(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ReminderResult:
    return await controller.record_reminder(db, actor, enrollment_id)
