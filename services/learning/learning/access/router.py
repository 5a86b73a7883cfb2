"""Access router: lesson unlock checks, access recording, cohort window checks."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from learning.access import controller
from learning.access.schemas import AccessDecision, LessonAccessResult
from learning.database import get_db
from learning.dependencies import get_current_actor
from shared.models.user import ActorContext

router = APIRouter(tags=["Access"])


@router.get(
    "/lessons/{lesson_id}/access",
    response_model=AccessDecision,
    summary="Can the trainee open this lesson?",
    description="Checks enrollment, the cohort window and lesson order. "
    "Denials are returned with a reason rather than as errors. "
    "Defaults to the caller; staff may pass `trainee_id`.",
)
async def check_lesson_access(
    lesson_id: UUID,
    trainee_id: UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> AccessDecision:
    return await controller.check_lesson_access(db, actor, lesson_id, trainee_id)


@router.post(
    "/lessons/{lesson_id}/access",
    response_model=LessonAccessResult,
    summary="Record lesson access",
    description="Marks the lesson as accessed by the calling trainee. Idempotent: "
    "a repeat call returns `already_recorded=true`. Returns 403 when the lesson is locked "
    "or the cohort window is closed.",
)
async def record_lesson_access(
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> LessonAccessResult:
    return await controller.record_lesson_access(db, actor, lesson_id)


@router.get(
    "/cohorts/{cohort_id}/access",
    response_model=AccessDecision,
    summary="Is the cohort's content window open for the trainee?",
)
async def check_cohort_access(
    cohort_id: UUID,
    trainee_id: UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> AccessDecision:
    return await controller.check_cohort_access(db, actor, cohort_id, trainee_id)
