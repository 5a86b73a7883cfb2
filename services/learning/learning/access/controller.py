"""Access controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learning.access import service
from learning.access.schemas import AccessDecision, LessonAccessResult
from learning.exceptions import ErrorCode
from learning.http_errors import http_error, unwrap
from shared.models.user import ActorContext


def _forbid_if_denied_by_policy(decision: AccessDecision) -> AccessDecision:
    # A failed capability check is a 403; every other denial is an answer.
    if not decision.allowed and decision.code == ErrorCode.FORBIDDEN:
        raise http_error(decision.code, decision.reason)
    return decision


async def check_lesson_access(
    db: AsyncSession,
    actor: ActorContext,
    lesson_id: UUID,
    trainee_id: UUID | None,
) -> AccessDecision:
    decision = await service.check_lesson_access(db, actor, lesson_id, trainee_id)
    return _forbid_if_denied_by_policy(decision)


async def check_cohort_access(
    db: AsyncSession,
    actor: ActorContext,
    cohort_id: UUID,
    trainee_id: UUID | None,
) -> AccessDecision:
    decision = await service.check_cohort_access(db, actor, cohort_id, trainee_id)
    return _forbid_if_denied_by_policy(decision)


async def record_lesson_access(
    db: AsyncSession,
    actor: ActorContext,
    lesson_id: UUID,
) -> LessonAccessResult:
    return unwrap(await service.record_lesson_access(db, actor, lesson_id))
