"""Lesson unlock resolver and cohort access gate.

A lesson is reachable when the trainee is enrolled in a cohort of the lesson's
program, that cohort's window is open, and the previous lesson of the module
has been accessed. Read-only checks return an ``AccessDecision`` rather than
raising; ``record_lesson_access`` is the only writer.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learning import catalog
from learning.access.schemas import AccessDecision, LessonAccessResult
from learning.authz import Capability, require_capability
from learning.exceptions import (
    AssignmentNotFoundError,
    CohortNotFoundError,
    CohortWindowClosedError,
    LearningError,
    LessonLockedError,
    LessonNotFoundError,
    LessonNotInProgramError,
    NotEnrolledError,
)
from learning.models.assignment import Assignment
from learning.models.cohort import Cohort
from learning.models.enrollment import Enrollment
from learning.models.enums import ProgramStatus
from learning.models.lesson import Lesson
from learning.models.lesson_access import LessonAccess
from learning.models.program import Program
from learning.progress.service import revalidate_progress
from learning.results import returns_result
from shared.database.types import ensure_utc, utcnow
from shared.database.upsert import insert_ignore
from shared.models.user import ActorContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cohort window
# ---------------------------------------------------------------------------


def effective_end_date(enrollment: Enrollment, cohort: Cohort) -> datetime | None:
    """Cohort end, pushed out by the enrollment's extension when that is later.

    ``None`` means the window has no end.
    """
    if cohort.end_date is None:
        return None
    extended = enrollment.extended_end_date
    if extended is not None and extended > cohort.end_date:
        return extended
    return cohort.end_date


async def ensure_window_open(
    db: AsyncSession,
    enrollment: Enrollment,
    cohort: Cohort,
    now: datetime,
) -> None:
    if not cohort.is_active:
        raise CohortWindowClosedError("Cohort is not active")
    program = await db.get(Program, cohort.program_id) if cohort.program_id else None
    if program is None or program.status != ProgramStatus.ACTIVE:
        raise CohortWindowClosedError("Program is not active")
    if cohort.start_date is not None and now < cohort.start_date:
        raise CohortWindowClosedError("Cohort has not started yet")
    end = effective_end_date(enrollment, cohort)
    if end is not None and now > end:
        raise CohortWindowClosedError("Cohort has ended")


async def can_trainee_access_cohort_content(
    db: AsyncSession,
    trainee_id: UUID,
    cohort_id: UUID,
    *,
    now: datetime | None = None,
) -> AccessDecision:
    now = ensure_utc(now) if now is not None else utcnow()
    try:
        cohort = await db.get(Cohort, cohort_id)
        if cohort is None:
            raise CohortNotFoundError(str(cohort_id))
        enrollment = await db.scalar(
            select(Enrollment).where(
                Enrollment.trainee_id == trainee_id,
                Enrollment.cohort_id == cohort_id,
            )
        )
        if enrollment is None:
            raise NotEnrolledError()
        await ensure_window_open(db, enrollment, cohort, now)
    except LearningError as exc:
        return AccessDecision.deny(exc)
    return AccessDecision(allowed=True)


async def ensure_program_window(
    db: AsyncSession,
    trainee_id: UUID,
    program_id: UUID,
    now: datetime,
) -> Enrollment:
    """Return an enrollment whose window is open, or raise the newest one's reason."""
    enrollments = await catalog.program_enrollments(db, trainee_id, program_id)
    if not enrollments:
        raise NotEnrolledError()
    first_error: LearningError | None = None
    for enrollment, cohort in enrollments:
        try:
            await ensure_window_open(db, enrollment, cohort, now)
        except CohortWindowClosedError as exc:
            first_error = first_error or exc
            continue
        return enrollment
    raise first_error


# ---------------------------------------------------------------------------
# Lesson sequencing
# ---------------------------------------------------------------------------


async def _ensure_lesson_access(
    db: AsyncSession,
    trainee_id: UUID,
    lesson: Lesson,
    now: datetime,
) -> None:
    program_id = await catalog.module_program_id(db, lesson.module_id)
    if program_id is None:
        raise LessonNotInProgramError()
    await ensure_program_window(db, trainee_id, program_id, now)

    lessons = await catalog.ordered_lessons(db, lesson.module_id)
    index = next(i for i, candidate in enumerate(lessons) if candidate.id == lesson.id)
    if index == 0:
        return
    previous = lessons[index - 1]
    if not await catalog.accessed_lesson_ids(db, trainee_id, [previous.id]):
        raise LessonLockedError()


async def can_access_lesson(
    db: AsyncSession,
    trainee_id: UUID,
    lesson_id: UUID,
    *,
    now: datetime | None = None,
) -> AccessDecision:
    now = ensure_utc(now) if now is not None else utcnow()
    try:
        lesson = await db.get(Lesson, lesson_id)
        if lesson is None:
            raise LessonNotFoundError(str(lesson_id))
        await _ensure_lesson_access(db, trainee_id, lesson, now)
    except LearningError as exc:
        return AccessDecision.deny(exc)
    return AccessDecision(allowed=True)


@returns_result(LessonAccessResult)
async def record_lesson_access(
    db: AsyncSession,
    actor: ActorContext,
    lesson_id: UUID,
    *,
    now: datetime | None = None,
) -> LessonAccessResult:
    """Mark the lesson as accessed by the acting trainee. Repeat calls are no-ops."""
    require_capability(actor, Capability.CONSUME_CONTENT)
    now = ensure_utc(now) if now is not None else utcnow()
    trainee_id = actor.actor_id

    lesson = await db.get(Lesson, lesson_id)
    if lesson is None:
        raise LessonNotFoundError(str(lesson_id))

    if await catalog.accessed_lesson_ids(db, trainee_id, [lesson_id]):
        return LessonAccessResult(lesson_id=lesson_id, already_recorded=True)

    await _ensure_lesson_access(db, trainee_id, lesson, now)
    created = await insert_ignore(
        db,
        LessonAccess,
        {"trainee_id": trainee_id, "lesson_id": lesson_id, "accessed_at": now},
        conflict_columns=["trainee_id", "lesson_id"],
    )
    await revalidate_progress(db, trainee_id, lesson.module_id)
    if created:
        logger.info("Lesson %s accessed by trainee %s", lesson_id, trainee_id)
    return LessonAccessResult(lesson_id=lesson_id, already_recorded=not created)


# ---------------------------------------------------------------------------
# Linear access helpers
# ---------------------------------------------------------------------------


async def is_assignment_unlocked(
    db: AsyncSession,
    trainee_id: UUID,
    assignment_id: UUID,
) -> bool:
    """Every lesson of the assignment's module has been accessed."""
    assignment = await db.get(Assignment, assignment_id)
    if assignment is None:
        raise AssignmentNotFoundError(str(assignment_id))
    lessons = await catalog.ordered_lessons(db, assignment.module_id)
    accessed = await catalog.accessed_lesson_ids(db, trainee_id, (lesson.id for lesson in lessons))
    return len(accessed) >= len(lessons)


# ---------------------------------------------------------------------------
# Actor-facing checks
# ---------------------------------------------------------------------------


async def check_lesson_access(
    db: AsyncSession,
    actor: ActorContext,
    lesson_id: UUID,
    trainee_id: UUID | None = None,
) -> AccessDecision:
    """``can_access_lesson`` on behalf of ``actor``; defaults to the actor as trainee."""
    trainee_id = trainee_id or actor.actor_id
    try:
        require_capability(actor, Capability.VIEW_PROGRESS, trainee_id=trainee_id)
    except LearningError as exc:
        return AccessDecision.deny(exc)
    return await can_access_lesson(db, trainee_id, lesson_id)


async def check_cohort_access(
    db: AsyncSession,
    actor: ActorContext,
    cohort_id: UUID,
    trainee_id: UUID | None = None,
) -> AccessDecision:
    trainee_id = trainee_id or actor.actor_id
    try:
        require_capability(actor, Capability.VIEW_PROGRESS, trainee_id=trainee_id)
    except LearningError as exc:
        return AccessDecision.deny(exc)
    return await can_trainee_access_cohort_content(db, trainee_id, cohort_id)
