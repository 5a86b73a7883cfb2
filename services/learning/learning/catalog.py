"""Read-only queries over the program → course → module → lesson tree.

Shared by the access, progress and certificate domains so that every caller
sees the same ordering rules.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learning.models.assignment import Assignment
from learning.models.cohort import Cohort
from learning.models.course_module import Module
from learning.models.enrollment import Enrollment
from learning.models.lesson import Lesson
from learning.models.lesson_access import LessonAccess
from learning.models.program import Course


async def ordered_lessons(db: AsyncSession, module_id: UUID) -> list[Lesson]:
    """Lessons of a module in unlock order; ties broken by creation time, then id."""
    result = await db.execute(
        select(Lesson)
        .where(Lesson.module_id == module_id)
        .order_by(Lesson.sort_order, Lesson.created_at, Lesson.id)
    )
    return list(result.scalars().all())


async def program_modules(db: AsyncSession, program_id: UUID) -> list[Module]:
    result = await db.execute(
        select(Module)
        .join(Course, Module.course_id == Course.id)
        .where(Course.program_id == program_id)
        .order_by(Course.sort_order, Course.created_at, Module.sort_order, Module.id)
    )
    return list(result.scalars().all())


async def module_program_id(db: AsyncSession, module_id: UUID) -> UUID | None:
    return await db.scalar(
        select(Course.program_id)
        .join(Module, Module.course_id == Course.id)
        .where(Module.id == module_id)
    )


async def mandatory_assignment(db: AsyncSession, module_id: UUID) -> Assignment | None:
    return await db.scalar(
        select(Assignment).where(
            Assignment.module_id == module_id,
            Assignment.mandatory.is_(True),
        )
    )


async def accessed_lesson_ids(
    db: AsyncSession,
    trainee_id: UUID,
    lesson_ids: Iterable[UUID],
) -> set[UUID]:
    ids = list(lesson_ids)
    if not ids:
        return set()
    result = await db.execute(
        select(LessonAccess.lesson_id).where(
            LessonAccess.trainee_id == trainee_id,
            LessonAccess.lesson_id.in_(ids),
        )
    )
    return set(result.scalars().all())


async def program_enrollments(
    db: AsyncSession,
    trainee_id: UUID,
    program_id: UUID,
) -> list[tuple[Enrollment, Cohort]]:
    """Every enrollment of the trainee in a cohort of the program, newest first."""
    result = await db.execute(
        select(Enrollment, Cohort)
        .join(Cohort, Enrollment.cohort_id == Cohort.id)
        .where(
            Enrollment.trainee_id == trainee_id,
            Cohort.program_id == program_id,
        )
        .order_by(Enrollment.enrolled_at.desc(), Enrollment.id)
    )
    return [(row[0], row[1]) for row in result.all()]
