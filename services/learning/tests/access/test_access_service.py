from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from conftest import actor_for
from learning.access.service import (
    can_access_lesson,
    can_trainee_access_cohort_content,
    effective_end_date,
    is_assignment_unlocked,
    record_lesson_access,
)
from learning.exceptions import ErrorCode
from learning.models import Cohort, Enrollment, LessonAccess, Progress
from learning.models.enums import ProgramStatus, ProgressStatus
from shared.constants import Role

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Sequencing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_only_first_lesson_open_without_accesses(db, factory) -> None:
    tree = await factory.program_tree(lessons=3)
    a, b, c = tree.lessons

    assert (await can_access_lesson(db, tree.trainee.id, a.id)).allowed is True
    denied_b = await can_access_lesson(db, tree.trainee.id, b.id)
    assert denied_b.allowed is False
    assert denied_b.code == ErrorCode.SEQUENCING_VIOLATION
    assert denied_b.reason == "Complete the previous lesson first"
    assert (await can_access_lesson(db, tree.trainee.id, c.id)).allowed is False


@pytest.mark.asyncio
async def test_accessing_lesson_unlocks_the_next_only(db, factory) -> None:
    tree = await factory.program_tree(lessons=3)
    a, b, c = tree.lessons
    trainee = actor_for(tree.trainee)

    result = await record_lesson_access(db, trainee, a.id)
    assert result.ok is True

    assert (await can_access_lesson(db, tree.trainee.id, b.id)).allowed is True
    assert (await can_access_lesson(db, tree.trainee.id, c.id)).allowed is False

    skipped = await record_lesson_access(db, trainee, c.id)
    assert skipped.ok is False
    assert skipped.code == ErrorCode.SEQUENCING_VIOLATION
    count = await db.scalar(
        select(func.count()).select_from(LessonAccess).where(LessonAccess.lesson_id == c.id)
    )
    assert count == 0


@pytest.mark.asyncio
async def test_record_lesson_access_is_idempotent(db, factory) -> None:
    tree = await factory.program_tree(lessons=2)
    trainee = actor_for(tree.trainee)
    first = tree.lessons[0]

    r1 = await record_lesson_access(db, trainee, first.id)
    r2 = await record_lesson_access(db, trainee, first.id)

    assert r1.ok and r1.already_recorded is False
    assert r2.ok and r2.already_recorded is True
    count = await db.scalar(
        select(func.count())
        .select_from(LessonAccess)
        .where(LessonAccess.trainee_id == tree.trainee.id, LessonAccess.lesson_id == first.id)
    )
    assert count == 1


@pytest.mark.asyncio
async def test_record_lesson_access_updates_module_progress(db, factory) -> None:
    tree = await factory.program_tree(lessons=3, mandatory=True)
    await record_lesson_access(db, actor_for(tree.trainee), tree.lessons[0].id)

    progress = await db.scalar(
        select(Progress).where(
            Progress.trainee_id == tree.trainee.id, Progress.module_id == tree.module.id,
        )
    )
    # 3 lessons + 1 mandatory assignment = 4 units, 1 earned.
    assert progress.percent_complete == 25
    assert progress.status == ProgressStatus.ACTIVE


@pytest.mark.asyncio
async def test_only_trainees_record_access(db, factory) -> None:
    tree = await factory.program_tree()
    result = await record_lesson_access(db, actor_for(tree.admin), tree.lessons[0].id)
    assert result.ok is False
    assert result.code == ErrorCode.FORBIDDEN


# ---------------------------------------------------------------------------
# Resolution failures
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unknown_lesson_is_not_found(db, factory) -> None:
    trainee = await factory.user(Role.TRAINEE)
    decision = await can_access_lesson(db, trainee.id, uuid4())
    assert decision.allowed is False
    assert decision.code == ErrorCode.NOT_FOUND
    assert decision.reason == "Lesson not found"


@pytest.mark.asyncio
async def test_lesson_outside_any_program_is_denied(db, factory) -> None:
    trainee = await factory.user(Role.TRAINEE)
    course = await factory.course(None)
    module = await factory.module(course)
    lesson = await factory.lesson(module, sort_order=0)

    decision = await can_access_lesson(db, trainee.id, lesson.id)
    assert decision.allowed is False
    assert decision.reason == "Lesson not in a program"


@pytest.mark.asyncio
async def test_trainee_without_enrollment_is_denied(db, factory) -> None:
    tree = await factory.program_tree()
    outsider = await factory.user(Role.TRAINEE)
    decision = await can_access_lesson(db, outsider.id, tree.lessons[0].id)
    assert decision.allowed is False
    assert decision.code == ErrorCode.NOT_ENROLLED
    assert decision.reason == "Not enrolled"


# ---------------------------------------------------------------------------
# Cohort window
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cohort_window_bounds(db, factory) -> None:
    tree = await factory.program_tree(
        start_date=NOW - timedelta(days=10), end_date=NOW + timedelta(days=10),
    )
    cohort_id = tree.cohort.id
    trainee_id = tree.trainee.id

    assert (await can_trainee_access_cohort_content(db, trainee_id, cohort_id, now=NOW)).allowed

    early = await can_trainee_access_cohort_content(
        db, trainee_id, cohort_id, now=NOW - timedelta(days=11),
    )
    assert early.allowed is False
    assert early.reason == "Cohort has not started yet"

    late = await can_trainee_access_cohort_content(
        db, trainee_id, cohort_id, now=NOW + timedelta(days=11),
    )
    assert late.allowed is False
    assert late.reason == "Cohort has ended"

    on_the_end = await can_trainee_access_cohort_content(
        db, trainee_id, cohort_id, now=NOW + timedelta(days=10),
    )
    assert on_the_end.allowed is True


@pytest.mark.asyncio
async def test_closed_cohort_blocks_lessons(db, factory) -> None:
    tree = await factory.program_tree(end_date=NOW - timedelta(days=1))
    decision = await can_access_lesson(db, tree.trainee.id, tree.lessons[0].id, now=NOW)
    assert decision.allowed is False
    assert decision.code == ErrorCode.ACCESS_DENIED
    assert decision.reason == "Cohort has ended"


@pytest.mark.asyncio
async def test_extension_reopens_the_window(db, factory) -> None:
    tree = await factory.program_tree(end_date=NOW - timedelta(days=1))
    tree.enrollment.extended_end_date = NOW + timedelta(days=5)
    await db.commit()

    decision = await can_trainee_access_cohort_content(db, tree.trainee.id, tree.cohort.id, now=NOW)
    assert decision.allowed is True


@pytest.mark.asyncio
async def test_inactive_cohort_and_program_are_denied(db, factory) -> None:
    tree = await factory.program_tree()
    tree.cohort.is_active = False
    await db.commit()
    decision = await can_trainee_access_cohort_content(db, tree.trainee.id, tree.cohort.id)
    assert decision.reason == "Cohort is not active"

    tree.cohort.is_active = True
    tree.program.status = ProgramStatus.INACTIVE
    await db.commit()
    decision = await can_trainee_access_cohort_content(db, tree.trainee.id, tree.cohort.id)
    assert decision.reason == "Program is not active"


@pytest.mark.asyncio
async def test_cohort_gate_requires_enrollment(db, factory) -> None:
    tree = await factory.program_tree()
    outsider = await factory.user(Role.TRAINEE)
    decision = await can_trainee_access_cohort_content(db, outsider.id, tree.cohort.id)
    assert decision.allowed is False
    assert decision.reason == "Not enrolled"

    missing = await can_trainee_access_cohort_content(db, outsider.id, uuid4())
    assert missing.code == ErrorCode.NOT_FOUND


def test_effective_end_date_takes_later_of_cohort_and_extension() -> None:
    cohort = Cohort(name="c", end_date=NOW)
    assert effective_end_date(Enrollment(extended_end_date=None), cohort) == NOW
    later = NOW + timedelta(days=3)
    assert effective_end_date(Enrollment(extended_end_date=later), cohort) == later
    earlier = NOW - timedelta(days=3)
    assert effective_end_date(Enrollment(extended_end_date=earlier), cohort) == NOW
    assert effective_end_date(Enrollment(extended_end_date=later), Cohort(name="open")) is None


# ---------------------------------------------------------------------------
# Linear access helpers
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_assignment_unlocks_when_all_lessons_accessed(db, factory) -> None:
    tree = await factory.program_tree(lessons=2)
    assert not await is_assignment_unlocked(db, tree.trainee.id, tree.assignment.id)
    for lesson in tree.lessons:
        await factory.access(tree.trainee, lesson)
    assert await is_assignment_unlocked(db, tree.trainee.id, tree.assignment.id)
