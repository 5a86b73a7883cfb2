from uuid import uuid4

import pytest
from sqlalchemy import select

from conftest import actor_for
from learning.access.service import record_lesson_access
from learning.exceptions import ErrorCode
from learning.models import Progress
from learning.models.enums import ProgressStatus, SubmissionStatus
from learning.progress.service import (
    evaluate_module,
    get_trainee_program_progress,
    revalidate_progress,
    round_half_up,
    view_program_progress,
)
from learning.submissions.schemas import GradeDecision
from learning.submissions.service import grade_submission, submit_assignment
from shared.constants import Role


# ---------------------------------------------------------------------------
# Per-module rule
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("lessons", "accessed", "mandatory", "submission", "expected"),
    [
        (0, 0, False, None, (ProgressStatus.COMPLETED, 100)),
        (3, 1, False, None, (ProgressStatus.ACTIVE, 33)),
        (3, 3, False, None, (ProgressStatus.COMPLETED, 100)),
        (2, 2, True, None, (ProgressStatus.ACTIVE, 67)),
        (2, 2, True, SubmissionStatus.PENDING, (ProgressStatus.PENDING_REVIEW, 67)),
        (2, 2, True, SubmissionStatus.PENDING_ADMIN_APPROVAL, (ProgressStatus.PENDING_REVIEW, 67)),
        (2, 2, True, SubmissionStatus.REJECTED, (ProgressStatus.ACTIVE, 67)),
        (2, 2, True, SubmissionStatus.APPROVED, (ProgressStatus.COMPLETED, 100)),
        (2, 1, True, SubmissionStatus.APPROVED, (ProgressStatus.ACTIVE, 67)),
        (0, 0, True, SubmissionStatus.PENDING, (ProgressStatus.PENDING_REVIEW, 0)),
        (7, 1, True, None, (ProgressStatus.ACTIVE, 13)),
    ],
)
def test_evaluate_module(lessons, accessed, mandatory, submission, expected) -> None:
    assert evaluate_module(lessons, accessed, mandatory, submission) == expected


def test_round_half_up() -> None:
    assert round_half_up(1, 2) == 1
    assert round_half_up(5, 2) == 3
    assert round_half_up(100, 3) == 33
    assert round_half_up(200, 3) == 67


# ---------------------------------------------------------------------------
# Program aggregation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unknown_program_yields_empty_progress(db, factory) -> None:
    trainee = await factory.user(Role.TRAINEE)
    progress = await get_trainee_program_progress(db, trainee.id, uuid4())
    assert progress.modules == []
    assert progress.overall_percent == 0
    assert progress.all_completed is False


@pytest.mark.asyncio
async def test_modules_follow_course_then_module_order(db, factory) -> None:
    trainee = await factory.user(Role.TRAINEE)
    program = await factory.program()
    later_course = await factory.course(program, sort_order=1)
    earlier_course = await factory.course(program, sort_order=0)
    await factory.module(later_course, sort_order=0, title="second")
    await factory.module(earlier_course, sort_order=5, title="first")

    progress = await get_trainee_program_progress(db, trainee.id, program.id)
    assert [m.title for m in progress.modules] == ["first", "second"]
    assert [m.unlocked for m in progress.modules] == [True, True]


@pytest.mark.asyncio
async def test_overall_percent_and_completion(db, factory) -> None:
    tree = await factory.program_tree(modules=2, lessons=2)
    first, second = tree.modules
    await factory.complete_module(tree.trainee, first)
    await factory.access(tree.trainee, second.lessons[0])

    progress = await get_trainee_program_progress(db, tree.trainee.id, tree.program.id)
    assert [m.status for m in progress.modules] == [ProgressStatus.COMPLETED, ProgressStatus.ACTIVE]
    assert [m.percent_complete for m in progress.modules] == [100, 33]
    assert progress.overall_percent == 67
    assert progress.all_completed is False
    assert progress.modules[1].unlocked is True

    await factory.complete_module(tree.trainee, second)
    progress = await get_trainee_program_progress(db, tree.trainee.id, tree.program.id)
    assert progress.all_completed is True
    assert progress.overall_percent == 100


@pytest.mark.asyncio
async def test_next_module_unlocks_after_previous_completed(db, factory) -> None:
    tree = await factory.program_tree(modules=2, lessons=1)
    first, second = tree.modules

    progress = await get_trainee_program_progress(db, tree.trainee.id, tree.program.id)
    assert [m.unlocked for m in progress.modules] == [True, False]

    await factory.access(tree.trainee, first.lessons[0])
    progress = await get_trainee_program_progress(db, tree.trainee.id, tree.program.id)
    assert progress.modules[0].status == ProgressStatus.ACTIVE
    assert progress.modules[1].unlocked is False

    await factory.complete_module(tree.trainee, first)
    progress = await get_trainee_program_progress(db, tree.trainee.id, tree.program.id)
    assert [m.unlocked for m in progress.modules] == [True, True]


@pytest.mark.asyncio
async def test_program_without_modules_is_not_completed(db, factory) -> None:
    trainee = await factory.user(Role.TRAINEE)
    program = await factory.program()
    await factory.course(program)
    progress = await get_trainee_program_progress(db, trainee.id, program.id)
    assert progress.all_completed is False


# ---------------------------------------------------------------------------
# Monotonicity
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_stored_progress_is_a_floor(db, factory) -> None:
    tree = await factory.program_tree(lessons=4)
    db.add(
        Progress(
            trainee_id=tree.trainee.id,
            module_id=tree.module.id,
            status=ProgressStatus.ACTIVE,
            percent_complete=60,
        )
    )
    await db.commit()

    progress = await get_trainee_program_progress(db, tree.trainee.id, tree.program.id)
    assert progress.modules[0].percent_complete == 60

    row = await revalidate_progress(db, tree.trainee.id, tree.module.id)
    assert row.percent_complete == 60


@pytest.mark.asyncio
async def test_completed_module_stays_completed_when_a_lesson_is_added(db, factory) -> None:
    tree = await factory.program_tree(lessons=1)
    await factory.complete_module(tree.trainee, tree.modules[0])
    row = await revalidate_progress(db, tree.trainee.id, tree.module.id)
    assert row.status == ProgressStatus.COMPLETED
    assert row.completed_at is not None
    await db.commit()

    await factory.lesson(tree.module, sort_order=1)
    row = await revalidate_progress(db, tree.trainee.id, tree.module.id)
    assert row.status == ProgressStatus.COMPLETED
    assert row.percent_complete == 100


@pytest.mark.asyncio
async def test_percent_never_decreases_across_events(db, factory) -> None:
    tree = await factory.program_tree(lessons=2)
    trainee = actor_for(tree.trainee)
    admin = actor_for(tree.admin)

    async def percent() -> int:
        row = await db.scalar(
            select(Progress)
            .where(Progress.trainee_id == tree.trainee.id, Progress.module_id == tree.module.id)
            .execution_options(populate_existing=True)
        )
        return row.percent_complete if row else 0

    seen = [await percent()]
    for lesson in tree.lessons:
        assert (await record_lesson_access(db, trainee, lesson.id)).ok
        seen.append(await percent())

    first = await submit_assignment(db, trainee, tree.assignment.id, "draft")
    seen.append(await percent())
    assert (await grade_submission(db, admin, first.submission.id, GradeDecision.REJECT)).ok
    seen.append(await percent())

    second = await submit_assignment(db, trainee, tree.assignment.id, "final")
    assert (await grade_submission(db, admin, second.submission.id, GradeDecision.APPROVE)).ok
    seen.append(await percent())

    assert seen == sorted(seen)
    assert seen[-1] == 100


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_trainee_cannot_view_someone_elses_progress(db, factory) -> None:
    tree = await factory.program_tree()
    other = await factory.user(Role.TRAINEE)

    denied = await view_program_progress(db, actor_for(other), tree.trainee.id, tree.program.id)
    assert denied.ok is False
    assert denied.code == ErrorCode.FORBIDDEN

    own = await view_program_progress(db, actor_for(tree.trainee), tree.trainee.id, tree.program.id)
    assert own.ok and own.progress.program_id == tree.program.id

    mentor = await view_program_progress(db, actor_for(tree.mentor), tree.trainee.id, tree.program.id)
    assert mentor.ok
