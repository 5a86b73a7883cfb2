from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from conftest import actor_for
from learning.access.service import can_trainee_access_cohort_content
from learning.enrollments.service import (
    enroll_trainees,
    extend_enrollment_deadline,
    list_reminder_candidates,
    record_reminder,
    set_enrollment_at_risk,
)
from learning.exceptions import ErrorCode
from learning.models import AuditLog, Enrollment, Progress
from learning.models.enums import ProgressStatus
from shared.constants import Role

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def _audit_count(db, action: str) -> int:
    return await db.scalar(select(func.count()).select_from(AuditLog).where(AuditLog.action == action))


# ---------------------------------------------------------------------------
# At-risk flag
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_flag_at_risk_is_idempotent_and_audited(db, factory) -> None:
    tree = await factory.program_tree()
    mentor = actor_for(tree.mentor)

    first = await set_enrollment_at_risk(db, mentor, tree.enrollment.id, True)
    second = await set_enrollment_at_risk(db, mentor, tree.enrollment.id, True)

    assert first.ok and first.enrollment.at_risk is True
    assert second.ok and second.enrollment.at_risk is True
    assert await _audit_count(db, "ENROLLMENT_AT_RISK") == 2

    cleared = await set_enrollment_at_risk(db, actor_for(tree.admin), tree.enrollment.id, False)
    assert cleared.enrollment.at_risk is False


@pytest.mark.asyncio
async def test_flag_at_risk_does_not_touch_progress(db, factory) -> None:
    tree = await factory.program_tree()
    await set_enrollment_at_risk(db, actor_for(tree.mentor), tree.enrollment.id, True)
    count = await db.scalar(select(func.count()).select_from(Progress))
    assert count == 0


@pytest.mark.asyncio
async def test_flag_at_risk_requires_cohort_mentor(db, factory) -> None:
    tree = await factory.program_tree()
    stranger = await factory.user(Role.MENTOR)

    denied = await set_enrollment_at_risk(db, actor_for(stranger), tree.enrollment.id, True)
    assert denied.ok is False
    assert denied.code == ErrorCode.FORBIDDEN

    missing = await set_enrollment_at_risk(db, actor_for(tree.admin), uuid4(), True)
    assert missing.code == ErrorCode.NOT_FOUND


# ---------------------------------------------------------------------------
# Deadline extension
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_extension_must_move_deadline_forward(db, factory) -> None:
    end = NOW - timedelta(days=1)
    tree = await factory.program_tree(end_date=end)
    admin = actor_for(tree.admin)

    same = await extend_enrollment_deadline(db, admin, tree.enrollment.id, end)
    assert same.ok is False
    assert same.code == ErrorCode.CONFLICT
    assert same.error == "New deadline must be after current deadline"

    later = NOW + timedelta(days=7)
    extended = await extend_enrollment_deadline(db, admin, tree.enrollment.id, later)
    assert extended.ok is True
    assert extended.enrollment.extended_end_date == later
    assert extended.enrollment.effective_end_date == later
    assert await _audit_count(db, "ENROLLMENT_EXTEND_DEADLINE") == 1
    await db.commit()

    decision = await can_trainee_access_cohort_content(db, tree.trainee.id, tree.cohort.id, now=NOW)
    assert decision.allowed is True

    backwards = await extend_enrollment_deadline(db, admin, tree.enrollment.id, later - timedelta(days=1))
    assert backwards.code == ErrorCode.CONFLICT


@pytest.mark.asyncio
async def test_extension_needs_a_cohort_end_date(db, factory) -> None:
    tree = await factory.program_tree()
    result = await extend_enrollment_deadline(db, actor_for(tree.admin), tree.enrollment.id, NOW)
    assert result.ok is False
    assert result.code == ErrorCode.CONFLICT
    assert result.error == "Cohort has no end date to extend"


@pytest.mark.asyncio
async def test_mentor_cannot_extend_deadline(db, factory) -> None:
    tree = await factory.program_tree(end_date=NOW)
    result = await extend_enrollment_deadline(
        db, actor_for(tree.mentor), tree.enrollment.id, NOW + timedelta(days=1),
    )
    assert result.code == ErrorCode.FORBIDDEN


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_record_reminder_sets_timestamp(db, factory) -> None:
    tree = await factory.program_tree()
    result = await record_reminder(db, actor_for(tree.mentor), tree.enrollment.id, now=NOW)
    assert result.ok is True
    assert result.last_reminder_at == NOW
    assert tree.trainee.name in result.message
    assert await _audit_count(db, "ENROLLMENT_REMINDER") == 1


@pytest.mark.asyncio
async def test_reminder_candidates_by_role(db, factory) -> None:
    tree = await factory.program_tree()
    other_trainee = await factory.user(Role.TRAINEE)
    other_cohort = await factory.cohort(tree.program)
    flagged = await factory.enrollment(other_trainee, other_cohort)
    flagged.at_risk = True
    await db.commit()

    mentor_view = await list_reminder_candidates(db, actor_for(tree.mentor))
    assert [e.id for e in mentor_view.enrollments] == [tree.enrollment.id]
    assert mentor_view.enrollments[0].trainee_email == tree.trainee.email
    assert mentor_view.enrollments[0].program_name == tree.program.name

    admin_view = await list_reminder_candidates(db, actor_for(tree.admin))
    assert [e.id for e in admin_view.enrollments] == [flagged.id]

    trainee_view = await list_reminder_candidates(db, actor_for(tree.trainee))
    assert trainee_view.code == ErrorCode.FORBIDDEN


# ---------------------------------------------------------------------------
# Bulk enrollment
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_enroll_trainees_skips_non_trainees_and_seeds_progress(db, factory) -> None:
    tree = await factory.program_tree(modules=2)
    cohort = await factory.cohort(tree.program, mentor=tree.mentor)
    newcomer = await factory.user(Role.TRAINEE)
    unknown = uuid4()

    result = await enroll_trainees(
        db, actor_for(tree.admin), cohort.id,
        [newcomer.id, tree.mentor.id, unknown, newcomer.id],
    )
    assert result.ok is True
    assert result.enrolled == [newcomer.id]
    assert result.skipped == [tree.mentor.id, unknown]

    rows = (
        await db.execute(select(Progress).where(Progress.trainee_id == newcomer.id))
    ).scalars().all()
    assert {p.module_id for p in rows} == {m.module.id for m in tree.modules}
    assert all(p.status == ProgressStatus.ACTIVE and p.percent_complete == 0 for p in rows)

    again = await enroll_trainees(db, actor_for(tree.admin), cohort.id, [newcomer.id])
    assert again.enrolled == []
    assert again.already_enrolled == [newcomer.id]
    count = await db.scalar(
        select(func.count()).select_from(Enrollment).where(Enrollment.trainee_id == newcomer.id)
    )
    assert count == 1


@pytest.mark.asyncio
async def test_only_admins_enroll(db, factory) -> None:
    tree = await factory.program_tree()
    result = await enroll_trainees(db, actor_for(tree.mentor), tree.cohort.id, [tree.trainee.id])
    assert result.code == ErrorCode.FORBIDDEN

    missing = await enroll_trainees(db, actor_for(tree.admin), uuid4(), [tree.trainee.id])
    assert missing.code == ErrorCode.NOT_FOUND
