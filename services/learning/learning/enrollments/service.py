"""Enrollment risk flags, deadline extensions, reminders and bulk enrollment.

None of these touch Progress beyond seeding it at enrollment time.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learning import catalog
from learning.access.service import effective_end_date
from learning.audit.service import AuditAction, log_audit
from learning.authz import Capability, require_capability
from learning.enrollments.schemas import (
    BulkEnrollmentResult,
    EnrollmentResponse,
    EnrollmentResult,
    ReminderCandidate,
    ReminderCandidatesResult,
    ReminderResult,
)
from learning.exceptions import (
    CohortNotFoundError,
    DeadlineNotExtendedError,
    EnrollmentNotFoundError,
    NoDeadlineToExtendError,
    PermissionDeniedError,
)
from learning.models.cohort import Cohort
from learning.models.enrollment import Enrollment
from learning.models.enums import ProgressStatus
from learning.models.program import Program
from learning.models.progress import Progress
from learning.models.user import User
from learning.results import returns_result
from shared.constants import Role
from shared.database.types import ensure_utc, utcnow
from shared.database.upsert import insert_ignore
from shared.models.user import ActorContext

logger = logging.getLogger(__name__)


def _to_response(enrollment: Enrollment, cohort: Cohort) -> EnrollmentResponse:
    response = EnrollmentResponse.model_validate(enrollment)
    response.effective_end_date = effective_end_date(enrollment, cohort)
    return response


async def _load(db: AsyncSession, enrollment_id: UUID) -> tuple[Enrollment, Cohort]:
    enrollment = await db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(str(enrollment_id))
    cohort = await db.get(Cohort, enrollment.cohort_id)
    return enrollment, cohort


@returns_result(EnrollmentResult)
async def set_enrollment_at_risk(
    db: AsyncSession,
    actor: ActorContext,
    enrollment_id: UUID,
    at_risk: bool,
) -> EnrollmentResult:
    enrollment, cohort = await _load(db, enrollment_id)
    require_capability(actor, Capability.FLAG_AT_RISK, cohort=cohort)

    changed = enrollment.at_risk != at_risk
    enrollment.at_risk = at_risk
    await db.flush()
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.ENROLLMENT_AT_RISK,
        entity_type="Enrollment",
        entity_id=enrollment.id,
        details={"trainee_id": str(enrollment.trainee_id), "at_risk": at_risk, "changed": changed},
    )
    return EnrollmentResult(enrollment=_to_response(enrollment, cohort))


@returns_result(EnrollmentResult)
async def extend_enrollment_deadline(
    db: AsyncSession,
    actor: ActorContext,
    enrollment_id: UUID,
    new_end_date: datetime,
) -> EnrollmentResult:
    """Push the trainee's deadline strictly past the current effective end."""
    enrollment, cohort = await _load(db, enrollment_id)
    require_capability(actor, Capability.EXTEND_DEADLINE, cohort=cohort)

    new_end_date = ensure_utc(new_end_date)
    current = effective_end_date(enrollment, cohort)
    if current is None:
        raise NoDeadlineToExtendError()
    if new_end_date <= current:
        raise DeadlineNotExtendedError()

    enrollment.extended_end_date = new_end_date
    await db.flush()
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.ENROLLMENT_EXTEND_DEADLINE,
        entity_type="Enrollment",
        entity_id=enrollment.id,
        details={"previous": current.isoformat(), "extended_end_date": new_end_date.isoformat()},
    )
    return EnrollmentResult(enrollment=_to_response(enrollment, cohort))


@returns_result(ReminderResult)
async def record_reminder(
    db: AsyncSession,
    actor: ActorContext,
    enrollment_id: UUID,
    *,
    now: datetime | None = None,
) -> ReminderResult:
    """Record that a human reminder was sent. No message is delivered from here."""
    enrollment, cohort = await _load(db, enrollment_id)
    require_capability(actor, Capability.SEND_REMINDER, cohort=cohort)

    enrollment.last_reminder_at = ensure_utc(now) if now is not None else utcnow()
    await db.flush()
    trainee = await db.get(User, enrollment.trainee_id)
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.ENROLLMENT_REMINDER,
        entity_type="Enrollment",
        entity_id=enrollment.id,
    )
    return ReminderResult(
        enrollment_id=enrollment.id,
        last_reminder_at=enrollment.last_reminder_at,
        message=f"Reminder recorded for {trainee.name if trainee else enrollment.trainee_id}",
    )


@returns_result(ReminderCandidatesResult)
async def list_reminder_candidates(
    db: AsyncSession,
    actor: ActorContext,
) -> ReminderCandidatesResult:
    """Mentors see every enrollment in cohorts they mentor; admins see at-risk ones."""
    stmt = (
        select(Enrollment, Cohort, User, Program.name)
        .join(Cohort, Enrollment.cohort_id == Cohort.id)
        .join(User, Enrollment.trainee_id == User.id)
        .outerjoin(Program, Cohort.program_id == Program.id)
        .order_by(Enrollment.enrolled_at.desc())
    )
    if actor.is_admin:
        stmt = stmt.where(Enrollment.at_risk.is_(True))
    elif actor.is_mentor:
        stmt = stmt.where(Cohort.mentor_id == actor.actor_id)
    else:
        raise PermissionDeniedError()

    rows = (await db.execute(stmt)).all()
    candidates = []
    for enrollment, cohort, trainee, program_name in rows:
        base = _to_response(enrollment, cohort)
        candidates.append(
            ReminderCandidate(
                **base.model_dump(),
                trainee_name=trainee.name,
                trainee_email=trainee.email,
                cohort_name=cohort.name,
                program_name=program_name,
            )
        )
    return ReminderCandidatesResult(enrollments=candidates)


@returns_result(BulkEnrollmentResult)
async def enroll_trainees(
    db: AsyncSession,
    actor: ActorContext,
    cohort_id: UUID,
    trainee_ids: list[UUID],
) -> BulkEnrollmentResult:
    """Enroll many users at once; non-trainees are skipped, not treated as errors.

    Every enrolled trainee gets an ACTIVE/0 Progress row for each module of the
    cohort's program. Re-enrolling is a no-op.
    """
    require_capability(actor, Capability.ENROLL_TRAINEES)
    cohort = await db.get(Cohort, cohort_id)
    if cohort is None:
        raise CohortNotFoundError(str(cohort_id))

    unique_ids = list(dict.fromkeys(trainee_ids))
    users = {
        u.id: u
        for u in (await db.execute(select(User).where(User.id.in_(unique_ids)))).scalars().all()
    }
    modules = await catalog.program_modules(db, cohort.program_id) if cohort.program_id else []

    result = BulkEnrollmentResult(cohort_id=cohort_id)
    now = utcnow()
    for trainee_id in unique_ids:
        user = users.get(trainee_id)
        if user is None or user.role != Role.TRAINEE:
            result.skipped.append(trainee_id)
            continue
        created = await insert_ignore(
            db,
            Enrollment,
            {"trainee_id": trainee_id, "cohort_id": cohort_id, "enrolled_at": now},
            conflict_columns=["trainee_id", "cohort_id"],
        )
        (result.enrolled if created else result.already_enrolled).append(trainee_id)
        for module in modules:
            await insert_ignore(
                db,
                Progress,
                {
                    "trainee_id": trainee_id,
                    "module_id": module.id,
                    "status": ProgressStatus.ACTIVE,
                    "percent_complete": 0,
                    "updated_at": now,
                },
                conflict_columns=["trainee_id", "module_id"],
            )

    if result.skipped:
        logger.info("Skipped %d non-trainee ids enrolling into cohort %s", len(result.skipped), cohort_id)
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.TRAINEE_ENROLL,
        entity_type="Cohort",
        entity_id=cohort_id,
        details={
            "enrolled": [str(i) for i in result.enrolled],
            "skipped": [str(i) for i in result.skipped],
        },
    )
    return result
