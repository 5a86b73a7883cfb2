"""Progress aggregation.

Module completion = every lesson accessed + the mandatory assignment approved.
Program completion = every module completed. Nobody edits progress by hand:
it is recomputed from lesson accesses and submissions, and the stored row acts
as a floor so that percent never drops and COMPLETED never reverts.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learning import catalog
from learning.authz import Capability, require_capability
from learning.models.course_module import Module
from learning.models.enums import AWAITING_REVIEW, ProgressStatus, SubmissionStatus
from learning.models.progress import Progress
from learning.models.submission import Submission
from learning.progress.schemas import ModuleProgress, ProgramProgress, ProgramProgressResult
from learning.results import returns_result
from shared.database.types import utcnow
from shared.database.upsert import insert_ignore
from shared.models.user import ActorContext

logger = logging.getLogger(__name__)


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half-up, for non-negative operands."""
    return (2 * numerator + denominator) // (2 * denominator)


def evaluate_module(
    lesson_count: int,
    accessed_count: int,
    has_mandatory: bool,
    submission_status: SubmissionStatus | None,
) -> tuple[ProgressStatus, int]:
    """Status and percent for one module, before the stored floor is applied.

    Each lesson is one unit, and the mandatory assignment (if any) is one
    more unit earned only when APPROVED. A module with no units is complete.
    """
    units = lesson_count + (1 if has_mandatory else 0)
    if units == 0:
        return ProgressStatus.COMPLETED, 100

    approved = has_mandatory and submission_status == SubmissionStatus.APPROVED
    earned = accessed_count + (1 if approved else 0)
    percent = round_half_up(earned * 100, units)

    lessons_done = accessed_count >= lesson_count
    if lessons_done and (approved or not has_mandatory):
        return ProgressStatus.COMPLETED, 100
    if lessons_done and has_mandatory and submission_status in AWAITING_REVIEW:
        return ProgressStatus.PENDING_REVIEW, percent
    return ProgressStatus.ACTIVE, percent


def apply_floor(
    status: ProgressStatus,
    percent: int,
    stored: Progress | None,
) -> tuple[ProgressStatus, int]:
    if stored is None:
        return status, percent
    if stored.status == ProgressStatus.COMPLETED:
        return ProgressStatus.COMPLETED, max(stored.percent_complete, percent)
    return status, max(stored.percent_complete, percent)


async def _submission_status(
    db: AsyncSession,
    trainee_id: UUID,
    assignment_id: UUID,
) -> SubmissionStatus | None:
    """APPROVED if any submission was approved, otherwise the latest status."""
    result = await db.execute(
        select(Submission.status)
        .where(
            Submission.trainee_id == trainee_id,
            Submission.assignment_id == assignment_id,
        )
        .order_by(Submission.submitted_at.desc())
    )
    statuses = list(result.scalars().all())
    if not statuses:
        return None
    if SubmissionStatus.APPROVED in statuses:
        return SubmissionStatus.APPROVED
    return statuses[0]


async def compute_module_progress(
    db: AsyncSession,
    trainee_id: UUID,
    module_id: UUID,
) -> tuple[ProgressStatus, int]:
    lessons = await catalog.ordered_lessons(db, module_id)
    accessed = await catalog.accessed_lesson_ids(db, trainee_id, (lesson.id for lesson in lessons))
    mandatory = await catalog.mandatory_assignment(db, module_id)
    submission_status = (
        await _submission_status(db, trainee_id, mandatory.id) if mandatory is not None else None
    )
    return evaluate_module(len(lessons), len(accessed), mandatory is not None, submission_status)


async def revalidate_progress(
    db: AsyncSession,
    trainee_id: UUID,
    module_id: UUID,
) -> Progress | None:
    """Recompute one module and persist it, never lowering the stored row."""
    if await db.get(Module, module_id) is None:
        return None

    computed_status, computed_percent = await compute_module_progress(db, trainee_id, module_id)

    await insert_ignore(
        db,
        Progress,
        {
            "trainee_id": trainee_id,
            "module_id": module_id,
            "status": ProgressStatus.ACTIVE,
            "percent_complete": 0,
            "updated_at": utcnow(),
        },
        conflict_columns=["trainee_id", "module_id"],
    )
    stored = await db.scalar(
        select(Progress)
        .where(Progress.trainee_id == trainee_id, Progress.module_id == module_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    status, percent = apply_floor(computed_status, computed_percent, stored)

    if status == ProgressStatus.COMPLETED and stored.completed_at is None:
        stored.completed_at = utcnow()
        logger.info("Module %s completed by trainee %s", module_id, trainee_id)
    stored.status = status
    stored.percent_complete = percent
    await db.flush()
    return stored


async def get_trainee_program_progress(
    db: AsyncSession,
    trainee_id: UUID,
    program_id: UUID,
) -> ProgramProgress:
    """Fresh per-module progress merged with the stored floor. Read-only."""
    modules = await catalog.program_modules(db, program_id)
    stored_rows: dict[UUID, Progress] = {}
    if modules:
        result = await db.execute(
            select(Progress).where(
                Progress.trainee_id == trainee_id,
                Progress.module_id.in_([m.id for m in modules]),
            )
        )
        stored_rows = {p.module_id: p for p in result.scalars().all()}

    items: list[ModuleProgress] = []
    previous_completed = True
    for module in modules:
        stored = stored_rows.get(module.id)
        status, percent = apply_floor(
            *await compute_module_progress(db, trainee_id, module.id), stored,
        )
        completed_at: datetime | None = stored.completed_at if stored is not None else None
        items.append(
            ModuleProgress(
                module_id=module.id,
                title=module.title,
                status=status,
                percent_complete=percent,
                unlocked=previous_completed,
                completed_at=completed_at,
            )
        )
        previous_completed = status == ProgressStatus.COMPLETED

    overall = round_half_up(sum(m.percent_complete for m in items), len(items)) if items else 0
    return ProgramProgress(
        program_id=program_id,
        overall_percent=overall,
        all_completed=bool(items) and all(m.status == ProgressStatus.COMPLETED for m in items),
        modules=items,
    )


@returns_result(ProgramProgressResult)
async def view_program_progress(
    db: AsyncSession,
    actor: ActorContext,
    trainee_id: UUID,
    program_id: UUID,
) -> ProgramProgressResult:
    require_capability(actor, Capability.VIEW_PROGRESS, trainee_id=trainee_id)
    progress = await get_trainee_program_progress(db, trainee_id, program_id)
    return ProgramProgressResult(progress=progress)
