"""Write-time structure rules.

- Lesson order is unique within a module; ties are rejected, not resolved.
- A module has at most one mandatory assignment, and a complete module has
  at least one lesson and exactly one mandatory assignment.
- A program is ACTIVE only once it has a cohort.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learning import catalog
from learning.audit.service import AuditAction, log_audit
from learning.authz import Capability, require_capability
from learning.exceptions import (
    DuplicateLessonOrderError,
    InvalidCohortWindowError,
    MandatoryAssignmentExistsError,
    ModuleNotFoundError,
    NotAMentorError,
    ProgramHasNoCohortError,
    ProgramNotFoundError,
    UserNotFoundError,
)
from learning.models.assignment import Assignment
from learning.models.cohort import Cohort
from learning.models.course_module import Module
from learning.models.enums import ProgramStatus
from learning.models.lesson import Lesson
from learning.models.program import Program
from learning.models.user import User
from learning.results import returns_result
from learning.structure.schemas import (
    AssignmentResponse,
    AssignmentResult,
    CohortResponse,
    CohortResult,
    LessonResponse,
    LessonResult,
    ModuleValidation,
    ProgramStatusResult,
    StructureValidationResult,
)
from shared.constants import Role
from shared.database.types import ensure_utc
from shared.models.user import ActorContext

logger = logging.getLogger(__name__)


async def _get_module(db: AsyncSession, module_id: UUID) -> Module:
    module = await db.get(Module, module_id)
    if module is None:
        raise ModuleNotFoundError(str(module_id))
    return module


# ---------------------------------------------------------------------------
# Lessons & assignments
# ---------------------------------------------------------------------------


@returns_result(LessonResult)
async def create_lesson(
    db: AsyncSession,
    actor: ActorContext,
    module_id: UUID,
    title: str,
    sort_order: int,
    content_body: str | None = None,
) -> LessonResult:
    require_capability(actor, Capability.MANAGE_STRUCTURE)
    await _get_module(db, module_id)

    taken = await db.scalar(
        select(Lesson.id).where(Lesson.module_id == module_id, Lesson.sort_order == sort_order)
    )
    if taken is not None:
        raise DuplicateLessonOrderError(sort_order)

    lesson = Lesson(module_id=module_id, title=title, sort_order=sort_order, content_body=content_body)
    try:
        async with db.begin_nested():
            db.add(lesson)
    except IntegrityError as exc:
        raise DuplicateLessonOrderError(sort_order) from exc
    return LessonResult(lesson=LessonResponse.model_validate(lesson))


@returns_result(AssignmentResult)
async def create_assignment(
    db: AsyncSession,
    actor: ActorContext,
    module_id: UUID,
    title: str,
    mandatory: bool | None = None,
    due_date: datetime | None = None,
    instructions: str | None = None,
) -> AssignmentResult:
    """Create an assignment; the first one in a module is mandatory by default."""
    require_capability(actor, Capability.MANAGE_STRUCTURE)
    await _get_module(db, module_id)

    existing_mandatory = await catalog.mandatory_assignment(db, module_id)
    if mandatory is None:
        mandatory = existing_mandatory is None
    if mandatory and existing_mandatory is not None:
        raise MandatoryAssignmentExistsError()

    assignment = Assignment(
        module_id=module_id,
        title=title,
        instructions=instructions,
        due_date=ensure_utc(due_date) if due_date is not None else None,
        mandatory=mandatory,
    )
    try:
        async with db.begin_nested():
            db.add(assignment)
    except IntegrityError as exc:
        raise MandatoryAssignmentExistsError() from exc
    return AssignmentResult(assignment=AssignmentResponse.model_validate(assignment))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


async def validate_module(db: AsyncSession, module: Module) -> ModuleValidation:
    lesson_count = await db.scalar(
        select(func.count()).select_from(Lesson).where(Lesson.module_id == module.id)
    ) or 0
    mandatory_count = await db.scalar(
        select(func.count())
        .select_from(Assignment)
        .where(Assignment.module_id == module.id, Assignment.mandatory.is_(True))
    ) or 0

    errors = []
    if lesson_count < 1:
        errors.append("Module must contain at least one lesson")
    if mandatory_count != 1:
        errors.append("Module must have exactly one mandatory assignment")
    return ModuleValidation(
        module_id=module.id,
        title=module.title,
        complete=not errors,
        lesson_count=lesson_count,
        mandatory_assignment_count=mandatory_count,
        errors=errors,
    )


@returns_result(StructureValidationResult)
async def validate_program_structure(
    db: AsyncSession,
    actor: ActorContext,
    program_id: UUID,
) -> StructureValidationResult:
    require_capability(actor, Capability.MANAGE_STRUCTURE)
    if await db.get(Program, program_id) is None:
        raise ProgramNotFoundError(str(program_id))
    modules = [await validate_module(db, m) for m in await catalog.program_modules(db, program_id)]
    return StructureValidationResult(
        program_id=program_id,
        valid=all(m.complete for m in modules),
        modules=modules,
    )


# ---------------------------------------------------------------------------
# Cohorts & program lifecycle
# ---------------------------------------------------------------------------


async def _activate(db: AsyncSession, actor: ActorContext, program: Program, trigger: str) -> None:
    if program.status == ProgramStatus.ACTIVE:
        return
    program.status = ProgramStatus.ACTIVE
    await db.flush()
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.PROGRAM_ACTIVATE,
        entity_type="Program",
        entity_id=program.id,
        details={"trigger": trigger},
    )


@returns_result(CohortResult)
async def create_cohort(
    db: AsyncSession,
    actor: ActorContext,
    name: str,
    program_id: UUID | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    mentor_id: UUID | None = None,
) -> CohortResult:
    """Create a cohort; the program's first cohort activates the program."""
    require_capability(actor, Capability.MANAGE_COHORTS)
    start_date = ensure_utc(start_date) if start_date is not None else None
    end_date = ensure_utc(end_date) if end_date is not None else None
    if start_date is not None and end_date is not None and end_date <= start_date:
        raise InvalidCohortWindowError()

    program = None
    if program_id is not None:
        program = await db.get(Program, program_id)
        if program is None:
            raise ProgramNotFoundError(str(program_id))
    if mentor_id is not None:
        mentor = await db.get(User, mentor_id)
        if mentor is None:
            raise UserNotFoundError(str(mentor_id))
        if mentor.role != Role.MENTOR:
            raise NotAMentorError()

    cohort = Cohort(
        name=name,
        program_id=program_id,
        mentor_id=mentor_id,
        start_date=start_date,
        end_date=end_date,
    )
    db.add(cohort)
    await db.flush()
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.COHORT_CREATE,
        entity_type="Cohort",
        entity_id=cohort.id,
        details={"name": name, "program_id": str(program_id) if program_id else None},
    )
    if program is not None:
        await _activate(db, actor, program, trigger="cohort_created")
    return CohortResult(
        cohort=CohortResponse.model_validate(cohort),
        program_status=program.status if program is not None else None,
    )


@returns_result(ProgramStatusResult)
async def set_program_active(
    db: AsyncSession,
    actor: ActorContext,
    program_id: UUID,
) -> ProgramStatusResult:
    require_capability(actor, Capability.MANAGE_COHORTS)
    program = await db.get(Program, program_id)
    if program is None:
        raise ProgramNotFoundError(str(program_id))
    cohort_count = await db.scalar(
        select(func.count()).select_from(Cohort).where(Cohort.program_id == program_id)
    )
    if not cohort_count:
        raise ProgramHasNoCohortError()
    await _activate(db, actor, program, trigger="manual")
    return ProgramStatusResult(program_id=program.id, status=program.status)
