"""Structure controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learning.http_errors import unwrap
from learning.structure import service
from learning.structure.schemas import (
    AssignmentResponse,
    CohortResult,
    CreateAssignmentRequest,
    CreateCohortRequest,
    CreateLessonRequest,
    LessonResponse,
    ProgramStatusResult,
    StructureValidationResult,
)
from shared.models.user import ActorContext


async def create_lesson(
    db: AsyncSession, actor: ActorContext, body: CreateLessonRequest,
) -> LessonResponse:
    result = unwrap(
        await service.create_lesson(
            db, actor, body.module_id, body.title, body.sort_order, body.content_body,
        )
    )
    return result.lesson


async def create_assignment(
    db: AsyncSession, actor: ActorContext, body: CreateAssignmentRequest,
) -> AssignmentResponse:
    result = unwrap(
        await service.create_assignment(
            db, actor, body.module_id, body.title,
            mandatory=body.mandatory, due_date=body.due_date, instructions=body.instructions,
        )
    )
    return result.assignment


async def create_cohort(
    db: AsyncSession, actor: ActorContext, body: CreateCohortRequest,
) -> CohortResult:
    return unwrap(
        await service.create_cohort(
            db, actor, body.name,
            program_id=body.program_id,
            start_date=body.start_date,
            end_date=body.end_date,
            mentor_id=body.mentor_id,
        )
    )


async def validate_program(
    db: AsyncSession, actor: ActorContext, program_id: UUID,
) -> StructureValidationResult:
    return unwrap(await service.validate_program_structure(db, actor, program_id))


async def activate_program(
    db: AsyncSession, actor: ActorContext, program_id: UUID,
) -> ProgramStatusResult:
    return unwrap(await service.set_program_active(db, actor, program_id))
