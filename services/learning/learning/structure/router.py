"""Structure router: lessons, assignments, cohorts and program activation."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from learning.database import get_db
from learning.dependencies import get_current_actor
from learning.structure import controller
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

router = APIRouter(tags=["Structure"])


@router.post(
    "/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a lesson",
    description="`sort_order` must be unique within the module; duplicates return 409.",
)
async def create_lesson(
    body: CreateLessonRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> LessonResponse:
    return await controller.create_lesson(db, actor, body)


@router.post(
    "/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an assignment",
    description="A module holds at most one mandatory assignment; a second one returns 409.",
)
async def create_assignment(
    body: CreateAssignmentRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> AssignmentResponse:
    return await controller.create_assignment(db, actor, body)


@router.post(
    "/cohorts",
    response_model=CohortResult,
    status_code=status.HTTP_201_CREATED,
    summary="Create a cohort (admin)",
    description="The first cohort of a program activates the program.",
)
async def create_cohort(
    body: CreateCohortRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> CohortResult:
    return await controller.create_cohort(db, actor, body)


@router.get(
    "/programs/{program_id}/structure",
    response_model=StructureValidationResult,
    summary="Validate program structure",
    description="Each module needs at least one lesson and exactly one mandatory assignment.",
)
async def validate_program(
    program_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> StructureValidationResult:
    return await controller.validate_program(db, actor, program_id)


@router.post(
    "/programs/{program_id}/activate",
    response_model=ProgramStatusResult,
    summary="Activate a program (admin)",
    description="Returns 409 while the program has no cohort.",
)
async def activate_program(
    program_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ProgramStatusResult:
    return await controller.activate_program(db, actor, program_id)
