"""Progress router: per-program module progress for a trainee."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from learning.database import get_db
from learning.dependencies import get_current_actor
from learning.progress import controller
from learning.progress.schemas import ProgramProgress
from shared.models.user import ActorContext

router = APIRouter(prefix="/progress", tags=["Progress"])


@router.get(
    "/programs/{program_id}",
    response_model=ProgramProgress,
    summary="Program progress",
    description="Per-module status and percent, overall percent and completion flag. "
    "Trainees see their own progress; mentors and admins pass `trainee_id`. "
    "An unknown program yields an empty module list.",
)
async def get_program_progress(
    program_id: UUID,
    trainee_id: UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ProgramProgress:
    return await controller.get_program_progress(db, actor, program_id, trainee_id)
