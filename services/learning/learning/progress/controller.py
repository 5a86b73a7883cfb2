"""Progress controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learning.http_errors import unwrap
from learning.progress import service
from learning.progress.schemas import ProgramProgress
from shared.models.user import ActorContext


async def get_program_progress(
    db: AsyncSession,
    actor: ActorContext,
    program_id: UUID,
    trainee_id: UUID | None,
) -> ProgramProgress:
    result = unwrap(
        await service.view_program_progress(db, actor, trainee_id or actor.actor_id, program_id)
    )
    return result.progress
