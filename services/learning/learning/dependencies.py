from functools import lru_cache

from fastapi import Depends

from learning.config import Settings
from shared.auth.dependencies import get_actor_required
from shared.models.user import ActorContext


@lru_cache
def get_settings() -> Settings:
    return Settings()


async def get_current_actor(
    actor: ActorContext = Depends(get_actor_required),
) -> ActorContext:
    return actor
