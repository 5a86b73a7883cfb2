from uuid import UUID

from pydantic import BaseModel, ConfigDict

from shared.constants import Role


class ActorContext(BaseModel):
    """Request-scoped caller identity, decoded from the JWT by the auth dependency.

    Passed explicitly into every service entry point.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    actor_id: UUID
    role: Role
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_mentor(self) -> bool:
        return self.role == Role.MENTOR

    @property
    def is_trainee(self) -> bool:
        return self.role == Role.TRAINEE
