from shared.models.user import ActorContext

__all__ = ["ActorContext"]
