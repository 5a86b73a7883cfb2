from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from shared.auth.config import AuthSettings
from shared.constants import Role
from shared.models.user import ActorContext

http_bearer = HTTPBearer(auto_error=False)


def get_auth_settings() -> AuthSettings:
    return AuthSettings()


def _decode_token(token: str, settings: AuthSettings) -> dict:
    payload = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        audience=settings.audience,
    )
    return payload


def _payload_to_actor(payload: dict) -> ActorContext:
    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Missing sub in token")
    role_raw = payload.get("role")
    if role_raw is None:
        raise ValueError("Missing role in token")
    return ActorContext(
        actor_id=UUID(user_id),
        role=Role(str(role_raw).upper()),
        email=payload.get("email") or "",
    )


def create_access_token(actor: ActorContext, settings: AuthSettings) -> str:
    """Issue a token for ``actor``. Used by scripts and tests; login lives in the identity service."""
    claims = {
        "sub": str(actor.actor_id),
        "role": actor.role.value,
        "email": actor.email,
        "iss": settings.issuer,
        "aud": settings.audience,
    }
    return jwt.encode(claims, settings.secret, algorithm=settings.algorithm)


async def get_actor_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: AuthSettings = Depends(get_auth_settings),
) -> ActorContext | None:
    if not credentials or not credentials.credentials:
        return None
    try:
        payload = _decode_token(credentials.credentials, settings)
        return _payload_to_actor(payload)
    except (JWTError, ValueError, KeyError):
        return None


async def get_actor_required(
    actor: ActorContext | None = Depends(get_actor_optional),
) -> ActorContext:
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor
