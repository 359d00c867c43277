"""
FastAPI dependency injection: settings and the request's Actor.
Centralizes dependencies for testability and clean routes.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import SettingsDep
from core.security import decode_token
from models.actor import Actor

__all__ = ["CurrentActorOptional", "SettingsDep", "get_current_actor_optional"]

security_scheme = HTTPBearer(auto_error=False)


async def get_current_actor_optional(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
) -> Actor | None:
    """
    Actor from the bearer token, or None when no token was sent.
    A malformed or expired token raises; the error handler answers 401.
    """
    if not credentials:
        return None
    actor = Actor.from_claims(decode_token(credentials.credentials))
    request.state.actor = actor
    return actor


CurrentActorOptional = Annotated[Actor | None, Depends(get_current_actor_optional)]
