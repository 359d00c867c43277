"""
Role/permission gates.

Each gate is a pure check on an ``Actor`` (``check_*``) plus a FastAPI dependency
(``require_*``) that runs the check before the route handler. Outcomes: the Actor
is returned, ``UnauthorizedError`` (401) when no Actor is attached, or
``ForbiddenError`` (403) when the rule is not met.
"""

from collections.abc import Callable, Coroutine, Iterable
from typing import Annotated, Any

from fastapi import Depends

from core.dependencies import CurrentActorOptional
from core.errors import ForbiddenError, UnauthorizedError
from models.actor import Actor
from utils.logging import get_logger

logger = get_logger(__name__)

GateDependency = Callable[[Actor | None], Coroutine[Any, Any, Actor]]


def _deny(actor: Actor, message: str, rule: str) -> ForbiddenError:
    logger.warning("access_denied", extra={"actor_id": actor.id, "rule": rule})
    return ForbiddenError(message)


def check_authenticated(actor: Actor | None) -> Actor:
    if actor is None:
        raise UnauthorizedError("Authentication required")
    return actor


def check_admin(actor: Actor | None) -> Actor:
    actor = check_authenticated(actor)
    if not actor.is_admin:
        raise _deny(actor, "Access denied. Admin privileges required.", "admin")
    return actor


def check_any_role(actor: Actor | None, allowed: Iterable[str]) -> Actor:
    actor = check_authenticated(actor)
    allowed_roles = _ordered(allowed)
    if not actor.has_any_role(frozenset(allowed_roles)):
        raise _deny(
            actor,
            f"Access denied. Required roles: {', '.join(allowed_roles)}",
            "any_role",
        )
    return actor


def check_permission(actor: Actor | None, permission: str) -> Actor:
    """Admins (by effective role set) bypass; everyone else needs ``permissions[permission] is True``."""
    actor = check_authenticated(actor)
    if actor.bypasses_permissions or actor.has_permission(permission):
        return actor
    raise _deny(actor, f"Access denied. Required permission: {permission}", "permission")


def _ordered(allowed: Iterable[str]) -> tuple[str, ...]:
    # Sets have no stable order; sort them so messages are deterministic
    if isinstance(allowed, (set, frozenset)):
        return tuple(sorted(allowed))
    return tuple(dict.fromkeys(allowed))


async def require_authenticated(actor: CurrentActorOptional) -> Actor:
    return check_authenticated(actor)


async def require_admin(actor: CurrentActorOptional) -> Actor:
    return check_admin(actor)


def require_any_role(allowed: Iterable[str]) -> GateDependency:
    """Dependency factory: pass when the Actor holds at least one of ``allowed``."""
    allowed_roles = _ordered(allowed)

    async def dependency(actor: CurrentActorOptional) -> Actor:
        return check_any_role(actor, allowed_roles)

    return dependency


def require_permission(permission: str) -> GateDependency:
    """Dependency factory: pass when the Actor is admin or holds ``permission``."""

    async def dependency(actor: CurrentActorOptional) -> Actor:
        return check_permission(actor, permission)

    return dependency


AdminActor = Annotated[Actor, Depends(require_admin)]
