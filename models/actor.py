"""
The authenticated principal attached to a request.
"""

from functools import cached_property
from typing import Any

from pydantic import BaseModel, Field

ADMIN_ROLE = "admin"


class Actor(BaseModel):
    """
    Who is making the request: admin, staff, consultant or member.

    Tokens may carry a single ``role``, a ``roles`` list, or both. The effective
    role set is ``roles`` when that claim is present (even if empty), otherwise
    ``{role}``. Computed once and reused by every gate.
    """

    id: str | None = None
    role: str | None = None
    roles: list[str] | None = None
    permissions: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True, "extra": "ignore"}

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Actor":
        return cls(
            id=claims.get("sub"),
            role=claims.get("role"),
            roles=claims.get("roles"),
            permissions=claims.get("permissions") or {},
        )

    @cached_property
    def effective_roles(self) -> frozenset[str]:
        if self.roles is not None:
            return frozenset(self.roles)
        return frozenset({self.role}) if self.role else frozenset()

    @cached_property
    def is_admin(self) -> bool:
        """Admin gate rule: admin in the role set or a single admin role claim."""
        return ADMIN_ROLE in self.effective_roles or self.role == ADMIN_ROLE

    @cached_property
    def bypasses_permissions(self) -> bool:
        # Only the effective role set counts; a stray role claim beside roles does not
        return ADMIN_ROLE in self.effective_roles

    def has_any_role(self, allowed: frozenset[str] | set[str]) -> bool:
        return not self.effective_roles.isdisjoint(allowed)

    def has_permission(self, permission: str) -> bool:
        # Only a literal True grants; truthy strings or 1 do not
        return self.permissions.get(permission) is True
