"""
Read-only member directory for staff and consultants.
Needs a staff-type role and the view_profile permission; admins bypass the permission.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from core.pagination import Pagination, pagination_params
from core.permissions import require_any_role, require_permission
from models.schemas import DataEnvelope, PaginatedEnvelope
from models.user import User, UserFilters
from services.user_service import UserService, get_user_service

STAFF_ROLES = ("admin", "staff", "consultant")

router = APIRouter(
    prefix="/api/staff/users",
    tags=["staff"],
    dependencies=[
        Depends(require_any_role(STAFF_ROLES)),
        Depends(require_permission("view_profile")),
    ],
)

UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=PaginatedEnvelope[User])
async def list_members(
    service: UserServiceDep,
    pagination: Annotated[Pagination, Depends(pagination_params(max_limit=50))],
    search: str | None = None,
) -> dict[str, Any]:
    """Active members only; page size capped lower than the admin listing."""
    data, meta = await service.list_users(pagination, UserFilters(search=search, status="active"))
    return {"success": True, "data": data, "meta": meta}


@router.get("/{user_id}", response_model=DataEnvelope[User])
async def get_member(user_id: str, service: UserServiceDep) -> dict[str, Any]:
    return {"success": True, "data": await service.get_user(user_id)}
