"""
Admin user management API. Every route requires an admin Actor.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status

from core.errors import async_handler
from core.pagination import Pagination, pagination_params
from core.permissions import AdminActor, require_admin
from models.schemas import DataEnvelope, PaginatedEnvelope
from models.user import StatusChange, User, UserCreate, UserFilters, UserUpdate
from services.user_service import UserService, get_user_service

router = APIRouter(
    prefix="/api/admin/users",
    tags=["users"],
    dependencies=[Depends(require_admin)],
)

UserServiceDep = Annotated[UserService, Depends(get_user_service)]
PaginationDep = Annotated[Pagination, Depends(pagination_params())]


@router.get("", response_model=PaginatedEnvelope[User])
@async_handler
async def list_users(
    request: Request,
    service: UserServiceDep,
    pagination: PaginationDep,
    search: str | None = Query(default=None, max_length=100),
    status_filter: str | None = Query(default=None, alias="status"),
    role: str | None = None,
    membership: str | None = None,
) -> dict[str, Any]:
    """List users. Query: page, limit, sortBy, sortOrder, search, status, role, membership."""
    filters = UserFilters(search=search, status=status_filter, role=role, membership=membership)
    data, meta = await service.list_users(pagination, filters)
    return {"success": True, "data": data, "meta": meta}


@router.post("", response_model=DataEnvelope[User], status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, service: UserServiceDep, actor: AdminActor) -> dict[str, Any]:
    user = await service.create_user(body, created_by=actor.id)
    return {"success": True, "data": user}


@router.get("/{user_id}", response_model=DataEnvelope[User])
async def get_user(user_id: str, service: UserServiceDep) -> dict[str, Any]:
    return {"success": True, "data": await service.get_user(user_id)}


@router.patch("/{user_id}", response_model=DataEnvelope[User])
async def update_user(
    user_id: str,
    body: UserUpdate,
    service: UserServiceDep,
    actor: AdminActor,
) -> dict[str, Any]:
    user = await service.update_user(user_id, body, updated_by=actor.id)
    return {"success": True, "data": user}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    service: UserServiceDep,
    actor: AdminActor,
    hard: bool = False,
) -> dict[str, Any]:
    """Soft delete by default; ?hard=true removes the record."""
    await service.delete_user(user_id, hard=hard, deleted_by=actor.id)
    return {"success": True, "message": "User permanently deleted" if hard else "User deleted"}


@router.post("/{user_id}/status", response_model=DataEnvelope[User])
async def change_status(user_id: str, body: StatusChange, service: UserServiceDep) -> dict[str, Any]:
    user = await service.change_status(user_id, body.action, body.reason)
    return {"success": True, "data": user}
