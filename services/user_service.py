"""
User management business logic over a process-local store.
Raises data-layer errors (CastError, DuplicateKeyError, DocumentValidationError,
NotFoundError); the HTTP layer turns them into envelopes.
"""

import secrets
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from core.errors import CastError, DocumentValidationError, DuplicateKeyError, NotFoundError
from core.pagination import Pagination, apply_pagination, build_pagination_meta
from core.security import hash_password
from models.schemas import PaginationMeta
from models.user import ALLOWED_ROLES, StatusAction, User, UserCreate, UserFilters, UserUpdate
from utils.logging import get_logger
from utils.validators import is_object_id

logger = get_logger(__name__)


def _new_id() -> str:
    return secrets.token_hex(12)


def _matches_status(user: User, status: str) -> bool:
    status = status.lower()
    if status == "active":
        return user.is_active and not user.is_suspended
    if status == "inactive":
        return not user.is_active
    if status == "suspended":
        return user.is_suspended
    if status == "pending":
        return user.is_active and not user.is_verified
    if status == "verified":
        return user.is_verified
    # Unknown statuses do not filter
    return True


def _matches_search(user: User, search: str) -> bool:
    needle = search.casefold()
    return any(
        needle in value.casefold()
        for value in (user.full_name, user.email, user.username, user.phone)
        if value
    )


class UserService:
    """
    CRUD for member records. One instance per process (see get_user_service);
    all methods run on the event loop and never await while mutating.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def _check_id(self, user_id: str) -> None:
        if not is_object_id(user_id):
            raise CastError("_id", user_id)

    def _get_live(self, user_id: str) -> User:
        self._check_id(user_id)
        user = self._users.get(user_id.lower())
        if user is None or user.deleted_at is not None:
            raise NotFoundError("User not found")
        return user

    def _check_roles(self, roles: list[str]) -> None:
        invalid = [r for r in roles if r not in ALLOWED_ROLES]
        if invalid:
            raise DocumentValidationError(
                {f"roles.{roles.index(r)}": f"`{r}` is not a valid enum value for path `roles`" for r in invalid}
            )

    def _check_unique(self, *, email: str | None, username: str | None, exclude_id: str | None = None) -> None:
        for user in self._users.values():
            if user.id == exclude_id:
                continue
            if email is not None and user.email == email:
                raise DuplicateKeyError({"email": email})
            if username is not None and user.username == username:
                raise DuplicateKeyError({"username": username})

    async def list_users(
        self,
        pagination: Pagination,
        filters: UserFilters | None = None,
        include_deleted: bool = False,
    ) -> tuple[list[dict[str, Any]], PaginationMeta]:
        filters = filters or UserFilters()
        selected = []
        for user in self._users.values():
            if not include_deleted and user.deleted_at is not None:
                continue
            if filters.search and not _matches_search(user, filters.search):
                continue
            if filters.status and not _matches_status(user, filters.status):
                continue
            if filters.role and filters.role not in user.roles:
                continue
            if filters.membership and user.membership != filters.membership:
                continue
            selected.append(user.model_dump(by_alias=True))

        page = apply_pagination(selected, pagination)
        meta = build_pagination_meta(len(selected), pagination.page, pagination.limit)
        return page, meta

    async def get_user(self, user_id: str) -> User:
        return self._get_live(user_id)

    async def create_user(self, payload: UserCreate, created_by: str | None = None) -> User:
        email = payload.email.strip().lower()
        self._check_roles(payload.roles)
        self._check_unique(email=email, username=payload.username)

        data = payload.model_dump(exclude={"password", "email"}, exclude_none=True)
        user = User(
            id=_new_id(),
            email=email,
            password_hash=hash_password(payload.password) if payload.password else None,
            **data,
        )
        self._users[user.id] = user
        logger.info("user_created", extra={"user_id": user.id, "created_by": created_by})
        return user

    async def update_user(self, user_id: str, payload: UserUpdate, updated_by: str | None = None) -> User:
        user = self._get_live(user_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in changes:
            changes["email"] = changes["email"].strip().lower()
        if "roles" in changes:
            self._check_roles(changes["roles"])
        self._check_unique(
            email=changes.get("email"),
            username=changes.get("username"),
            exclude_id=user.id,
        )
        if "location" in changes:
            changes["location"] = payload.location
        updated = user.model_copy(update={**changes, "updated_at": datetime.now(UTC)})
        self._users[user.id] = updated
        logger.info("user_updated", extra={"user_id": user.id, "updated_by": updated_by})
        return updated

    async def delete_user(self, user_id: str, hard: bool = False, deleted_by: str | None = None) -> None:
        user = self._get_live(user_id)
        if hard:
            del self._users[user.id]
        else:
            self._users[user.id] = user.model_copy(update={"deleted_at": datetime.now(UTC)})
        logger.info("user_deleted", extra={"user_id": user.id, "hard": hard, "deleted_by": deleted_by})

    async def change_status(self, user_id: str, action: StatusAction, reason: str | None = None) -> User:
        user = self._get_live(user_id)
        now = datetime.now(UTC)
        updates: dict[str, Any] = {"updated_at": now}
        if action is StatusAction.ACTIVATE:
            updates["is_active"] = True
        elif action is StatusAction.DEACTIVATE:
            updates["is_active"] = False
        elif action is StatusAction.SUSPEND:
            updates.update(is_suspended=True, suspended_reason=reason, suspended_at=now)
        elif action is StatusAction.UNSUSPEND:
            updates.update(is_suspended=False, suspended_reason=None, suspended_at=None)
        elif action is StatusAction.VERIFY:
            updates["is_verified"] = True
        elif action is StatusAction.UNVERIFY:
            updates["is_verified"] = False
        updated = user.model_copy(update=updates)
        self._users[user.id] = updated
        return updated


@lru_cache
def get_user_service() -> UserService:
    """Process-wide service instance. Override via app.dependency_overrides in tests."""
    return UserService()
