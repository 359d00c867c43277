"""
Pagination normalizer: untrusted page/limit/sortBy/sortOrder query values in,
a bounded descriptor out. Never raises; bad input silently takes the default.
"""

import json
import math
from collections.abc import Callable, Coroutine, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Literal

from fastapi import Request
from pydantic import BaseModel, Field

from core.config import Settings, SettingsDep
from models.schemas import PaginationMeta
from utils.validators import parse_leading_int, sanitize_sort_field

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class PaginationOptions:
    default_limit: int = 20
    max_limit: int = 100
    default_page: int = 1
    default_sort_by: str = "createdAt"
    default_sort_order: SortOrder = "desc"

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaginationOptions":
        return cls(
            default_limit=settings.PAGINATION_DEFAULT_LIMIT,
            max_limit=settings.PAGINATION_MAX_LIMIT,
            default_page=settings.PAGINATION_DEFAULT_PAGE,
            default_sort_by=settings.PAGINATION_DEFAULT_SORT_BY,
            default_sort_order=settings.PAGINATION_DEFAULT_SORT_ORDER,
        )


class Pagination(BaseModel):
    """Normalized paging/sorting for one request."""

    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    skip: int = Field(ge=0)
    sort_by: str = Field(alias="sortBy")
    sort_order: SortOrder = Field(alias="sortOrder")
    sort: dict[str, int]

    model_config = {"frozen": True, "populate_by_name": True}

    def as_query(self) -> dict[str, str]:
        """The descriptor as query parameters; normalizing these yields the same descriptor."""
        return {
            "page": str(self.page),
            "limit": str(self.limit),
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }


def normalize_pagination(
    params: Mapping[str, Any],
    options: PaginationOptions | None = None,
) -> Pagination:
    opts = options or PaginationOptions()

    page = parse_leading_int(params.get("page"))
    if page is None or page < 1:
        page = opts.default_page

    limit = parse_leading_int(params.get("limit"))
    if limit is None or limit < 1:
        limit = opts.default_limit
    if limit > opts.max_limit:
        limit = opts.max_limit

    raw_sort_by = params.get("sortBy")
    sort_by = sanitize_sort_field(str(raw_sort_by)) if raw_sort_by else ""
    if not sort_by:
        sort_by = opts.default_sort_by

    raw_order = params.get("sortOrder")
    sort_order = raw_order.lower() if isinstance(raw_order, str) else None
    if sort_order not in ("asc", "desc"):
        sort_order = opts.default_sort_order

    return Pagination(
        page=page,
        limit=limit,
        skip=(page - 1) * limit,
        sort_by=sort_by,
        sort_order=sort_order,
        sort={sort_by: 1 if sort_order == "asc" else -1},
    )


def pagination_params(**overrides: Any) -> Callable[..., Coroutine[Any, Any, Pagination]]:
    """
    Dependency factory. Defaults come from settings; keyword overrides
    (e.g. max_limit=50) apply per route. The descriptor is also stored on
    request.state.pagination.
    """

    async def dependency(request: Request, settings: SettingsDep) -> Pagination:
        options = replace(PaginationOptions.from_settings(settings), **overrides)
        descriptor = normalize_pagination(request.query_params, options)
        request.state.pagination = descriptor
        return descriptor

    return dependency


def build_pagination_meta(total: int, page: int, limit: int) -> PaginationMeta:
    pages = math.ceil(total / limit) if limit else 0
    return PaginationMeta(
        total=total,
        page=page,
        limit=limit,
        pages=pages,
        has_next=page < pages,
        has_prev=page > 1,
    )


def _resolve(item: Any, path: str) -> Any:
    value = item
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def apply_pagination(items: Sequence[Any], pagination: Pagination) -> list[Any]:
    """
    Sort records by the descriptor's field (dotted paths reach into nested
    records) and return the requested page. Records missing the field go last.
    """
    present = [item for item in items if _resolve(item, pagination.sort_by) is not None]
    missing = [item for item in items if _resolve(item, pagination.sort_by) is None]
    present.sort(
        key=lambda item: _sort_key(_resolve(item, pagination.sort_by)),
        reverse=pagination.sort_order == "desc",
    )
    ordered = present + missing
    return ordered[pagination.skip : pagination.skip + pagination.limit]


def _sort_key(value: Any) -> tuple[str, Any]:
    # Group by type so mixed-type fields never compare str with int
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return ("number", value)
    if isinstance(value, (str, bool, date)):
        return (type(value).__name__, value)
    # Nested records and lists have no ordering; compare their canonical JSON
    return ("json", json.dumps(value, sort_keys=True, default=str))
