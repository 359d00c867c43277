"""
Pydantic schemas for the response envelopes shared by every route.
Keeps the success/error contract explicit and in one place.
"""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class FieldErrorDetail(BaseModel):
    """One field-level validation failure."""

    field: str
    message: str

    model_config = {"extra": "forbid"}


class ErrorEnvelope(BaseModel):
    """Standard error payload for API responses."""

    success: Literal[False] = False
    error: str
    code: str
    details: list[FieldErrorDetail] | None = None
    stack: str | None = None

    model_config = {"extra": "forbid"}

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class PaginationMeta(BaseModel):
    """Paging summary returned alongside list data."""

    total: int = 0
    page: int = 1
    limit: int = 20
    pages: int = 0
    has_next: bool = Field(default=False, alias="hasNext")
    has_prev: bool = Field(default=False, alias="hasPrev")

    model_config = {"populate_by_name": True, "extra": "forbid"}


class DataEnvelope(BaseModel, Generic[T]):
    """Success payload for single objects."""

    success: Literal[True] = True
    data: T


class PaginatedEnvelope(BaseModel, Generic[T]):
    """Success payload for paginated lists."""

    success: Literal[True] = True
    data: list[T] = Field(default_factory=list)
    meta: PaginationMeta
