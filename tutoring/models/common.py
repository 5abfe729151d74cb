"""
Common response models.

Pagination wrapper and the error detail bodies returned by the booking
endpoints.

Dependencies: pydantic
System role: Common API response structures
"""

from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel, Field

from tutoring.models.availability import ConflictResponse

T = TypeVar("T")


class ValidationErrorDetail(BaseModel):
    """422 body for a rejected booking input."""

    message: str
    field: str | None = Field(default=None, description="Offending input field, when known")


class ConflictErrorDetail(BaseModel):
    """409 body for a booking that collides with existing sessions."""

    message: str
    conflicts: list[ConflictResponse]


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: list[T]
    total: int
    limit: int
    offset: int
    has_more: bool = False

    @classmethod
    def page(cls, items: Sequence[T], total: int, limit: int, offset: int) -> "PaginatedResponse[T]":
        return cls(
            items=list(items),
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(items) < total,
        )
