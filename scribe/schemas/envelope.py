"""Uniform response envelope and pagination containers."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

MAX_PAGE_LIMIT = 100


class ApiResponse(BaseModel, Generic[T]):
    """Body of every JSON response: success flag, message, optional data or field errors."""

    success: bool = Field(default=True, description="False for any error response")
    message: str = Field(..., description="Human-readable outcome")
    data: T | None = Field(default=None, description="Payload on success")
    errors: dict[str, list[str]] | None = Field(
        default=None,
        description="Validation messages keyed by field name",
    )


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class Page(BaseModel, Generic[T]):
    """One page of results plus counts."""

    items: list[T]
    pagination: PageMeta

    @classmethod
    def build(cls, items: list[T], total: int, page: int, limit: int) -> "Page[T]":
        total_pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(
            items=items,
            pagination=PageMeta(total=total, page=page, limit=limit, total_pages=total_pages),
        )


def ok(message: str, data: T | None = None) -> ApiResponse[T]:
    """Success envelope."""
    return ApiResponse(success=True, message=message, data=data)
