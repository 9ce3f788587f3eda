"""Pydantic schemas for articles, comments and replies."""

from datetime import datetime
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StringConstraints,
    field_validator,
)

MAX_TAGS = 10
TAG_MIN_LEN = 2
TAG_MAX_LEN = 30

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=200)]
ArticleBody = Annotated[str, StringConstraints(min_length=50, max_length=20000)]
CommentBody = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]
ReplyBody = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


def _validate_tags(tags: list[str] | None) -> list[str] | None:
    """Trim tags, enforce per-tag length, drop duplicates keeping first occurrence."""
    if tags is None:
        return None
    if len(tags) > MAX_TAGS:
        raise ValueError(f"Cannot have more than {MAX_TAGS} tags")
    cleaned: list[str] = []
    for tag in tags:
        t = tag.strip()
        if not TAG_MIN_LEN <= len(t) <= TAG_MAX_LEN:
            raise ValueError(
                f"Each tag must be between {TAG_MIN_LEN} and {TAG_MAX_LEN} characters"
            )
        if t not in cleaned:
            cleaned.append(t)
    return cleaned


class AuthorSummary(BaseModel):
    """Public view of a content owner."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str


class ArticleCreate(BaseModel):
    title: Title
    content: ArticleBody
    image: HttpUrl | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _validate_tags(v) or []


class ArticleUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: Title | None = None
    content: ArticleBody | None = None
    image: HttpUrl | None = None
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _validate_tags(v)


class ArticleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    title: str
    content: str
    image: str | None = None
    tags: list[str] = Field(default_factory=list, validation_alias="tag_names")
    views: int = 0
    comment_count: int = 0
    owner_id: int
    author: AuthorSummary | None = Field(default=None, validation_alias="owner")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ArticleFilters(BaseModel):
    """Query filters for listing articles."""

    author_id: int | None = None
    tag: str | None = None
    search: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class CommentCreate(BaseModel):
    content: CommentBody


class CommentUpdate(BaseModel):
    content: CommentBody


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    content: str
    article_id: int
    owner_id: int
    reply_count: int = 0
    author: AuthorSummary | None = Field(default=None, validation_alias="owner")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReplyCreate(BaseModel):
    content: ReplyBody


class ReplyUpdate(BaseModel):
    content: ReplyBody


class ReplyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    content: str
    comment_id: int
    owner_id: int
    author: AuthorSummary | None = Field(default=None, validation_alias="owner")
    created_at: datetime | None = None
    updated_at: datetime | None = None
