"""Pydantic request/response schemas."""

from scribe.schemas.articles import (
    ArticleCreate,
    ArticleFilters,
    ArticleOut,
    ArticleUpdate,
    AuthorSummary,
    CommentCreate,
    CommentOut,
    CommentUpdate,
    ReplyCreate,
    ReplyOut,
    ReplyUpdate,
)
from scribe.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    Principal,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UpdateRoleRequest,
)
from scribe.schemas.envelope import ApiResponse, Page, PageMeta, ok
from scribe.schemas.health import HealthResponse
from scribe.schemas.notifications import (
    NotificationEvent,
    NotificationFilters,
    NotificationOut,
    NotificationType,
    ReferenceType,
)

__all__ = [
    "ApiResponse",
    "ArticleCreate",
    "ArticleFilters",
    "ArticleOut",
    "ArticleUpdate",
    "AuthorSummary",
    "ChangePasswordRequest",
    "CommentCreate",
    "CommentOut",
    "CommentUpdate",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "NotificationEvent",
    "NotificationFilters",
    "NotificationOut",
    "NotificationType",
    "Page",
    "PageMeta",
    "Principal",
    "ReferenceType",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "ReplyCreate",
    "ReplyOut",
    "ReplyUpdate",
    "UpdateProfileRequest",
    "UpdateRoleRequest",
    "ok",
]
