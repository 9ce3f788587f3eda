"""Pydantic schemas and enumerations for notifications."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from scribe.schemas.envelope import MAX_PAGE_LIMIT

DEFAULT_NOTIFICATION_LIMIT = 50


class NotificationType(str, Enum):
    COMMENT = "comment"
    REPLY = "reply"
    SYSTEM = "system"


class ReferenceType(str, Enum):
    ARTICLE = "Article"
    COMMENT = "Comment"
    REPLY = "Reply"
    USER = "User"


class NotificationEvent(BaseModel):
    """A domain event to persist and push to its recipient."""

    owner_id: int = Field(..., description="Recipient principal id")
    type: NotificationType
    message: str = Field(..., min_length=1, max_length=500)
    reference_id: int | None = None
    reference_type: ReferenceType | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def reference_required_for_content_events(self) -> "NotificationEvent":
        if self.type in (NotificationType.COMMENT, NotificationType.REPLY):
            if self.reference_id is None or self.reference_type is None:
                raise ValueError(f"{self.type.value} notifications require a reference")
        return self


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    owner_id: int
    type: NotificationType
    message: str
    reference_id: int | None = None
    reference_type: ReferenceType | None = None
    read: bool = False
    metadata: dict[str, str] | None = Field(default=None, validation_alias="meta")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationFilters(BaseModel):
    """Pull-API filters. limit is clamped to MAX_PAGE_LIMIT rather than rejected."""

    read: bool | None = None
    type: NotificationType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = 1
    limit: int = DEFAULT_NOTIFICATION_LIMIT

    @model_validator(mode="after")
    def clamp_bounds(self) -> "NotificationFilters":
        self.page = max(1, self.page)
        self.limit = min(max(1, self.limit), MAX_PAGE_LIMIT)
        return self
