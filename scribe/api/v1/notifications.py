"""Pull API for the caller's own notifications."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from scribe.auth.abilities import Action, SubjectType
from scribe.auth.dependencies import (
    AuthContext,
    CurrentAuth,
    get_dispatcher,
    instance_resolver,
    require_permission,
)
from scribe.core.database import get_db
from scribe.core.errors import NotFoundError
from scribe.models import Notification
from scribe.schemas.envelope import ApiResponse, Page, ok
from scribe.schemas.notifications import NotificationFilters, NotificationOut
from scribe.services.notifications import NotificationDispatcher

router = APIRouter()

can_update_notification = require_permission(
    Action.UPDATE,
    instance_resolver(Notification, "notification_id", SubjectType.NOTIFICATION),
)


@router.get("", response_model=ApiResponse[Page[NotificationOut]])
def list_notifications(
    context: CurrentAuth,
    filters: Annotated[NotificationFilters, Query()],
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[Page[NotificationOut]]:
    """The caller's notifications, newest first. Never returns other users' rows."""
    page = dispatcher.list_for_principal(db, context.principal.id, filters)
    return ok("Notifications retrieved successfully", page)


@router.patch("/read-all", response_model=ApiResponse[dict[str, int]])
def mark_all_read(
    context: CurrentAuth,
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[dict[str, int]]:
    count = dispatcher.mark_all_read(db, context.principal.id)
    return ok("Notifications marked as read", {"updated": count})


@router.patch("/{notification_id}", response_model=ApiResponse[NotificationOut])
def mark_read(
    notification_id: int,
    _context: Annotated[AuthContext, Depends(can_update_notification)],
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[NotificationOut]:
    """Mark one of the caller's notifications as read."""
    notification = dispatcher.mark_read(db, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    return ok("Notification marked as read", NotificationOut.model_validate(notification))
