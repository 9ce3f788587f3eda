"""
Notification dispatch: persist first, then push best-effort to live channels.

Persistence failures propagate to the caller. A failed or skipped push only
logs; the stored row stays available through the pull API.
"""

import logging

from sqlalchemy.orm import Session

from scribe.models import Notification
from scribe.realtime.channels import ChannelRegistry
from scribe.schemas.notifications import (
    NotificationEvent,
    NotificationFilters,
    NotificationOut,
)
from scribe.schemas.envelope import Page
from scribe.services.pagination import paginate

logger = logging.getLogger(__name__)

NEW_NOTIFICATION_EVENT = "new_notification"


class NotificationDispatcher:
    """Stores notifications and forwards them to the recipient's live channel."""

    def __init__(self, channels: ChannelRegistry) -> None:
        self.channels = channels

    def create_and_emit(self, db: Session, event: NotificationEvent) -> Notification:
        notification = Notification(
            owner_id=event.owner_id,
            type=event.type.value,
            message=event.message,
            reference_id=event.reference_id,
            reference_type=event.reference_type.value if event.reference_type else None,
            read=False,
            meta=dict(event.metadata),
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info(
            "Notification stored",
            extra={
                "notification_id": notification.id,
                "owner_id": notification.owner_id,
                "type": notification.type,
            },
        )
        self._emit(notification)
        return notification

    def _emit(self, notification: Notification) -> None:
        try:
            payload = NotificationOut.model_validate(notification).model_dump(mode="json")
            pushed = self.channels.publish(notification.owner_id, NEW_NOTIFICATION_EVENT, payload)
        except Exception:
            logger.exception(
                "Notification push failed",
                extra={"notification_id": notification.id, "owner_id": notification.owner_id},
            )
            return
        if not pushed:
            logger.debug(
                "Recipient offline; notification kept for pull",
                extra={"notification_id": notification.id, "owner_id": notification.owner_id},
            )

    def list_for_principal(
        self, db: Session, principal_id: int, filters: NotificationFilters
    ) -> Page[NotificationOut]:
        """Newest-first page of the principal's own notifications."""
        query = db.query(Notification).filter(Notification.owner_id == principal_id)
        if filters.read is not None:
            query = query.filter(Notification.read == filters.read)
        if filters.type is not None:
            query = query.filter(Notification.type == filters.type.value)
        if filters.start_date is not None:
            query = query.filter(Notification.created_at >= filters.start_date)
        if filters.end_date is not None:
            query = query.filter(Notification.created_at <= filters.end_date)
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
        items, total = paginate(query, filters.page, filters.limit)
        return Page[NotificationOut].build(
            [NotificationOut.model_validate(n) for n in items],
            total,
            filters.page,
            filters.limit,
        )

    def mark_read(self, db: Session, notification_id: int) -> Notification | None:
        """Mark one notification read; None when it does not exist."""
        notification = db.get(Notification, notification_id)
        if notification is None:
            return None
        if not notification.read:
            notification.read = True
            db.commit()
            db.refresh(notification)
        return notification

    def mark_all_read(self, db: Session, principal_id: int) -> int:
        """Mark every unread notification of a principal read; returns how many changed."""
        count = (
            db.query(Notification)
            .filter(Notification.owner_id == principal_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
        db.commit()
        logger.info("Notifications marked read", extra={"owner_id": principal_id, "count": count})
        return count
