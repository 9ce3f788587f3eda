"""ORM model for persisted user notifications."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from scribe.auth.abilities import SubjectType
from scribe.models.base import Base, OwnedResource, TimestampMixin


class Notification(TimestampMixin, OwnedResource, Base):
    """
    Notification addressed to one user (owner_id is the recipient).

    Stored before any real-time push is attempted, so it stays queryable when
    the recipient is offline.
    """

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_owner_read", "owner_id", "read"),)
    subject_type = SubjectType.NOTIFICATION

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String(16), nullable=False, index=True)
    message = Column(String(500), nullable=False)
    reference_id = Column(Integer, nullable=True)
    reference_type = Column(String(32), nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    # "metadata" is reserved on declarative classes; the column keeps the name.
    meta = Column("metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=True)
