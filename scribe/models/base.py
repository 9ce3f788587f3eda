"""SQLAlchemy declarative Base and shared model configuration."""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase

from scribe.auth.abilities import ResourceRef, SubjectType


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


class TimestampMixin:
    """created_at / updated_at maintained by the database."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class OwnedResource:
    """
    Mixin for rows subject to ownership checks.

    Subclasses set ``subject_type`` and define an ``owner_id`` column; the
    policy engine only ever sees the ``resource_ref`` built from them.
    """

    subject_type = SubjectType.ALL

    @property
    def resource_ref(self) -> ResourceRef:
        return ResourceRef.of(self.id, self.owner_id, self.subject_type)
