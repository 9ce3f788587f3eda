"""ORM models for comments on articles and replies to comments."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from scribe.auth.abilities import SubjectType
from scribe.models.base import Base, OwnedResource, TimestampMixin


class Comment(TimestampMixin, OwnedResource, Base):
    """Top-level comment on an article. reply_count tracks its replies."""

    __tablename__ = "comments"
    subject_type = SubjectType.COMMENT

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(String(1000), nullable=False)
    article_id = Column(
        Integer,
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reply_count = Column(Integer, nullable=False, default=0)
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    owner = relationship("User", lazy="joined")
    article = relationship("Article", back_populates="comments")
    replies = relationship(
        "Reply",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="Reply.created_at",
    )


class Reply(TimestampMixin, OwnedResource, Base):
    """Reply to a comment (one level of threading)."""

    __tablename__ = "replies"
    subject_type = SubjectType.REPLY

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(String(500), nullable=False)
    comment_id = Column(
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    owner = relationship("User", lazy="joined")
    comment = relationship("Comment", back_populates="replies")
