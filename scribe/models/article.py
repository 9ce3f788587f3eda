"""ORM models for articles and their tags."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from scribe.auth.abilities import SubjectType
from scribe.models.base import Base, OwnedResource, TimestampMixin


class Article(TimestampMixin, OwnedResource, Base):
    """
    Blog article written by a user (owner_id).

    comment_count is a backlink counter kept in step with the comments table
    inside the same transaction as each comment insert/delete.
    """

    __tablename__ = "articles"
    subject_type = SubjectType.ARTICLE

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False, index=True)
    content = Column(Text, nullable=False)
    image = Column(String(2048), nullable=True)
    views = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    owner = relationship("User", lazy="joined")
    tag_rows = relationship(
        "ArticleTag",
        cascade="all, delete-orphan",
        order_by="ArticleTag.position",
        lazy="selectin",
    )
    comments = relationship(
        "Comment",
        back_populates="article",
        cascade="all, delete-orphan",
    )

    @property
    def tag_names(self) -> list[str]:
        return [row.tag for row in self.tag_rows]

    @tag_names.setter
    def tag_names(self, tags: list[str]) -> None:
        self.tag_rows = [ArticleTag(tag=tag, position=i) for i, tag in enumerate(tags)]


class ArticleTag(Base):
    """One tag of an article; position preserves the submitted order."""

    __tablename__ = "article_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(
        Integer,
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag = Column(String(30), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
