"""SQLAlchemy ORM models."""

from scribe.models.article import Article, ArticleTag
from scribe.models.base import Base
from scribe.models.comment import Comment, Reply
from scribe.models.notification import Notification
from scribe.models.user import User

__all__ = ["Article", "ArticleTag", "Base", "Comment", "Notification", "Reply", "User"]
