"""Comments and replies, with their parent backlink counters and notifications."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import case
from sqlalchemy.orm import Session

from scribe.models import Article, Comment, Reply, User
from scribe.schemas.notifications import NotificationEvent, NotificationType, ReferenceType
from scribe.services.pagination import paginate
from scribe.core.database import atomic

if TYPE_CHECKING:
    from scribe.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)

PREVIEW_LEN = 50


def _preview(text: str) -> str:
    return f"{text[:PREVIEW_LEN]}..." if len(text) > PREVIEW_LEN else text


def _bump(db: Session, model, row_id: int, column, delta: int) -> None:
    """Shift a counter column in SQL; decrements floor at zero."""
    if delta >= 0:
        value = column + delta
    else:
        value = case((column + delta > 0, column + delta), else_=0)
    db.query(model).filter(model.id == row_id).update(
        {column: value}, synchronize_session=False
    )


# Comments


def create_comment(db: Session, article: Article, content: str, owner_id: int) -> Comment:
    """Insert a comment and bump the article's comment_count as one transaction."""
    with atomic(db):
        comment = Comment(content=content, article_id=article.id, owner_id=owner_id, reply_count=0)
        db.add(comment)
        db.flush()
        _bump(db, Article, article.id, Article.comment_count, 1)
    db.refresh(comment)
    logger.info(
        "Comment created",
        extra={"comment_id": comment.id, "article_id": article.id, "owner_id": owner_id},
    )
    return comment


def list_comments(
    db: Session,
    article_id: int,
    page: int = 1,
    limit: int = 10,
    owner_id: int | None = None,
) -> tuple[list[Comment], int]:
    query = db.query(Comment).filter(Comment.article_id == article_id)
    if owner_id is not None:
        query = query.filter(Comment.owner_id == owner_id)
    query = query.order_by(Comment.created_at.desc(), Comment.id.desc())
    return paginate(query, page, limit)


def get_comment(db: Session, comment_id: int) -> Comment | None:
    return db.get(Comment, comment_id)


def update_comment(db: Session, comment: Comment, content: str) -> Comment:
    comment.content = content
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, comment: Comment) -> None:
    """Delete a comment (and its replies) and decrement the article's counter atomically."""
    comment_id = comment.id
    with atomic(db):
        article_id = comment.article_id
        db.delete(comment)
        db.flush()
        _bump(db, Article, article_id, Article.comment_count, -1)
    logger.info("Comment deleted", extra={"comment_id": comment_id})


# Replies


def create_reply(db: Session, comment: Comment, content: str, owner_id: int) -> Reply:
    """Insert a reply and bump the comment's reply_count as one transaction."""
    with atomic(db):
        reply = Reply(content=content, comment_id=comment.id, owner_id=owner_id)
        db.add(reply)
        db.flush()
        _bump(db, Comment, comment.id, Comment.reply_count, 1)
    db.refresh(reply)
    logger.info(
        "Reply created",
        extra={"reply_id": reply.id, "comment_id": comment.id, "owner_id": owner_id},
    )
    return reply


def list_replies(db: Session, comment_id: int) -> list[Reply]:
    """All replies of a comment, oldest first."""
    return (
        db.query(Reply)
        .filter(Reply.comment_id == comment_id)
        .order_by(Reply.created_at.asc(), Reply.id.asc())
        .all()
    )


def get_reply(db: Session, reply_id: int) -> Reply | None:
    return db.get(Reply, reply_id)


def update_reply(db: Session, reply: Reply, content: str) -> Reply:
    reply.content = content
    db.commit()
    db.refresh(reply)
    return reply


def delete_reply(db: Session, reply: Reply) -> None:
    reply_id = reply.id
    with atomic(db):
        comment_id = reply.comment_id
        db.delete(reply)
        db.flush()
        _bump(db, Comment, comment_id, Comment.reply_count, -1)
    logger.info("Reply deleted", extra={"reply_id": reply_id})


# Notifications triggered by new comments and replies


def notify_article_owner(
    dispatcher: NotificationDispatcher,
    db: Session,
    article: Article,
    comment: Comment,
    commenter: User,
) -> None:
    """
    Tell the article's owner about a new comment (not when they commented themselves).

    Failures are logged and never propagate: the comment already exists.
    """
    if article.owner_id == commenter.id:
        return
    event = NotificationEvent(
        owner_id=article.owner_id,
        type=NotificationType.COMMENT,
        message=f"New comment on {article.title or 'your article'}: {_preview(comment.content)}"[:500],
        reference_id=comment.id,
        reference_type=ReferenceType.COMMENT,
        metadata={
            "article_id": str(article.id),
            "article_title": article.title,
            "comment_author": commenter.full_name,
        },
    )
    try:
        dispatcher.create_and_emit(db, event)
    except Exception:
        db.rollback()
        logger.exception(
            "Comment notification failed",
            extra={"comment_id": comment.id, "article_id": article.id},
        )


def notify_comment_owner(
    dispatcher: NotificationDispatcher,
    db: Session,
    comment: Comment,
    reply: Reply,
    replier: User,
) -> None:
    """Tell the comment's owner about a new reply (not when they replied themselves)."""
    if comment.owner_id == replier.id:
        return
    event = NotificationEvent(
        owner_id=comment.owner_id,
        type=NotificationType.REPLY,
        message=f"New reply to your comment: {_preview(reply.content)}",
        reference_id=reply.id,
        reference_type=ReferenceType.REPLY,
        metadata={
            "article_id": str(comment.article_id),
            "comment_id": str(comment.id),
            "reply_author": replier.full_name,
        },
    )
    try:
        dispatcher.create_and_emit(db, event)
    except Exception:
        db.rollback()
        logger.exception(
            "Reply notification failed",
            extra={"reply_id": reply.id, "comment_id": comment.id},
        )
