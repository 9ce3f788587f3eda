"""Comment endpoints, nested under articles for creation and listing."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from scribe.auth.abilities import Action, SubjectType
from scribe.auth.dependencies import (
    AuthContext,
    get_current_user,
    get_dispatcher,
    instance_resolver,
    require_permission,
    type_resolver,
)
from scribe.core.database import get_db
from scribe.core.errors import NotFoundError
from scribe.models import Comment, User
from scribe.schemas.articles import CommentCreate, CommentOut, CommentUpdate
from scribe.schemas.envelope import ApiResponse, Page, ok
from scribe.services import articles as article_service
from scribe.services import comments as comment_service
from scribe.services.notifications import NotificationDispatcher

router = APIRouter()

resolve_comment = instance_resolver(Comment, "comment_id", SubjectType.COMMENT)
can_create_comment = require_permission(Action.CREATE, type_resolver(SubjectType.COMMENT))
can_update_comment = require_permission(Action.UPDATE, resolve_comment)
can_delete_comment = require_permission(Action.DELETE, resolve_comment)


def _require_comment(db: Session, comment_id: int) -> Comment:
    comment = comment_service.get_comment(db, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


@router.post(
    "/articles/{article_id}",
    response_model=ApiResponse[CommentOut],
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    article_id: int,
    body: CommentCreate,
    _context: Annotated[AuthContext, Depends(can_create_comment)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[CommentOut]:
    """Comment on an article; the article's owner is notified."""
    article = article_service.get_article(db, article_id)
    if article is None:
        raise NotFoundError("Article not found")
    comment = comment_service.create_comment(db, article, body.content, user.id)
    comment_service.notify_article_owner(dispatcher, db, article, comment, user)
    return ok("Comment created successfully", CommentOut.model_validate(comment))


@router.get("/articles/{article_id}", response_model=ApiResponse[Page[CommentOut]])
def list_comments(
    article_id: int,
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    user_id: int | None = None,
) -> ApiResponse[Page[CommentOut]]:
    """Newest-first comments of an article, optionally only one user's."""
    if article_service.get_article(db, article_id) is None:
        raise NotFoundError("Article not found")
    comments, total = comment_service.list_comments(db, article_id, page, limit, owner_id=user_id)
    return ok(
        "Comments retrieved successfully",
        Page[CommentOut].build([CommentOut.model_validate(c) for c in comments], total, page, limit),
    )


@router.get("/{comment_id}", response_model=ApiResponse[CommentOut])
def get_comment(
    comment_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[CommentOut]:
    return ok("Comment retrieved successfully", CommentOut.model_validate(_require_comment(db, comment_id)))


@router.patch("/{comment_id}", response_model=ApiResponse[CommentOut])
def update_comment(
    comment_id: int,
    body: CommentUpdate,
    _context: Annotated[AuthContext, Depends(can_update_comment)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[CommentOut]:
    comment = comment_service.update_comment(db, _require_comment(db, comment_id), body.content)
    return ok("Comment updated successfully", CommentOut.model_validate(comment))


@router.delete("/{comment_id}", response_model=ApiResponse[None])
def delete_comment(
    comment_id: int,
    _context: Annotated[AuthContext, Depends(can_delete_comment)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    """Delete a comment with its replies."""
    comment_service.delete_comment(db, _require_comment(db, comment_id))
    return ok("Comment deleted successfully")
