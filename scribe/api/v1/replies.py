"""Reply endpoints, nested under comments for creation and listing."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
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
from scribe.models import Reply, User
from scribe.schemas.articles import ReplyCreate, ReplyOut, ReplyUpdate
from scribe.schemas.envelope import ApiResponse, ok
from scribe.services import comments as comment_service
from scribe.services.notifications import NotificationDispatcher

router = APIRouter()

resolve_reply = instance_resolver(Reply, "reply_id", SubjectType.REPLY)
can_create_reply = require_permission(Action.CREATE, type_resolver(SubjectType.REPLY))
can_update_reply = require_permission(Action.UPDATE, resolve_reply)
can_delete_reply = require_permission(Action.DELETE, resolve_reply)


def _require_reply(db: Session, reply_id: int) -> Reply:
    reply = comment_service.get_reply(db, reply_id)
    if reply is None:
        raise NotFoundError("Reply not found")
    return reply


@router.post(
    "/comments/{comment_id}",
    response_model=ApiResponse[ReplyOut],
    status_code=status.HTTP_201_CREATED,
)
def create_reply(
    comment_id: int,
    body: ReplyCreate,
    _context: Annotated[AuthContext, Depends(can_create_reply)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[ReplyOut]:
    """Reply to a comment; the comment's owner is notified."""
    comment = comment_service.get_comment(db, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    reply = comment_service.create_reply(db, comment, body.content, user.id)
    comment_service.notify_comment_owner(dispatcher, db, comment, reply, user)
    return ok("Reply created successfully", ReplyOut.model_validate(reply))


@router.get("/comments/{comment_id}", response_model=ApiResponse[list[ReplyOut]])
def list_replies(
    comment_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[ReplyOut]]:
    if comment_service.get_comment(db, comment_id) is None:
        raise NotFoundError("Comment not found")
    replies = comment_service.list_replies(db, comment_id)
    return ok("Replies retrieved successfully", [ReplyOut.model_validate(r) for r in replies])


@router.get("/{reply_id}", response_model=ApiResponse[ReplyOut])
def get_reply(
    reply_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ReplyOut]:
    return ok("Reply retrieved successfully", ReplyOut.model_validate(_require_reply(db, reply_id)))


@router.put("/{reply_id}", response_model=ApiResponse[ReplyOut])
def update_reply(
    reply_id: int,
    body: ReplyUpdate,
    _context: Annotated[AuthContext, Depends(can_update_reply)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ReplyOut]:
    reply = comment_service.update_reply(db, _require_reply(db, reply_id), body.content)
    return ok("Reply updated successfully", ReplyOut.model_validate(reply))


@router.delete("/{reply_id}", response_model=ApiResponse[None])
def delete_reply(
    reply_id: int,
    _context: Annotated[AuthContext, Depends(can_delete_reply)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    comment_service.delete_reply(db, _require_reply(db, reply_id))
    return ok("Reply deleted successfully")
