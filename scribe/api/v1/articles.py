"""Article endpoints. Reads are public; writes go through the policy guard."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from scribe.auth.abilities import Action, SubjectType
from scribe.auth.dependencies import (
    AuthContext,
    instance_resolver,
    optional_authenticate,
    require_permission,
    type_resolver,
)
from scribe.core.database import get_db
from scribe.core.errors import NotFoundError
from scribe.models import Article
from scribe.schemas.articles import ArticleCreate, ArticleFilters, ArticleOut, ArticleUpdate
from scribe.schemas.envelope import ApiResponse, Page, ok
from scribe.services import articles as article_service

logger = logging.getLogger(__name__)
router = APIRouter()

resolve_article = instance_resolver(Article, "article_id", SubjectType.ARTICLE)
can_create_article = require_permission(Action.CREATE, type_resolver(SubjectType.ARTICLE))
can_update_article = require_permission(Action.UPDATE, resolve_article)
can_delete_article = require_permission(Action.DELETE, resolve_article)


def _require_article(db: Session, article_id: int) -> Article:
    article = article_service.get_article(db, article_id)
    if article is None:
        raise NotFoundError("Article not found")
    return article


@router.get("", response_model=ApiResponse[Page[ArticleOut]])
def list_articles(
    filters: Annotated[ArticleFilters, Query()],
    db: Annotated[Session, Depends(get_db)],
    viewer: Annotated[AuthContext | None, Depends(optional_authenticate)],
) -> ApiResponse[Page[ArticleOut]]:
    """Newest-first article listing with author, tag and search filters."""
    articles, total = article_service.list_articles(db, filters)
    logger.debug(
        "Articles listed",
        extra={"viewer_id": viewer.principal.id if viewer else None, "total": total},
    )
    return ok(
        "Articles retrieved successfully",
        Page[ArticleOut].build(
            [ArticleOut.model_validate(a) for a in articles],
            total,
            filters.page,
            filters.limit,
        ),
    )


@router.get("/{article_id}", response_model=ApiResponse[ArticleOut])
def get_article(
    article_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ArticleOut]:
    """Fetch one article; each fetch counts as a view."""
    article = article_service.record_view(db, _require_article(db, article_id))
    return ok("Article retrieved successfully", ArticleOut.model_validate(article))


@router.post("", response_model=ApiResponse[ArticleOut], status_code=status.HTTP_201_CREATED)
def create_article(
    body: ArticleCreate,
    context: Annotated[AuthContext, Depends(can_create_article)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ArticleOut]:
    article = article_service.create_article(db, body, context.principal.id)
    return ok("Article created successfully", ArticleOut.model_validate(article))


@router.put("/{article_id}", response_model=ApiResponse[ArticleOut])
def update_article(
    article_id: int,
    body: ArticleUpdate,
    _context: Annotated[AuthContext, Depends(can_update_article)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ArticleOut]:
    article = article_service.update_article(db, _require_article(db, article_id), body)
    return ok("Article updated successfully", ArticleOut.model_validate(article))


@router.delete("/{article_id}", response_model=ApiResponse[None])
def delete_article(
    article_id: int,
    _context: Annotated[AuthContext, Depends(can_delete_article)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    article_service.delete_article(db, _require_article(db, article_id))
    return ok("Article deleted successfully")
