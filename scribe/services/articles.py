"""Article CRUD and listing."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from scribe.models import Article, ArticleTag
from scribe.schemas.articles import ArticleCreate, ArticleFilters, ArticleUpdate
from scribe.services.pagination import paginate

logger = logging.getLogger(__name__)


def list_articles(db: Session, filters: ArticleFilters) -> tuple[list[Article], int]:
    """Newest-first page of articles matching author, tag and free-text filters."""
    query = db.query(Article)
    if filters.author_id is not None:
        query = query.filter(Article.owner_id == filters.author_id)
    if filters.tag:
        query = query.filter(
            Article.tag_rows.any(ArticleTag.tag == filters.tag.strip())
        )
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        query = query.filter(
            or_(Article.title.ilike(pattern), Article.content.ilike(pattern))
        )
    query = query.order_by(Article.created_at.desc(), Article.id.desc())
    return paginate(query, filters.page, filters.limit)


def get_article(db: Session, article_id: int) -> Article | None:
    return db.get(Article, article_id)


def record_view(db: Session, article: Article) -> Article:
    """Increment the view counter in the database (not read-modify-write)."""
    db.query(Article).filter(Article.id == article.id).update(
        {Article.views: Article.views + 1},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(article)
    return article


def create_article(db: Session, data: ArticleCreate, owner_id: int) -> Article:
    article = Article(
        title=data.title,
        content=data.content,
        image=str(data.image) if data.image else None,
        owner_id=owner_id,
        views=0,
        comment_count=0,
    )
    article.tag_names = data.tags
    db.add(article)
    db.commit()
    db.refresh(article)
    logger.info("Article created", extra={"article_id": article.id, "owner_id": owner_id})
    return article


def update_article(db: Session, article: Article, data: ArticleUpdate) -> Article:
    changes = data.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is not None:
        article.title = changes["title"]
    if "content" in changes and changes["content"] is not None:
        article.content = changes["content"]
    if "image" in changes:
        article.image = str(changes["image"]) if changes["image"] else None
    if "tags" in changes and changes["tags"] is not None:
        article.tag_names = changes["tags"]
    db.commit()
    db.refresh(article)
    return article


def delete_article(db: Session, article: Article) -> None:
    """Delete an article with its comments and replies."""
    article_id = article.id
    db.delete(article)
    db.commit()
    logger.info("Article deleted", extra={"article_id": article_id})
