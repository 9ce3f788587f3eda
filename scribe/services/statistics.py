"""
Read-only aggregates for the admin dashboard.

Month bucketing is done in Python over (owner_id, created_at) rows so the
queries stay portable between PostgreSQL and SQLite.
"""

from collections import Counter, defaultdict
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from scribe.auth.abilities import Role
from scribe.models import Article, ArticleTag, Comment, User
from scribe.schemas.statistics import (
    ArticleRanking,
    AuthorCount,
    AuthorFrequency,
    AuthorTrend,
    AverageArticles,
    MonthlyCount,
    Overview,
    TagCount,
)

TOP_ARTICLES = 5
TOP_AUTHORS = 5
TOP_TAGS = 10

AUTHOR_ROLES = tuple(r.value for r in Role if r.at_least(Role.WRITER))


def _month_key(value: datetime) -> tuple[int, int]:
    return value.year, value.month


def _count_authors(db: Session) -> int:
    return db.query(func.count(User.id)).filter(User.role.in_(AUTHOR_ROLES)).scalar() or 0


def _authored_months(db: Session) -> dict[int, Counter]:
    """owner_id -> Counter of (year, month) -> articles created."""
    rows = db.query(Article.owner_id, Article.created_at).all()
    buckets: dict[int, Counter] = defaultdict(Counter)
    for owner_id, created_at in rows:
        if created_at is not None:
            buckets[owner_id][_month_key(created_at)] += 1
    return buckets


def _users_by_id(db: Session, ids) -> dict[int, User]:
    ids = list(ids)
    if not ids:
        return {}
    return {u.id: u for u in db.query(User).filter(User.id.in_(ids)).all()}


def overview(db: Session) -> Overview:
    return Overview(
        total_articles=db.query(func.count(Article.id)).scalar() or 0,
        total_authors=_count_authors(db),
        total_comments=db.query(func.count(Comment.id)).scalar() or 0,
        total_tags=db.query(func.count(func.distinct(ArticleTag.tag))).scalar() or 0,
    )


def articles_per_month(db: Session) -> list[MonthlyCount]:
    counts: Counter = Counter()
    for (created_at,) in db.query(Article.created_at).all():
        if created_at is not None:
            counts[_month_key(created_at)] += 1
    return [
        MonthlyCount(date=f"{year}-{month:02d}", count=count)
        for (year, month), count in sorted(counts.items())
    ]


def average_articles_per_author(db: Session) -> AverageArticles:
    total_articles = db.query(func.count(Article.id)).scalar() or 0
    total_authors = _count_authors(db)
    average = total_articles / total_authors if total_authors else 0.0
    return AverageArticles(
        total_articles=total_articles,
        total_authors=total_authors,
        average_per_author=round(average, 2),
    )


def _ranking(article: Article) -> ArticleRanking:
    return ArticleRanking(
        id=article.id,
        title=article.title,
        views=article.views or 0,
        comment_count=article.comment_count or 0,
        image=article.image,
        created_at=article.created_at,
    )


def top_viewed_articles(db: Session) -> list[ArticleRanking]:
    articles = (
        db.query(Article)
        .order_by(Article.views.desc(), Article.id.asc())
        .limit(TOP_ARTICLES)
        .all()
    )
    return [_ranking(a) for a in articles]


def most_commented_articles(db: Session) -> list[ArticleRanking]:
    articles = (
        db.query(Article)
        .order_by(Article.comment_count.desc(), Article.id.asc())
        .limit(TOP_ARTICLES)
        .all()
    )
    return [_ranking(a) for a in articles]


def top_tags(db: Session) -> list[TagCount]:
    usage = func.count(ArticleTag.article_id)
    rows = (
        db.query(ArticleTag.tag, usage)
        .group_by(ArticleTag.tag)
        .order_by(usage.desc(), ArticleTag.tag.asc())
        .limit(TOP_TAGS)
        .all()
    )
    return [TagCount(tag=tag, count=count) for tag, count in rows]


def top_authors(db: Session) -> list[AuthorCount]:
    article_count = func.count(Article.id)
    rows = (
        db.query(User, article_count)
        .join(Article, Article.owner_id == User.id)
        .group_by(User.id)
        .order_by(article_count.desc(), User.id.asc())
        .limit(TOP_AUTHORS)
        .all()
    )
    return [
        AuthorCount(author_id=user.id, name=user.full_name, email=user.email, article_count=count)
        for user, count in rows
    ]


def author_frequency(db: Session) -> list[AuthorFrequency]:
    """Average articles per active month (months with at least one article) per author."""
    buckets = _authored_months(db)
    users = _users_by_id(db, buckets.keys())
    result = [
        AuthorFrequency(
            author_id=owner_id,
            name=users[owner_id].full_name,
            average_per_month=round(sum(months.values()) / len(months), 2),
        )
        for owner_id, months in buckets.items()
        if owner_id in users
    ]
    result.sort(key=lambda f: (-f.average_per_month, f.author_id))
    return result


def author_trends(db: Session) -> list[AuthorTrend]:
    buckets = _authored_months(db)
    users = _users_by_id(db, buckets.keys())
    result = [
        AuthorTrend(
            author_id=owner_id,
            name=users[owner_id].full_name,
            year=year,
            month=month,
            count=count,
        )
        for owner_id, months in buckets.items()
        if owner_id in users
        for (year, month), count in months.items()
    ]
    result.sort(key=lambda t: (t.name, t.year, t.month))
    return result
