"""Admin dashboard statistics. Every route requires read access on Statistics."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from scribe.auth.abilities import Action, SubjectType
from scribe.auth.dependencies import require_permission, type_resolver
from scribe.core.database import get_db
from scribe.schemas.envelope import ApiResponse, ok
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
from scribe.services import statistics as stats

can_read_statistics = require_permission(Action.READ, type_resolver(SubjectType.STATISTICS))

router = APIRouter(dependencies=[Depends(can_read_statistics)])

DB = Annotated[Session, Depends(get_db)]


@router.get("/overview", response_model=ApiResponse[Overview])
def overview(db: DB) -> ApiResponse[Overview]:
    return ok("Overview statistics retrieved", stats.overview(db))


@router.get("/articles/monthly", response_model=ApiResponse[list[MonthlyCount]])
def articles_per_month(db: DB) -> ApiResponse[list[MonthlyCount]]:
    return ok("Monthly article counts retrieved", stats.articles_per_month(db))


@router.get("/articles/average", response_model=ApiResponse[AverageArticles])
def average_articles(db: DB) -> ApiResponse[AverageArticles]:
    return ok("Average articles per author retrieved", stats.average_articles_per_author(db))


@router.get("/articles/top-viewed", response_model=ApiResponse[list[ArticleRanking]])
def top_viewed(db: DB) -> ApiResponse[list[ArticleRanking]]:
    return ok("Top viewed articles retrieved", stats.top_viewed_articles(db))


@router.get("/articles/most-commented", response_model=ApiResponse[list[ArticleRanking]])
def most_commented(db: DB) -> ApiResponse[list[ArticleRanking]]:
    return ok("Most commented articles retrieved", stats.most_commented_articles(db))


@router.get("/tags/top", response_model=ApiResponse[list[TagCount]])
def top_tags(db: DB) -> ApiResponse[list[TagCount]]:
    return ok("Top tags retrieved", stats.top_tags(db))


@router.get("/authors/top", response_model=ApiResponse[list[AuthorCount]])
def top_authors(db: DB) -> ApiResponse[list[AuthorCount]]:
    return ok("Top authors retrieved", stats.top_authors(db))


@router.get("/authors/frequency", response_model=ApiResponse[list[AuthorFrequency]])
def author_frequency(db: DB) -> ApiResponse[list[AuthorFrequency]]:
    """Average articles per active month for each author."""
    return ok("Author publishing frequency retrieved", stats.author_frequency(db))


@router.get("/authors/trend", response_model=ApiResponse[list[AuthorTrend]])
def author_trend(db: DB) -> ApiResponse[list[AuthorTrend]]:
    return ok("Author trends retrieved", stats.author_trends(db))
