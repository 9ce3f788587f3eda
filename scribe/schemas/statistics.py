"""Response schemas for the admin statistics endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class Overview(BaseModel):
    total_articles: int
    total_authors: int
    total_comments: int
    total_tags: int


class MonthlyCount(BaseModel):
    date: str = Field(..., description="Month as YYYY-MM")
    count: int


class AverageArticles(BaseModel):
    total_articles: int
    total_authors: int
    average_per_author: float


class ArticleRanking(BaseModel):
    id: int
    title: str
    views: int
    comment_count: int
    image: str | None = None
    created_at: datetime | None = None


class TagCount(BaseModel):
    tag: str
    count: int


class AuthorCount(BaseModel):
    author_id: int
    name: str
    email: str
    article_count: int


class AuthorFrequency(BaseModel):
    author_id: int
    name: str
    average_per_month: float


class AuthorTrend(BaseModel):
    author_id: int
    name: str
    year: int
    month: int
    count: int
