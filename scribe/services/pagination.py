"""Offset pagination over SQLAlchemy queries."""

from typing import Any

from sqlalchemy.orm import Query


def paginate(query: Query, page: int, limit: int) -> tuple[list[Any], int]:
    """Return (items for the page, total matching rows). page is 1-based."""
    page = max(1, page)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total
