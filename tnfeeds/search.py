"""
Filtering and search over an aggregated article list.
"""
from typing import Iterable, List, Optional

from tnfeeds.models import Article

ALL = "all"


def _matches(value: str, wanted: Optional[str]) -> bool:
    if wanted is None or wanted.strip().lower() in ("", ALL):
        return True
    return (value or "").lower() == wanted.strip().lower()


def filter_articles(
    articles: Iterable[Article],
    region: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Article]:
    """
    Keep articles matching a region and/or category.

    Matching is case-insensitive and exact; None, "" or "all" disables
    that filter. Input order is preserved.
    """
    return [a for a in articles if _matches(a.region, region) and _matches(a.category, category)]


def search_articles(
    articles: Iterable[Article],
    query: str,
    limit: Optional[int] = None,
) -> List[Article]:
    """
    Case-insensitive substring search over title, description, source and category.

    Args:
        articles: Articles to search
        query: Search term
        limit: Maximum number of results (default: all)

    Returns:
        Matching articles in input order

    Raises:
        ValueError: If query is blank
    """
    if not query or not query.strip():
        raise ValueError("Search query cannot be empty")

    needle = query.strip().lower()
    matched = [
        a for a in articles
        if any(needle in (field or "").lower()
               for field in (a.title, a.description, a.source, a.category))
    ]

    if limit is not None:
        return matched[:limit]
    return matched
