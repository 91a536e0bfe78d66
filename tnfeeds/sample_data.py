"""
Static fallback sample set.

Returned by the aggregator only when a cycle produced no articles at all,
so the site never renders a blank feed. Callers can tell it apart from
live data by its IDs (see is_sample_set).
"""
from datetime import datetime, timezone, timedelta
from typing import Iterable, List, Optional

from tnfeeds.hashing import generate_article_id
from tnfeeds.models import Article
from tnfeeds.timeago import time_ago_seconds

SAMPLE_ARTICLES = (
    {
        "title": "Nashville's Music Row Historic Preservation Project Receives $3M Grant",
        "link": "https://tennesseefeeds.com/articles/nashville-music-row-preservation",
        "description": "The Music Row Preservation Foundation announced today that it has received "
                       "a major grant to help preserve historic music studios in the district.",
        "source": "Nashville Public Radio",
        "age": "4 hours ago",
        "region": "Nashville",
        "category": "Arts & Culture",
    },
    {
        "title": "Tennessee Volunteers Add Five-Star Quarterback to 2026 Recruiting Class",
        "link": "https://tennesseefeeds.com/articles/tennessee-volunteers-quarterback-recruit",
        "description": "The University of Tennessee football program received a major commitment "
                       "from one of the nation's top-rated quarterback prospects for the 2026 "
                       "recruiting class.",
        "source": "Knoxville News Sentinel",
        "age": "6 hours ago",
        "region": "Knoxville",
        "category": "Sports",
    },
    {
        "title": "New Memphis BBQ Trail Map Features 22 Essential Restaurants",
        "link": "https://tennesseefeeds.com/articles/memphis-bbq-trail-map",
        "description": "The Memphis Tourism Board has released its 2025 BBQ Trail map featuring "
                       "22 must-visit BBQ joints across the city and surrounding areas.",
        "source": "Memphis Commercial Appeal",
        "age": "8 hours ago",
        "region": "Memphis",
        "category": "Food",
    },
    {
        "title": "Chattanooga's Riverwalk Extension Project Enters Final Phase",
        "link": "https://tennesseefeeds.com/articles/chattanooga-riverwalk-extension",
        "description": "The final phase of Chattanooga's ambitious Riverwalk extension project "
                       "begins next month, promising to add 3.5 miles of scenic paths along the "
                       "Tennessee River.",
        "source": "Chattanooga Times Free Press",
        "age": "10 hours ago",
        "region": "Chattanooga",
        "category": "Development",
    },
    {
        "title": "Governor Signs New Education Funding Bill for Tennessee Schools",
        "link": "https://tennesseefeeds.com/articles/tennessee-education-funding-bill",
        "description": "Tennessee's governor signed a new education funding bill today that will "
                       "increase per-pupil spending and provide additional resources for rural "
                       "schools.",
        "source": "Tennessee State News",
        "age": "12 hours ago",
        "region": "Nashville",
        "category": "Politics",
    },
)

SAMPLE_ARTICLE_IDS = frozenset(
    generate_article_id(sample["link"], sample["title"]) for sample in SAMPLE_ARTICLES
)


def get_sample_articles(now: Optional[datetime] = None) -> List[Article]:
    """
    Build the sample set, newest first.

    Dates are resolved from each sample's age relative to ``now``.
    """
    now = now or datetime.now(timezone.utc)

    articles = []
    for sample in SAMPLE_ARTICLES:
        age_seconds = time_ago_seconds(sample["age"]) or 0
        articles.append(
            Article(
                id=generate_article_id(sample["link"], sample["title"]),
                title=sample["title"],
                link=sample["link"],
                description=sample["description"],
                pub_date=now - timedelta(seconds=age_seconds),
                source=sample["source"],
                region=sample["region"],
                category=sample["category"],
                image="",
            )
        )
    return articles


def is_sample_set(articles: Iterable[Article]) -> bool:
    """True if every article (and at least one) belongs to the sample set."""
    ids = [a.id for a in articles]
    return bool(ids) and all(article_id in SAMPLE_ARTICLE_IDS for article_id in ids)
