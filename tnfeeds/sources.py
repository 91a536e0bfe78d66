"""
Static registry of Tennessee news sources.

Used when config.yaml does not list its own sources.
"""
from typing import Iterable, List

from tnfeeds.models import Source

DEFAULT_SOURCES = (
    Source(
        name="The Tennessean",
        feed_url="https://www.tennessean.com/rss/",
        region="Nashville",
        category="General",
    ),
    Source(
        name="Knoxville News Sentinel",
        feed_url="https://www.knoxnews.com/rss/",
        region="Knoxville",
        category="General",
    ),
    Source(
        name="Commercial Appeal",
        feed_url="https://www.commercialappeal.com/rss/",
        region="Memphis",
        category="General",
    ),
    Source(
        name="Chattanooga Times Free Press",
        feed_url="https://www.timesfreepress.com/rss/headlines/",
        region="Chattanooga",
        category="General",
    ),
    Source(
        name="WKRN News 2",
        feed_url="https://www.wkrn.com/feed/",
        region="Nashville",
        category="General",
    ),
    Source(
        name="WBIR",
        feed_url="https://www.wbir.com/feeds/rss/news/local/",
        region="Knoxville",
        category="Local",
    ),
)


def enabled_sources(sources: Iterable[Source]) -> List[Source]:
    """Return the enabled sources, preserving registry order."""
    return [s for s in sources if s.enabled]
