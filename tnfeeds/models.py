"""
Data models for the TennesseeFeeds aggregator.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple
from datetime import datetime, timezone

from tnfeeds.timeago import format_time_ago


class LogLevel(Enum):
    """Valid log levels for aggregator configuration."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ProxyFormat(Enum):
    """Payload shape returned by a feed proxy service."""
    JSON = "json"  # RSS-to-JSON services (rss2json style)
    XML = "xml"  # Raw pass-through proxies


@dataclass(frozen=True)
class Source:
    """
    A configured news outlet with a retrievable RSS/Atom feed.

    Immutable (frozen) since sources are loaded once at startup.
    """

    name: str  # Display name (e.g., "WBIR")
    feed_url: str  # RSS/Atom feed URL
    region: str  # Geographic tag (e.g., "Knoxville")
    category: str  # Default category when none can be inferred
    enabled: bool = True

    def __post_init__(self):
        """Validate required fields."""
        if not self.name or not self.name.strip():
            raise ValueError("Source.name cannot be empty")
        if not self.feed_url or not self.feed_url.strip():
            raise ValueError("Source.feed_url cannot be empty")


@dataclass
class RawFeedItem:
    """
    A feed entry as it came out of the parser, before normalization.

    Every field may be missing in the source feed.
    """

    title: Optional[str] = None
    link: Optional[str] = None
    description_html: str = ""
    pub_date: Optional[str] = None  # Raw date string, unparsed
    categories: List[str] = field(default_factory=list)
    enclosure_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    media_url: Optional[str] = None


@dataclass
class Article:
    """
    Normalized article, the output unit of an aggregation cycle.

    The id is derived from (link, title) only, so the same story maps to
    the same id on every run.
    """

    id: str
    title: str
    link: str
    description: str
    pub_date: datetime  # Timezone-aware, UTC
    source: str
    region: str
    category: str
    image: str = ""

    def __post_init__(self):
        """Validate required fields."""
        if not self.id:
            raise ValueError("Article.id cannot be empty")
        if not self.title:
            raise ValueError("Article.title cannot be empty")
        if not self.source:
            raise ValueError("Article.source cannot be empty")

    def to_dict(self) -> Dict[str, str]:
        """Wire form consumed by the site (camelCase, ISO-8601 date)."""
        return {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "pubDate": self.pub_date.astimezone(timezone.utc).isoformat(),
            "source": self.source,
            "region": self.region,
            "category": self.category,
            "image": self.image,
        }

    def to_display_dict(self, now: Optional[datetime] = None) -> Dict[str, str]:
        """Wire form plus the human readable "time ago" string."""
        data = self.to_dict()
        data["formattedDate"] = format_time_ago(self.pub_date, now)
        return data


@dataclass(frozen=True)
class ProxyConfig:
    """A feed proxy service tried after (or instead of) a direct fetch."""

    name: str
    url: str  # Prefix; the URL-encoded feed URL is appended
    format: ProxyFormat = ProxyFormat.JSON

    def __post_init__(self):
        """Validate configuration fields."""
        if not self.name or not self.name.strip():
            raise ValueError("ProxyConfig.name cannot be empty")
        if not self.url or not self.url.strip():
            raise ValueError("ProxyConfig.url cannot be empty")


@dataclass(frozen=True)
class AggregatorConfig:
    """
    Full aggregator configuration.

    Loaded from config.yaml.
    Immutable (frozen) to prevent accidental modification after loading.
    """

    sources: Tuple[Source, ...]
    proxies: Tuple[ProxyConfig, ...] = ()
    direct_fetch: bool = True  # Try the feed URL itself before any proxy
    request_timeout: float = 10.0
    user_agent: str = "TennesseeFeeds-Aggregator/1.0 (+https://tennesseefeeds.com)"
    description_max_length: int = 200
    use_sample_fallback: bool = True
    output_file: str = "data/feeds.json"
    log_level: LogLevel = LogLevel.INFO

    def __post_init__(self):
        """Validate configuration."""
        if not self.sources:
            raise ValueError("AggregatorConfig.sources cannot be empty")
        if not self.direct_fetch and not self.proxies:
            raise ValueError("AggregatorConfig needs direct_fetch or at least one proxy")
        if self.request_timeout <= 0:
            raise ValueError(
                f"AggregatorConfig.request_timeout must be positive, got: {self.request_timeout}"
            )
        if type(self.description_max_length) is not int or self.description_max_length < 1:
            raise ValueError(
                "AggregatorConfig.description_max_length must be a positive integer, "
                f"got: {self.description_max_length}"
            )
