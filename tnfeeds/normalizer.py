"""
Content normalizer.

Converts RawFeedItem records into Articles: plain-text descriptions,
lead images, categories, canonical dates and deterministic IDs.
"""
import re
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from bs4 import BeautifulSoup
from dateutil.parser import parse as parse_date

from tnfeeds.hashing import generate_article_id
from tnfeeds.models import Article, RawFeedItem, Source

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Unknown Article"
PLACEHOLDER_SOURCE = "Unknown Source"
# Display substitute only; ids hash the raw link and title as the site does
PLACEHOLDER_LINK = "#"
DEFAULT_CATEGORY = "General"

ELLIPSIS = "..."

# Checked in order, first match wins (not best match).
CATEGORY_KEYWORDS = (
    ("News", ("breaking", "police", "arrest", "shooting", "crash", "sheriff")),
    ("Politics", ("governor", "legislature", "lawmakers", "senate", "election",
                  "mayor", "congress", "political", "ballot")),
    ("Sports", ("football", "basketball", "baseball", "soccer", "titans", "predators",
                "grizzlies", "volunteers", "vols", "quarterback", "coach", "championship")),
    ("Business", ("business", "economy", "company", "companies", "jobs", "market",
                  "investment", "startup", "retail", "layoffs")),
    ("Arts & Culture", ("music", "concert", "museum", "festival", "theater", "theatre",
                        "artist", "gallery", "film")),
    ("Food", ("restaurant", "food", "bbq", "barbecue", "chef", "dining", "brewery")),
    ("Development", ("construction", "development", "housing", "infrastructure",
                     "zoning", "riverwalk", "apartment")),
    ("Education", ("school", "education", "teacher", "student", "university", "college")),
    ("Health", ("health", "hospital", "medical", "vaccine", "doctor", "covid")),
)

# Timezone abbreviations US feeds still put in pubDate
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
}

WHITESPACE = re.compile(r"\s+")


def html_to_text(html: Optional[str]) -> str:
    """Strip all markup and collapse whitespace."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text()
    return WHITESPACE.sub(" ", text).strip()


def truncate(text: str, max_length: int) -> str:
    """Cut to max_length and append "..." only if the text was longer."""
    if len(text) > max_length:
        return text[:max_length] + ELLIPSIS
    return text


def clean_description(html: Optional[str], max_length: int) -> str:
    """
    Plain-text, length-capped description.

    Args:
        html: Raw description HTML
        max_length: Cap before the ellipsis (200 for display feeds, 160 for compact ones)

    Returns:
        Cleaned description
    """
    return truncate(html_to_text(html), max_length)


def extract_image(item: RawFeedItem) -> str:
    """
    Pick the lead image for an item.

    Priority: enclosure, thumbnail, media content, first <img> in the
    description HTML. Returns "" when there is none.
    """
    for candidate in (item.enclosure_url, item.thumbnail_url, item.media_url):
        if candidate and candidate.strip():
            return candidate.strip()

    if item.description_html and "<img" in item.description_html.lower():
        soup = BeautifulSoup(item.description_html, "html.parser")
        for img in soup.find_all("img", src=True):
            src = img["src"].strip()
            if src:
                return src

    return ""


def match_category(text: str) -> Optional[str]:
    """First category whose keyword list has a substring match in text."""
    haystack = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in haystack for keyword in keywords):
            return category
    return None


def assign_category(item: RawFeedItem, content: str, default: str) -> str:
    """
    Category for an item.

    An explicit feed category wins, then the keyword table over
    title + content, then the source default.
    """
    if item.categories:
        return item.categories[0]

    matched = match_category(f"{item.title or ''} {content}")
    if matched:
        return matched

    return default or DEFAULT_CATEGORY


def normalize_date(raw: Optional[str], now: datetime) -> datetime:
    """
    Parse a feed date into an aware UTC datetime.

    Naive values are taken as UTC. Anything unparsable becomes ``now``.
    """
    if not raw or not raw.strip():
        return now

    try:
        dt = parse_date(raw.strip(), tzinfos=TZINFOS)
    except (ValueError, OverflowError, TypeError) as e:
        logger.debug(f"Unparsable date {raw!r}, using processing time: {e}")
        return now

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ContentNormalizer:
    """Builds Articles from raw feed items."""

    def __init__(self, description_max_length: int = 200):
        """
        Initialize normalizer.

        Args:
            description_max_length: Description cap before the ellipsis
        """
        if description_max_length < 1:
            raise ValueError("description_max_length must be positive")
        self.description_max_length = description_max_length

    def normalize(
        self,
        item: RawFeedItem,
        source: Source,
        now: Optional[datetime] = None,
    ) -> Article:
        """
        Normalize one item.

        Missing fields get placeholders rather than dropping the item, so
        a feed that systematically omits links still shows up downstream.

        Args:
            item: Parsed feed item
            source: Source the item came from
            now: Processing time used for missing dates (default: current UTC)

        Returns:
            Article
        """
        now = now or datetime.now(timezone.utc)

        title = item.title if item.title and item.title.strip() else PLACEHOLDER_TITLE
        link = item.link.strip() if item.link and item.link.strip() else PLACEHOLDER_LINK
        content = html_to_text(item.description_html)

        return Article(
            id=generate_article_id(item.link, item.title),
            title=title,
            link=link,
            description=truncate(content, self.description_max_length),
            pub_date=normalize_date(item.pub_date, now),
            source=source.name or PLACEHOLDER_SOURCE,
            region=source.region,
            category=assign_category(item, content, source.category),
            image=extract_image(item),
        )
