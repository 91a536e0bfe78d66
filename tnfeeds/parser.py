"""
Feed parser.

Turns a fetched payload into RawFeedItem records. XML payloads go
through feedparser first and fall back to a plain xmltodict projection
of rss.channel.item when feedparser gives up. JSON payloads come from
RSS-to-JSON proxies and are projected directly.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import feedparser
import xmltodict

from tnfeeds.fetcher import FeedPayload
from tnfeeds.models import ProxyFormat, RawFeedItem

logger = logging.getLogger(__name__)


class FeedParseError(ValueError):
    """Raised when no parsing strategy could read a payload."""

    pass


class FeedParser:
    """Parses feed payloads into RawFeedItem lists."""

    def parse(self, payload: FeedPayload) -> List[RawFeedItem]:
        """
        Parse a fetched payload.

        Args:
            payload: Body returned by the fetcher

        Returns:
            Items in feed order (possibly empty)

        Raises:
            FeedParseError: If every strategy failed
        """
        if payload.format is ProxyFormat.JSON:
            return self.parse_json(payload.content)
        return self.parse_xml(payload.content)

    def parse_xml(self, content: bytes) -> List[RawFeedItem]:
        """Parse RSS/Atom XML, falling back to xmltodict on failure."""
        try:
            return self._parse_with_feedparser(content)
        except Exception as primary_error:
            logger.warning(f"feedparser failed ({primary_error}), trying fallback XML parser")
            try:
                return self._parse_with_xmltodict(content)
            except Exception as fallback_error:
                raise FeedParseError(
                    f"Both parsers failed: feedparser: {primary_error}; "
                    f"xmltodict: {fallback_error}"
                ) from fallback_error

    def parse_json(self, content: bytes) -> List[RawFeedItem]:
        """
        Project an RSS-to-JSON proxy response.

        Accepts both {"items": [...]} and {"feed": {"entries": [...]}}.
        """
        try:
            data = json.loads(content)
        except ValueError as e:
            raise FeedParseError(f"Invalid JSON payload: {e}") from e

        if not isinstance(data, dict):
            raise FeedParseError("JSON payload is not an object")

        items = data.get("items")
        if items is None:
            feed = data.get("feed")
            items = feed.get("entries") if isinstance(feed, dict) else None
        if not isinstance(items, list):
            raise FeedParseError("JSON payload has no item list")

        return [self._from_json_item(item) for item in items if isinstance(item, dict)]

    def _parse_with_feedparser(self, content: bytes) -> List[RawFeedItem]:
        feed = feedparser.parse(content)

        if feed.bozo:
            bozo_exception = feed.get("bozo_exception")
            if not feed.entries:
                raise FeedParseError(f"Unreadable feed: {bozo_exception}")
            logger.warning(f"Feed has parsing issues (bozo flag set): {bozo_exception}")

        return [self._from_entry(entry) for entry in feed.entries]

    def _parse_with_xmltodict(self, content: bytes) -> List[RawFeedItem]:
        doc = xmltodict.parse(content)

        rss = doc.get("rss") if isinstance(doc, dict) else None
        channel = rss.get("channel") if isinstance(rss, dict) else None
        if not isinstance(channel, dict):
            raise FeedParseError("Document has no rss.channel element")

        items = channel.get("item") or []
        # A single <item> comes back as a dict rather than a list
        if isinstance(items, dict):
            items = [items]

        parsed = [self._from_xml_item(item) for item in items if isinstance(item, dict)]
        logger.info(f"Fallback parser recovered {len(parsed)} items")
        return parsed

    def _from_entry(self, entry) -> RawFeedItem:
        """Map a feedparser entry."""
        description = entry.get("summary") or entry.get("description") or ""
        if not description and entry.get("content"):
            description = entry.content[0].get("value", "")

        categories = [t.get("term") for t in entry.get("tags", []) if t.get("term")]

        enclosure_url = None
        for enclosure in entry.get("enclosures", []):
            if enclosure.get("href"):
                enclosure_url = enclosure["href"]
                break

        return RawFeedItem(
            title=entry.get("title"),
            link=entry.get("link"),
            description_html=description,
            pub_date=entry.get("published") or entry.get("updated"),
            categories=categories,
            enclosure_url=enclosure_url,
            thumbnail_url=_first_url(entry.get("media_thumbnail")),
            media_url=_first_url(entry.get("media_content")),
        )

    def _from_xml_item(self, item: Dict[str, Any]) -> RawFeedItem:
        """Map an xmltodict <item> dict."""
        description = _text(item.get("description")) or _text(item.get("content:encoded")) or ""

        enclosure = _first(item.get("enclosure"))
        enclosure_url = enclosure.get("@url") if isinstance(enclosure, dict) else None

        thumbnail = _first(item.get("media:thumbnail"))
        media = _first(item.get("media:content"))

        return RawFeedItem(
            title=_text(item.get("title")),
            link=_text(item.get("link")),
            description_html=description,
            pub_date=_text(item.get("pubDate")) or _text(item.get("dc:date")),
            categories=_text_list(item.get("category")),
            enclosure_url=enclosure_url,
            thumbnail_url=thumbnail.get("@url") if isinstance(thumbnail, dict) else None,
            media_url=media.get("@url") if isinstance(media, dict) else None,
        )

    def _from_json_item(self, item: Dict[str, Any]) -> RawFeedItem:
        """Map an rss2json style item."""
        enclosure = item.get("enclosure")
        enclosure_url = None
        if isinstance(enclosure, dict):
            enclosure_url = enclosure.get("link") or enclosure.get("url")

        categories = item.get("categories")
        if categories is None:
            categories = item.get("category")

        thumbnail = item.get("thumbnail")

        return RawFeedItem(
            title=item.get("title"),
            link=item.get("link"),
            description_html=item.get("description") or item.get("content") or "",
            pub_date=item.get("pubDate") or item.get("published") or item.get("isoDate"),
            categories=_text_list(categories),
            enclosure_url=enclosure_url,
            thumbnail_url=thumbnail if isinstance(thumbnail, str) else None,
            media_url=_first_url(item.get("media_content")),
        )


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _first_url(media: Any) -> Optional[str]:
    """First "url" of a media list ([{"url": ...}, ...])."""
    first = _first(media)
    if isinstance(first, dict):
        return first.get("url") or None
    return None


def _text(value: Any) -> Optional[str]:
    """Text of an xmltodict node (plain string, or "#text" when it has attributes)."""
    value = _first(value)
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("#text")
        if value is None:
            return None
    return str(value)


def _text_list(value: Any) -> List[str]:
    if value is None:
        return []
    values = value if isinstance(value, list) else [value]
    texts = [_text(v) for v in values]
    return [t.strip() for t in texts if t and t.strip()]
