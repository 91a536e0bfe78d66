"""
RSS feed fetcher with a prioritized chain of fetch strategies.
"""
import json
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence
from urllib.parse import quote

import httpx

from tnfeeds.models import AggregatorConfig, ProxyConfig, ProxyFormat, RawFeedItem, Source

logger = logging.getLogger(__name__)


class FeedFetchError(Exception):
    """Raised when every fetch strategy failed for a source."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


@dataclass
class FeedPayload:
    """Raw body returned by a fetch strategy."""

    content: bytes
    format: ProxyFormat
    strategy: str  # Name of the strategy that produced it
    items: Optional[List[RawFeedItem]] = None  # Set when fetched with a parse step


class FetchStrategy(ABC):
    """One way of retrieving a feed (directly or through a proxy)."""

    name: str = ""
    format: ProxyFormat = ProxyFormat.XML

    @abstractmethod
    def build_url(self, feed_url: str) -> str:
        """Return the URL to request for the given feed URL."""
        pass

    def validate(self, content: bytes) -> None:
        """
        Reject bodies that came back 2xx but carry no feed.

        Raises:
            ValueError: If the body is unusable
        """
        if not content or not content.strip():
            raise ValueError("Empty response body")

    async def fetch(
        self,
        client: httpx.AsyncClient,
        feed_url: str,
        timeout: float,
        headers: dict,
    ) -> FeedPayload:
        """
        Request the feed once.

        Raises:
            httpx.HTTPError: On network failure, timeout or non-2xx status
            ValueError: If the body fails validation
        """
        url = self.build_url(feed_url)
        response = await client.get(url, timeout=timeout, headers=headers)
        response.raise_for_status()

        self.validate(response.content)
        return FeedPayload(content=response.content, format=self.format, strategy=self.name)


class DirectStrategy(FetchStrategy):
    """Fetch the feed URL itself."""

    name = "direct"
    format = ProxyFormat.XML

    def build_url(self, feed_url: str) -> str:
        return feed_url


class ProxyStrategy(FetchStrategy):
    """
    Fetch through a proxy service that takes the feed URL as a parameter.

    JSON proxies (rss2json style) report errors inside a 200 response, so
    their body is checked for an "ok" status and at least one item.
    """

    def __init__(self, proxy: ProxyConfig):
        self.proxy = proxy
        self.name = proxy.name
        self.format = proxy.format

    def build_url(self, feed_url: str) -> str:
        return f"{self.proxy.url}{quote(feed_url, safe='')}"

    def validate(self, content: bytes) -> None:
        super().validate(content)
        if self.format is not ProxyFormat.JSON:
            return

        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("Proxy returned a non-object JSON body")

        status = data.get("status")
        if status is not None and status != "ok":
            raise ValueError(f"Proxy reported status '{status}': {data.get('message', '')}")

        feed = data.get("feed")
        entries = feed.get("entries") if isinstance(feed, dict) else None
        if not (data.get("items") or entries):
            raise ValueError("Proxy returned no items")


class FeedFetcher:
    """
    Fetches raw feed content for a source.

    Features:
    - Strategies tried in order until one succeeds
    - Timeout bounds each whole request, body included
    - Identifying User-Agent header
    - No retries: a failed source is retried on the next scheduled run
    """

    DEFAULT_USER_AGENT = "TennesseeFeeds-Aggregator/1.0 (+https://tennesseefeeds.com)"

    def __init__(
        self,
        strategies: Optional[Sequence[FetchStrategy]] = None,
        timeout: float = 10.0,
        user_agent: Optional[str] = None,
    ):
        """
        Initialize feed fetcher.

        Args:
            strategies: Fetch strategies in priority order (default: direct only)
            timeout: Request timeout in seconds
            user_agent: Custom User-Agent string
        """
        self.strategies = list(strategies) if strategies else [DirectStrategy()]
        self.timeout = timeout
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT

    @classmethod
    def from_config(cls, config: AggregatorConfig) -> "FeedFetcher":
        """Build the strategy chain described by the configuration."""
        strategies: List[FetchStrategy] = []
        if config.direct_fetch:
            strategies.append(DirectStrategy())
        strategies.extend(ProxyStrategy(p) for p in config.proxies)

        return cls(
            strategies=strategies,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
        )

    async def fetch(
        self,
        client: httpx.AsyncClient,
        source: Source,
        parse: Optional[Callable[[FeedPayload], List[RawFeedItem]]] = None,
    ) -> FeedPayload:
        """
        Fetch a source's feed.

        With ``parse``, a strategy only succeeds once its body parses to at
        least one item, so a 200 bot-check page or an empty feed moves on to
        the next strategy. If every strategy fails but one returned a
        readable empty feed, that empty payload is returned.

        Args:
            client: Shared async HTTP client
            source: Source to fetch
            parse: Optional payload -> items step (sets ``payload.items``)

        Returns:
            Payload from the first strategy that succeeded

        Raises:
            FeedFetchError: If all strategies fail
        """
        headers = {"User-Agent": self.user_agent}
        errors = []
        empty: Optional[FeedPayload] = None

        for strategy in self.strategies:
            try:
                logger.debug(f"Fetching {source.name} via {strategy.name}")
                # Caps the whole request, including a body trickling in slowly
                payload = await asyncio.wait_for(
                    strategy.fetch(client, source.feed_url, self.timeout, headers),
                    timeout=self.timeout,
                )
                if parse is not None:
                    payload.items = parse(payload)

            except asyncio.TimeoutError:
                errors.append(f"{strategy.name}: timed out after {self.timeout}s")
                logger.warning(
                    f"Fetch via {strategy.name} timed out for {source.name} after {self.timeout}s"
                )
                continue

            except (httpx.HTTPError, ValueError) as e:
                errors.append(f"{strategy.name}: {e}")
                logger.warning(f"Fetch via {strategy.name} failed for {source.name}: {e}")
                continue

            if parse is not None and not payload.items:
                errors.append(f"{strategy.name}: no items")
                logger.warning(f"Fetch via {strategy.name} returned no items for {source.name}")
                if empty is None:
                    empty = payload
                continue

            logger.info(
                f"Fetched {source.name} via {strategy.name} ({len(payload.content)} bytes)"
            )
            return payload

        if empty is not None:
            logger.info(f"{source.name} has no items via any strategy")
            return empty

        raise FeedFetchError(
            f"All {len(self.strategies)} fetch strategies failed for {source.name}",
            errors=errors,
        )
