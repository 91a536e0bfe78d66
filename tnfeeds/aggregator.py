"""
Feed aggregator.

Fans fetch -> parse -> normalize out over every enabled source at once,
merges whatever came back and falls back to the sample set when nothing
did. One source failing never affects the others.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import httpx

from tnfeeds.fetcher import FeedFetcher
from tnfeeds.models import AggregatorConfig, Article, Source
from tnfeeds.normalizer import PLACEHOLDER_LINK, ContentNormalizer
from tnfeeds.parser import FeedParser
from tnfeeds.sample_data import get_sample_articles
from tnfeeds.sources import enabled_sources

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """Outcome of one aggregation cycle."""

    articles: List[Article]
    fallback: bool = False  # True when articles is the static sample set
    succeeded: List[str] = field(default_factory=list)  # Source names
    failed: List[str] = field(default_factory=list)


class Aggregator:
    """
    Runs aggregation cycles.

    Collaborators are injected; nothing is kept between cycles.
    """

    def __init__(
        self,
        config: AggregatorConfig,
        fetcher: Optional[FeedFetcher] = None,
        parser: Optional[FeedParser] = None,
        normalizer: Optional[ContentNormalizer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize aggregator.

        Args:
            config: Loaded configuration
            fetcher: Optional FeedFetcher (default: built from config)
            parser: Optional FeedParser
            normalizer: Optional ContentNormalizer (default: configured length cap)
            transport: Optional httpx transport (for testing)
        """
        self.config = config
        self.fetcher = fetcher or FeedFetcher.from_config(config)
        self.parser = parser or FeedParser()
        self.normalizer = normalizer or ContentNormalizer(config.description_max_length)
        self.transport = transport

    def run(self, sources: Optional[Iterable[Source]] = None) -> AggregationResult:
        """Synchronous entry point for one cycle."""
        return asyncio.run(self.aggregate_all(sources))

    async def aggregate_all(
        self,
        sources: Optional[Iterable[Source]] = None,
        now: Optional[datetime] = None,
    ) -> AggregationResult:
        """
        Aggregate all enabled sources concurrently.

        Args:
            sources: Sources to aggregate (default: configured sources)
            now: Processing time for this cycle (default: current UTC)

        Returns:
            AggregationResult, newest article first. Never raises for
            per-source failures.
        """
        now = now or datetime.now(timezone.utc)
        sources = enabled_sources(self.config.sources if sources is None else sources)
        logger.info(f"Aggregating {len(sources)} sources")

        # Unbounded fan-out: every source is in flight at once
        async with httpx.AsyncClient(transport=self.transport, follow_redirects=True) as client:
            results = await asyncio.gather(
                *(self._process_source(client, source, now) for source in sources),
                return_exceptions=True,
            )

        collected: List[Article] = []
        succeeded: List[str] = []
        failed: List[str] = []

        for source, result in zip(sources, results):
            if isinstance(result, Exception):
                logger.warning(f"Source '{source.name}' contributed no articles: {result}")
                failed.append(source.name)
                continue
            if isinstance(result, BaseException):
                # Cancellation and interrupts are not source failures
                raise result
            succeeded.append(source.name)
            collected.extend(result)

        articles = self.merge(collected)

        if not articles:
            if self.config.use_sample_fallback:
                logger.error("No articles fetched from any source, falling back to sample data")
                return AggregationResult(
                    articles=get_sample_articles(now),
                    fallback=True,
                    succeeded=succeeded,
                    failed=failed,
                )
            logger.error("No articles fetched from any source")

        logger.info(
            f"Aggregated {len(articles)} articles "
            f"({len(succeeded)} sources ok, {len(failed)} failed)"
        )
        return AggregationResult(articles=articles, succeeded=succeeded, failed=failed)

    async def _process_source(
        self,
        client: httpx.AsyncClient,
        source: Source,
        now: datetime,
    ) -> List[Article]:
        """Fetch, parse and normalize a single source."""
        payload = await self.fetcher.fetch(client, source, parse=self.parser.parse)
        items = payload.items or []

        articles = []
        for item in items:
            try:
                articles.append(self.normalizer.normalize(item, source, now))
            except Exception as e:
                # Log error but continue with other items
                logger.error(f"Error normalizing item from {source.name}: {e}", exc_info=True)
                continue

        logger.info(f"{source.name}: {len(articles)} articles via {payload.strategy}")
        return articles

    def merge(self, articles: List[Article]) -> List[Article]:
        """
        Drop repeated stories and sort newest first.

        Articles sharing an id are the same story seen twice (the same
        feed syndicated by two outlets); the first one wins. Placeholder
        links are never deduplicated since their ids only reflect the title.
        """
        seen = set()
        unique = []
        for article in articles:
            if article.link != PLACEHOLDER_LINK:
                if article.id in seen:
                    logger.debug(f"Skipping duplicate article: {article.id}")
                    continue
                seen.add(article.id)
            unique.append(article)

        return sorted(unique, key=lambda a: a.pub_date, reverse=True)
