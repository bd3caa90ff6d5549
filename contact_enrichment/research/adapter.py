"""Failure-isolating wrapper around a research provider.

Agents call the adapter instead of the provider. The adapter applies one
policy for every operation:

- while the gate is blocked, return an empty result without calling out;
- on a provider rate limit, block the gate and return an empty result;
- on any other failure, return an empty result, except ``scrape`` which
  raises ``ProviderError`` so callers can move on to a fallback URL.
"""

import logging

from contact_enrichment.core.config import settings
from contact_enrichment.core.exceptions import ProviderError, ProviderRateLimited
from contact_enrichment.research.base import (
    CrawlOptions,
    CrawlResult,
    MapResult,
    ResearchProvider,
    ScrapedContent,
    SearchResult,
    SourceType,
)
from contact_enrichment.research.gate import RateLimitGate

logger = logging.getLogger(__name__)


class ResearchAdapter:
    """Uniform research interface with process-wide rate-limit backoff.

    Args:
        provider: Backend performing the actual requests.
        gate: Backoff window; a fresh one is created when omitted.
        backoff_seconds: How long a rate-limit signal blocks the gate.
    """

    def __init__(
        self,
        provider: ResearchProvider,
        gate: RateLimitGate | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self._provider = provider
        self._gate = gate or RateLimitGate()
        self._backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.RESEARCH_BACKOFF_SECONDS
        )

    @property
    def gate(self) -> RateLimitGate:
        return self._gate

    @property
    def provider(self) -> ResearchProvider:
        return self._provider

    def _short_circuit(self, operation: str, target: str) -> bool:
        if self._gate.is_blocked():
            logger.info(
                "Skipping %s during research backoff",
                operation,
                extra={"target": target, "remaining_seconds": round(self._gate.remaining(), 1)},
            )
            return True
        return False

    def _on_rate_limited(self, operation: str, exc: ProviderRateLimited) -> None:
        self._gate.block_for(self._backoff_seconds)
        logger.warning(
            "Research provider rate limited during %s: %s",
            operation,
            exc.message,
            extra={"backoff_seconds": self._backoff_seconds},
        )

    async def search(
        self,
        query: str,
        limit: int = 5,
        source_types: tuple[SourceType, ...] = (SourceType.WEB,),
    ) -> list[SearchResult]:
        """Search the web; never raises."""
        if self._short_circuit("search", query):
            return []
        try:
            return await self._provider.search(query, limit=limit, source_types=source_types)
        except ProviderRateLimited as e:
            self._on_rate_limited("search", e)
        except Exception as e:
            logger.warning("Search failed for %r: %s", query, e)
        return []

    async def scrape(self, url: str) -> ScrapedContent:
        """Fetch one page.

        Raises:
            ProviderError: On any failure other than a rate limit.
        """
        if self._short_circuit("scrape", url):
            return ScrapedContent()
        try:
            return await self._provider.scrape(url)
        except ProviderRateLimited as e:
            self._on_rate_limited("scrape", e)
            return ScrapedContent()
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(
                self._provider.provider_name or "research", f"Scrape failed for {url}: {e}"
            ) from e

    async def map(self, url: str, limit: int = 50, search: str | None = None) -> MapResult:
        """List URLs on a site; never raises."""
        if self._short_circuit("map", url):
            return MapResult()
        try:
            return await self._provider.map(url, limit=limit, search=search)
        except ProviderRateLimited as e:
            self._on_rate_limited("map", e)
        except Exception as e:
            logger.warning("Map failed for %s: %s", url, e)
        return MapResult()

    async def crawl(self, url: str, options: CrawlOptions | None = None) -> CrawlResult:
        """Crawl a site; never raises."""
        if self._short_circuit("crawl", url):
            return CrawlResult()
        try:
            return await self._provider.crawl(url, options or CrawlOptions())
        except ProviderRateLimited as e:
            self._on_rate_limited("crawl", e)
        except Exception as e:
            logger.warning("Crawl failed for %s: %s", url, e)
        return CrawlResult()


_default_adapter: ResearchAdapter | None = None


def get_research_adapter() -> ResearchAdapter:
    """Get or create the process-wide adapter backed by Firecrawl."""
    global _default_adapter
    if _default_adapter is None:
        from contact_enrichment.integrations.firecrawl import FirecrawlClient

        _default_adapter = ResearchAdapter(FirecrawlClient())
    return _default_adapter
