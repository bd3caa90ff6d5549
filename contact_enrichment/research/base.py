"""Base web research provider interface.

Research backends (Firecrawl, or any equivalent search/scrape service)
implement this abstract class so agents can gather raw page text through
``ResearchAdapter`` without knowing which vendor is behind it.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class SourceType(str, Enum):
    """Search verticals a provider may support."""

    WEB = "web"
    NEWS = "news"


class SearchResult(BaseModel):
    """A single search hit."""

    url: str
    title: str = ""
    description: str | None = None
    markdown: str | None = None


class ScrapedContent(BaseModel):
    """Content of a single fetched page."""

    markdown: str | None = None
    html: str | None = None
    metadata: dict[str, Any] | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.markdown or self.html)

    @property
    def url(self) -> str | None:
        """Source URL reported by the provider, if any."""
        if not self.metadata:
            return None
        return self.metadata.get("sourceURL") or self.metadata.get("url")


class MapLink(BaseModel):
    """A URL discovered on a site."""

    url: str
    title: str | None = None


class MapResult(BaseModel):
    """Links discovered by mapping a site."""

    links: list[MapLink] = Field(default_factory=list)


class CrawlOptions(BaseModel):
    """Bounds for a multi-page crawl."""

    limit: int = 20
    max_depth: int = 2
    include_paths: list[str] = Field(default_factory=list)
    exclude_paths: list[str] = Field(default_factory=list)


class CrawlResult(BaseModel):
    """Pages returned by a crawl."""

    pages: list[ScrapedContent] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Abstract base class
# ---------------------------------------------------------------------------


class ResearchProvider(ABC):
    """Abstract web research provider.

    Implementations raise ``ProviderRateLimited`` when the vendor signals a
    rate limit and ``ProviderError`` for any other failure. They do not
    retry or back off themselves.
    """

    provider_name: str = ""
    """Identifier for this provider (e.g. ``"firecrawl"``)."""

    @abstractmethod
    async def search(
        self,
        query: str,
        limit: int = 5,
        source_types: tuple[SourceType, ...] = (SourceType.WEB,),
    ) -> list[SearchResult]:
        """Run a web search.

        Args:
            query: Search query.
            limit: Maximum results per source type.
            source_types: Verticals to search.

        Returns:
            Search hits, best first.
        """

    @abstractmethod
    async def scrape(self, url: str) -> ScrapedContent:
        """Fetch one page as markdown and html."""

    @abstractmethod
    async def map(self, url: str, limit: int = 50, search: str | None = None) -> MapResult:
        """List URLs on a site, optionally filtered by a search term."""

    @abstractmethod
    async def crawl(self, url: str, options: CrawlOptions) -> CrawlResult:
        """Fetch several pages reachable from ``url``."""
