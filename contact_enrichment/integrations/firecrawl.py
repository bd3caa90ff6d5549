"""Firecrawl research provider.

Talks to the Firecrawl v2 REST API (https://firecrawl.dev) with httpx:

- POST /v2/search: web and news search with optional markdown content
- POST /v2/scrape: single page as markdown and html
- POST /v2/map: URL discovery on a site
- POST /v2/crawl + GET /v2/crawl/{id}: asynchronous multi-page crawl

Errors are raised, not swallowed: HTTP 429 (or a "rate limit" message)
becomes ``ProviderRateLimited`` and every other failure ``ProviderError``.
Backoff is handled one level up by ``ResearchAdapter``.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from contact_enrichment.core.config import Settings, settings
from contact_enrichment.core.exceptions import ProviderError, ProviderRateLimited
from contact_enrichment.research.base import (
    CrawlOptions,
    CrawlResult,
    MapLink,
    MapResult,
    ResearchProvider,
    ScrapedContent,
    SearchResult,
    SourceType,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "firecrawl"


def _is_rate_limit_message(message: str) -> bool:
    lowered = message.lower()
    return "rate limit" in lowered or "too many requests" in lowered


def _page_from_payload(payload: dict[str, Any]) -> ScrapedContent:
    return ScrapedContent(
        markdown=payload.get("markdown"),
        html=payload.get("html") or payload.get("rawHtml"),
        metadata=payload.get("metadata"),
    )


def _result_from_payload(item: dict[str, Any]) -> SearchResult | None:
    url = item.get("url") or (item.get("metadata") or {}).get("sourceURL")
    if not url:
        return None
    return SearchResult(
        url=url,
        title=item.get("title") or "",
        description=item.get("description") or item.get("snippet"),
        markdown=item.get("markdown"),
    )


class FirecrawlClient(ResearchProvider):
    """Firecrawl v2 client implementing :class:`ResearchProvider`.

    Args:
        config: Settings providing key, base URL and timeouts.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        sleep: Awaitable sleep used between crawl status polls.
    """

    provider_name: str = PROVIDER_NAME

    def __init__(
        self,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config or settings
        self._api_key = self._config.FIRECRAWL_API_KEY.get_secret_value()
        self._base_url = self._config.FIRECRAWL_BASE_URL
        self._transport = transport
        self._sleep = sleep

        if not self._api_key:
            logger.warning("FirecrawlClient initialized WITHOUT API key - all calls will fail")

    def _get_headers(self) -> dict[str, str]:
        """Build request headers with API key."""
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one API request and return the decoded body.

        Raises:
            ProviderRateLimited: On HTTP 429 or a rate-limit error message.
            ProviderError: On any other failure.
        """
        if not self._api_key:
            raise ProviderError(PROVIDER_NAME, "FIRECRAWL_API_KEY not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self._config.FIRECRAWL_TIMEOUT_SECONDS,
                headers=self._get_headers(),
                transport=self._transport,
            ) as client:
                resp = await client.request(method, f"{self._base_url}{path}", json=payload)
        except httpx.HTTPError as exc:
            logger.error("FIRECRAWL: %s %s failed: %s", method, path, exc)
            raise ProviderError(PROVIDER_NAME, f"{method} {path} failed: {exc}") from exc

        if resp.status_code == 429:
            logger.warning("FIRECRAWL: rate limited on %s", path)
            raise ProviderRateLimited(PROVIDER_NAME)

        try:
            data = resp.json()
        except ValueError:
            data = {}

        error_message = str(data.get("error") or "") if isinstance(data, dict) else ""
        if resp.status_code >= 400 or (isinstance(data, dict) and data.get("success") is False):
            if _is_rate_limit_message(error_message):
                raise ProviderRateLimited(PROVIDER_NAME, error_message)
            logger.error(
                "FIRECRAWL: %s %s failed with status=%d response='%s'",
                method,
                path,
                resp.status_code,
                resp.text[:200],
            )
            raise ProviderError(
                PROVIDER_NAME,
                error_message or f"{method} {path} returned {resp.status_code}",
                status_code=resp.status_code,
            )

        if not isinstance(data, dict):
            raise ProviderError(PROVIDER_NAME, f"Unexpected response body from {path}")
        return data

    async def search(
        self,
        query: str,
        limit: int = 5,
        source_types: tuple[SourceType, ...] = (SourceType.WEB,),
    ) -> list[SearchResult]:
        """Search via ``/v2/search``."""
        logger.info("FIRECRAWL: search query='%s' limit=%d", query[:100], limit)
        data = await self._request(
            "POST",
            "/v2/search",
            {
                "query": query,
                "limit": limit,
                "sources": [{"type": source.value} for source in source_types],
                "scrapeOptions": {"formats": ["markdown"], "onlyMainContent": True},
            },
        )

        body = data.get("data")
        items: list[dict[str, Any]] = []
        if isinstance(body, list):
            items = body
        elif isinstance(body, dict):
            for source in source_types:
                items.extend(body.get(source.value) or [])

        results = [r for r in (_result_from_payload(item) for item in items) if r is not None]
        logger.info("FIRECRAWL: got %d results for query='%s'", len(results), query[:100])
        return results

    async def scrape(self, url: str) -> ScrapedContent:
        """Scrape one page via ``/v2/scrape``."""
        data = await self._request(
            "POST",
            "/v2/scrape",
            {"url": url, "formats": ["markdown", "html"], "onlyMainContent": True},
        )
        return _page_from_payload(data.get("data") or {})

    async def map(self, url: str, limit: int = 50, search: str | None = None) -> MapResult:
        """Discover site URLs via ``/v2/map``."""
        payload: dict[str, Any] = {"url": url, "limit": limit}
        if search:
            payload["search"] = search
        data = await self._request("POST", "/v2/map", payload)

        links: list[MapLink] = []
        for link in data.get("links") or []:
            if isinstance(link, str):
                links.append(MapLink(url=link))
            elif isinstance(link, dict) and link.get("url"):
                links.append(MapLink(url=link["url"], title=link.get("title")))
        return MapResult(links=links)

    async def crawl(self, url: str, options: CrawlOptions) -> CrawlResult:
        """Start a crawl job and poll until it completes or times out."""
        payload: dict[str, Any] = {
            "url": url,
            "limit": options.limit,
            "maxDiscoveryDepth": options.max_depth,
            "scrapeOptions": {"formats": ["markdown", "html"], "onlyMainContent": True},
        }
        if options.include_paths:
            payload["includePaths"] = options.include_paths
        if options.exclude_paths:
            payload["excludePaths"] = options.exclude_paths

        started = await self._request("POST", "/v2/crawl", payload)
        job_id = started.get("id")
        if not job_id:
            raise ProviderError(PROVIDER_NAME, "Crawl did not return a job id")

        deadline = time.monotonic() + self._config.FIRECRAWL_CRAWL_TIMEOUT_SECONDS
        while True:
            status = await self._request("GET", f"/v2/crawl/{job_id}")
            state = status.get("status")
            if state == "completed":
                pages = [_page_from_payload(page) for page in status.get("data") or []]
                logger.info("FIRECRAWL: crawl %s finished with %d pages", job_id, len(pages))
                return CrawlResult(pages=pages)
            if state in ("failed", "cancelled"):
                raise ProviderError(PROVIDER_NAME, f"Crawl {job_id} {state}")
            if time.monotonic() >= deadline:
                raise ProviderError(PROVIDER_NAME, f"Crawl {job_id} timed out")
            await self._sleep(self._config.FIRECRAWL_POLL_INTERVAL_SECONDS)
