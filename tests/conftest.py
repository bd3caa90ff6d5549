"""Shared fixtures for enrichment pipeline tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from contact_enrichment.agents.base import AgentContext
from contact_enrichment.agents.extraction import StructuredExtractor
from contact_enrichment.agents.orchestrator import seed_discovered_data
from contact_enrichment.core.exceptions import ProviderError, ProviderRateLimited
from contact_enrichment.models.enrichment import EnrichmentField
from contact_enrichment.research.adapter import ResearchAdapter
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
from contact_enrichment.services.email_context import parse_email_context


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResearchProvider(ResearchProvider):
    """In-memory provider that records every call it receives.

    Search hits are chosen by the first configured key contained in the
    query. Scrapes of unknown URLs raise ``ProviderError``.
    """

    provider_name = "fake"

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.search_results: dict[str, list[SearchResult]] = {}
        self.pages: dict[str, ScrapedContent] = {}
        self.map_result = MapResult()
        self.crawl_result = CrawlResult()
        self.rate_limit_remaining = 0
        self.fail_with: Exception | None = None

    def _record(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        if self.rate_limit_remaining > 0:
            self.rate_limit_remaining -= 1
            raise ProviderRateLimited(self.provider_name)
        if self.fail_with is not None:
            raise self.fail_with

    async def search(
        self,
        query: str,
        limit: int = 5,
        source_types: tuple[SourceType, ...] = (SourceType.WEB,),
    ) -> list[SearchResult]:
        self._record("search", query)
        for key, results in self.search_results.items():
            if key.lower() in query.lower():
                return results[:limit]
        return []

    async def scrape(self, url: str) -> ScrapedContent:
        self._record("scrape", url)
        if url in self.pages:
            return self.pages[url]
        raise ProviderError(self.provider_name, f"404 for {url}", status_code=404)

    async def map(self, url: str, limit: int = 50, search: str | None = None) -> MapResult:
        self._record("map", url)
        return self.map_result

    async def crawl(self, url: str, options: CrawlOptions) -> CrawlResult:
        self._record("crawl", url)
        return self.crawl_result

    def count(self, operation: str | None = None) -> int:
        return len([c for c in self.calls if operation is None or c[0] == operation])


class FakeLLMClient:
    """Returns canned JSON for structured generation requests.

    ``responses`` maps a schema name to a payload; ``default`` is used for
    any other schema. A payload may be a dict, a raw string, an exception
    to raise, or a callable taking the user content.
    """

    def __init__(self, default: Any = None, **responses: Any) -> None:
        self.default = {} if default is None else default
        self.responses = responses
        self.calls: list[dict[str, Any]] = []

    async def generate_structured(
        self,
        system_prompt: str,
        user_content: str,
        json_schema: dict[str, Any],
        schema_name: str = "extraction",
        max_tokens: int | None = None,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_content": user_content,
                "json_schema": json_schema,
                "schema_name": schema_name,
            }
        )
        payload = self.responses.get(schema_name, self.default)
        if callable(payload) and not isinstance(payload, type):
            payload = payload(user_content)
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, str):
            return payload
        return json.dumps(payload)

    def schemas_called(self) -> list[str]:
        return [call["schema_name"] for call in self.calls]


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def provider() -> FakeResearchProvider:
    """A fresh fake research provider."""
    return FakeResearchProvider()


@pytest.fixture
def gate(clock: FakeClock) -> RateLimitGate:
    """A gate driven by the fake clock."""
    return RateLimitGate(clock=clock)


@pytest.fixture
def adapter(provider: FakeResearchProvider, gate: RateLimitGate) -> ResearchAdapter:
    """An isolated adapter with a 30 second backoff."""
    return ResearchAdapter(provider, gate=gate, backoff_seconds=30.0)


@pytest.fixture
def make_llm() -> Callable[..., FakeLLMClient]:
    """Factory for fake LLM clients."""
    return FakeLLMClient


@pytest.fixture
def llm() -> FakeLLMClient:
    """A fake LLM returning an empty object for every schema."""
    return FakeLLMClient()


@pytest.fixture
def extractor(llm: FakeLLMClient) -> StructuredExtractor:
    """Extractor backed by the default fake LLM."""
    return StructuredExtractor(llm)  # type: ignore[arg-type]


@pytest.fixture
def make_result() -> Callable[..., SearchResult]:
    """Factory for search results."""

    def _make(url: str, title: str = "", description: str | None = None) -> SearchResult:
        return SearchResult(url=url, title=title or url, description=description)

    return _make


@pytest.fixture
def make_context() -> Callable[..., AgentContext]:
    """Factory for agent contexts seeded the way the orchestrator seeds them."""

    def _make(
        email: str = "jane.doe@acme.com",
        fields: list[EnrichmentField] | None = None,
        **discovered: Any,
    ) -> AgentContext:
        email_context = parse_email_context(email)
        data = seed_discovered_data(email_context)
        data.update(discovered)
        return AgentContext(
            email=email,
            email_context=email_context,
            discovered_data=data,
            requested_fields=fields or [],
        )

    return _make
