"""Base agent module for enrichment agents.

Provides the abstract base class, the per-call context, and the text
helpers every agent uses to build bounded prompts from research results.
"""

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from contact_enrichment.agents.extraction import StructuredExtractor
from contact_enrichment.core.exceptions import ProviderError
from contact_enrichment.models.enrichment import AgentResult, EmailContext, EnrichmentField
from contact_enrichment.research.adapter import ResearchAdapter
from contact_enrichment.research.base import ScrapedContent, SearchResult, SourceType

logger = logging.getLogger(__name__)

WEB_AND_NEWS = (SourceType.WEB, SourceType.NEWS)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class AgentContext:
    """Everything an agent may read during one enrichment call.

    ``discovered_data`` is shared by all phases of the call and grows as
    phases finish.
    """

    email: str
    email_context: EmailContext
    discovered_data: dict[str, Any] = field(default_factory=dict)
    requested_fields: list[EnrichmentField] = field(default_factory=list)

    @property
    def company_name(self) -> str | None:
        """Best known company name: confirmed first, then the address guess."""
        return self.discovered_data.get("companyName") or self.discovered_data.get(
            "companyNameGuess"
        )

    @property
    def website(self) -> str | None:
        website = self.discovered_data.get("website")
        return str(website).rstrip("/") if website else None


def truncate(text: str | None, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters."""
    if not text:
        return ""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def html_to_text(html: str) -> str:
    """Drop scripts, styles and tags, collapsing whitespace."""
    without_code = _SCRIPT_STYLE_RE.sub(" ", html)
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", without_code)).strip()


def page_text(page: ScrapedContent, prefer_html: bool = False) -> str:
    """Readable text of a scraped page."""
    if prefer_html and page.html:
        return html_to_text(page.html)
    if page.markdown:
        return page.markdown
    return html_to_text(page.html) if page.html else ""


def host_of(url: str) -> str:
    host = urlparse(url).netloc.lower()
    return host[4:] if host.startswith("www.") else host


def dedupe_results(results: list[SearchResult]) -> list[SearchResult]:
    """Drop repeated URLs, keeping first occurrence."""
    seen: set[str] = set()
    unique: list[SearchResult] = []
    for result in results:
        if result.url in seen:
            continue
        seen.add(result.url)
        unique.append(result)
    return unique


def format_search_results(results: list[SearchResult], limit: int, chars: int) -> str:
    """Render search hits as numbered blocks, each cut to ``chars``."""
    blocks = []
    for index, result in enumerate(results[:limit], start=1):
        body = truncate(result.markdown or result.description, chars)
        blocks.append(f"[{index}] {result.title}\nURL: {result.url}\n{body}".rstrip())
    return "\n\n".join(blocks)


def prioritize_by_domain(
    results: list[SearchResult], domains: tuple[str, ...]
) -> list[SearchResult]:
    """Stable sort putting results from ``domains`` first."""

    def rank(result: SearchResult) -> int:
        host = host_of(result.url)
        return 0 if any(host == d or host.endswith(f".{d}") for d in domains) else 1

    return sorted(results, key=rank)


class BaseEnrichmentAgent(ABC):
    """Abstract base class for enrichment agents.

    Subclasses set ``name``, ``error_key`` and ``produces`` and implement
    ``_execute``. ``execute`` wraps it with guards, timing and error
    capture so a failing agent still returns an :class:`AgentResult`.
    """

    name: str
    error_key: str
    produces: tuple[str, ...] = ()

    def __init__(self, research: ResearchAdapter, extractor: StructuredExtractor) -> None:
        """Initialize the agent.

        Args:
            research: Adapter for search/scrape/map/crawl.
            extractor: Schema-validated LLM extraction helper.
        """
        self.research = research
        self.extractor = extractor

    def validate_input(self, context: AgentContext) -> bool:  # noqa: ARG002
        """Return False when the agent has nothing to query on."""
        return True

    @abstractmethod
    async def _execute(self, context: AgentContext, result: AgentResult) -> None:
        """Gather research, extract, and fill ``result``."""

    async def execute(self, context: AgentContext) -> AgentResult:
        """Run the agent with lifecycle management.

        Args:
            context: Per-call enrichment context.

        Returns:
            AgentResult; errors are recorded under ``error_key``.
        """
        result = AgentResult()
        if not self.validate_input(context):
            logger.info("Agent %s skipped: preconditions not met", self.name)
            return result

        start_time = time.perf_counter()
        try:
            await self._execute(context, result)
        except Exception as e:
            result.errors[self.error_key] = str(e)
            logger.warning(
                "Agent %s failed: %s",
                self.name,
                e,
                extra={"agent": self.name, "email_domain": context.email_context.domain},
            )

        logger.info(
            "Agent %s finished",
            self.name,
            extra={
                "agent": self.name,
                "fields": sorted(result.fields),
                "execution_time_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return result

    async def search_many(
        self,
        queries: list[str],
        limit: int = 5,
        source_types: tuple[SourceType, ...] = (SourceType.WEB,),
    ) -> list[SearchResult]:
        """Run queries one after another and return de-duplicated hits."""
        results: list[SearchResult] = []
        for query in queries:
            results.extend(
                await self.research.search(query, limit=limit, source_types=source_types)
            )
        return dedupe_results(results)

    async def scrape_first(self, urls: list[str]) -> tuple[str, ScrapedContent] | None:
        """Scrape ``urls`` in order and return the first page with content."""
        for url in urls:
            try:
                page = await self.research.scrape(url)
            except ProviderError as e:
                logger.debug("Scrape of %s failed, trying next: %s", url, e)
                continue
            if page.has_content:
                return url, page
        return None
