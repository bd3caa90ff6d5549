"""Tech stack agent: languages, frameworks, infrastructure and tools."""

import logging
import re

from contact_enrichment.agents.base import (
    AgentContext,
    BaseEnrichmentAgent,
    format_search_results,
    host_of,
    page_text,
    truncate,
)
from contact_enrichment.agents.extraction import ExtractionModel
from contact_enrichment.models.enrichment import AgentResult
from contact_enrichment.research.base import CrawlOptions

logger = logging.getLogger(__name__)

TECH_CLUE_PATTERNS = [
    re.compile(r"\b(React|Angular|Vue|Svelte)\b", re.IGNORECASE),
    re.compile(r"\b(Node\.js|Python|Java|Go|Rust|Ruby)\b", re.IGNORECASE),
    re.compile(r"\b(AWS|GCP|Azure|Vercel|Netlify)\b", re.IGNORECASE),
    re.compile(r"\b(PostgreSQL|MySQL|MongoDB|Redis)\b", re.IGNORECASE),
    re.compile(r"\b(Docker|Kubernetes|Terraform)\b", re.IGNORECASE),
    re.compile(r"\b(GitHub|GitLab|Bitbucket)\b", re.IGNORECASE),
]

STACK_AUTHORITIES = ("stackshare.io", "builtwith.com")

TECH_INSTRUCTIONS = """You identify the technologies a company uses.
Base answers on job posts, engineering pages, the company website and stack databases.
Return lists for languages, frameworks, infrastructure (cloud, databases, hosting)
and tools (CI, source control, monitoring). Use canonical product names.
Leave a list out if the sources do not mention any."""


class TechStackOutput(ExtractionModel):
    languages: list[str] | None = None
    frameworks: list[str] | None = None
    infrastructure: list[str] | None = None
    tools: list[str] | None = None


def detect_tech_clues(text: str) -> list[str]:
    """Technology names mentioned in ``text``, first-seen order, de-duplicated."""
    found: dict[str, str] = {}
    for pattern in TECH_CLUE_PATTERNS:
        for match in pattern.finditer(text):
            found.setdefault(match.group(1).lower(), match.group(1))
    return list(found.values())


def merge_unique(*groups: list[str]) -> list[str]:
    """Concatenate lists, dropping case-insensitive duplicates."""
    seen: set[str] = set()
    merged: list[str] = []
    for group in groups:
        for item in group:
            key = item.strip().lower()
            if key and key not in seen:
                seen.add(key)
                merged.append(item.strip())
    return merged


class TechStackAgent(BaseEnrichmentAgent):
    """Combines search, the homepage and careers pages to infer the stack."""

    name = "TechStack"
    error_key = "techStack"
    produces = ("languages", "frameworks", "infrastructure", "tools", "techStack")

    def validate_input(self, context: AgentContext) -> bool:
        return bool(context.company_name or context.website)

    async def _execute(self, context: AgentContext, result: AgentResult) -> None:
        company = context.company_name or host_of(context.website or "")
        website = context.website

        search_results = await self.search_many(
            [
                f"{company} tech stack",
                f"{company} technology engineering blog",
                f"{company} built with",
                f"{company} github",
                f"{company} stackshare",
            ],
            limit=5,
        )

        website_text = ""
        careers_text = ""
        if website:
            homepage = await self.scrape_first([website])
            if homepage:
                website_text = page_text(homepage[1], prefer_html=True)
            crawl = await self.research.crawl(
                website,
                CrawlOptions(
                    limit=5,
                    max_depth=1,
                    include_paths=["/careers/*", "/jobs/*", "/team/*"],
                ),
            )
            careers_text = "\n\n".join(page_text(page) for page in crawl.pages if page.has_content)

        clues = detect_tech_clues(
            "\n".join(
                [website_text, careers_text]
                + [r.markdown or r.description or "" for r in search_results]
            )
        )

        sections = [f"Company: {company}"]
        if clues:
            sections.append("Technologies mentioned: " + ", ".join(clues))
        if website_text:
            sections.append(f"Website ({website}):\n{truncate(website_text, 2000)}")
        if careers_text:
            sections.append(f"Careers pages:\n{truncate(careers_text, 2000)}")
        if search_results:
            sections.append("Search results:\n" + format_search_results(search_results, 10, 300))

        extracted = await self.extractor.extract(
            TECH_INSTRUCTIONS, TechStackOutput, "\n\n".join(sections)
        )

        search_urls = [r.url for r in search_results]
        stack_urls = [
            url for url in search_urls if any(host_of(url).endswith(d) for d in STACK_AUTHORITIES)
        ]
        site_sources = [website] if website and (website_text or careers_text) else []
        has_site = bool(website_text or careers_text)

        result.add(
            "languages",
            merge_unique(extracted.languages or []),
            0.8 if has_site else 0.65,
            (site_sources + search_urls)[:3],
        )
        result.add(
            "frameworks",
            merge_unique(extracted.frameworks or []),
            0.8 if has_site else 0.65,
            (site_sources + search_urls)[:3],
        )
        result.add(
            "infrastructure",
            merge_unique(extracted.infrastructure or []),
            0.75 if stack_urls else 0.65,
            (stack_urls or search_urls)[:3],
        )
        result.add("tools", merge_unique(extracted.tools or []), 0.7, search_urls[:3])

        parts = [
            name
            for name in ("languages", "frameworks", "infrastructure", "tools")
            if name in result.fields
        ]
        if parts:
            result.add(
                "techStack",
                merge_unique(*(result.fields[name] for name in parts)),
                max(result.confidence[name] for name in parts),
                merge_unique(*(result.sources[name] for name in parts)),
            )
