"""Discovery agent: confirms company name, website and type from the domain."""

import logging

from pydantic import Field

from contact_enrichment.agents.base import (
    AgentContext,
    BaseEnrichmentAgent,
    format_search_results,
    page_text,
    truncate,
)
from contact_enrichment.agents.extraction import ExtractionModel
from contact_enrichment.models.enrichment import AgentResult

logger = logging.getLogger(__name__)

COMPANY_TYPES = frozenset({"startup", "enterprise", "sme", "nonprofit", "unknown"})

DISCOVERY_INSTRUCTIONS = """You identify the company behind an email domain.
Use only the provided homepage text, search results and site links.
Return the official company name, the canonical website URL, the primary domain,
and the company type (one of: startup, enterprise, sme, nonprofit, unknown).
Leave a field out if the sources do not support it."""


def normalize_website(url: str | None) -> str | None:
    """Give a bare host an https scheme and drop any trailing slash."""
    url = (url or "").strip()
    if not url:
        return None
    if "://" not in url:
        url = "https://" + url.lstrip("/")
    return url.rstrip("/")


class DiscoveryOutput(ExtractionModel):
    company_name: str | None = Field(None, alias="companyName")
    website: str | None = None
    domain: str | None = None
    company_type: str | None = Field(
        None,
        alias="companyType",
        description="startup, enterprise, sme, nonprofit or unknown",
    )


class DiscoveryAgent(BaseEnrichmentAgent):
    """Runs first; later phases condition their queries on its findings."""

    name = "Discovery"
    error_key = "discovery"
    produces = ("companyName", "website", "domain", "companyType")

    def validate_input(self, context: AgentContext) -> bool:
        return bool(context.email_context.company_domain) and not (
            context.email_context.is_personal_email
        )

    async def _execute(self, context: AgentContext, result: AgentResult) -> None:
        company_domain = context.email_context.company_domain or context.email_context.domain
        website = context.website or f"https://{company_domain}"
        guess = context.company_name or company_domain

        homepage = await self.scrape_first([website, f"{website}/about"])
        page_url, page_content = (homepage[0], page_text(homepage[1])) if homepage else (None, "")

        search_results = await self.search_many(
            [f"{guess} company", f"{guess} official website"], limit=5
        )
        site_map = await self.research.map(website, limit=20)

        sections = [
            f"Email domain: {company_domain}",
            f"Guessed company name: {guess}",
        ]
        if page_content:
            sections.append(f"Homepage content ({page_url}):\n{truncate(page_content, 2000)}")
        if search_results:
            sections.append("Search results:\n" + format_search_results(search_results, 5, 300))
        if site_map.links:
            links = "\n".join(
                f"- {link.url}" + (f" ({link.title})" if link.title else "")
                for link in site_map.links[:10]
            )
            sections.append(f"Site links:\n{links}")

        extracted = await self.extractor.extract(
            DISCOVERY_INSTRUCTIONS, DiscoveryOutput, "\n\n".join(sections)
        )

        search_urls = [r.url for r in search_results]
        has_page = bool(page_content)

        result.add(
            "companyName",
            extracted.company_name,
            0.9 if has_page else 0.7,
            [page_url] if page_url else search_urls[:3],
        )
        extracted_website = normalize_website(extracted.website)
        if extracted_website:
            result.add("website", extracted_website, 0.95, [page_url or extracted_website])
        elif has_page:
            result.add("website", website, 0.85, [page_url or website])
        result.add("domain", extracted.domain, 0.95, [page_url or website])

        company_type = (extracted.company_type or "").lower()
        if company_type in COMPANY_TYPES and company_type != "unknown":
            result.add("companyType", company_type, 0.7, search_urls[:3])
