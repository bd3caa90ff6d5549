"""Company profile agent: industry, headquarters, founding year, size."""

import logging

from pydantic import Field

from contact_enrichment.agents.base import (
    WEB_AND_NEWS,
    AgentContext,
    BaseEnrichmentAgent,
    format_search_results,
    host_of,
    page_text,
    prioritize_by_domain,
    truncate,
)
from contact_enrichment.agents.extraction import ExtractionModel
from contact_enrichment.models.enrichment import AgentResult
from contact_enrichment.research.base import CrawlOptions

logger = logging.getLogger(__name__)

ABOUT_PATHS = ("/about", "/company", "/careers", "/team")
PROFILE_AUTHORITIES = ("linkedin.com", "crunchbase.com", "wikipedia.org")

PROFILE_INSTRUCTIONS = """You build a company profile from research text.
Prefer the company's own about page over third-party snippets.
Return industry, headquarters (city and region), yearFounded (four-digit year),
a one or two sentence description, employeeCount (number or range as text),
and companyType (startup, enterprise, sme, nonprofit).
Leave a field out if the sources do not state it."""


class CompanyProfileOutput(ExtractionModel):
    industry: str | None = None
    headquarters: str | None = None
    year_founded: int | None = Field(None, alias="yearFounded")
    description: str | None = None
    employee_count: str | None = Field(None, alias="employeeCount")
    company_type: str | None = Field(None, alias="companyType")


class CompanyProfileAgent(BaseEnrichmentAgent):
    """Profiles the company, favouring its own about page."""

    name = "CompanyProfile"
    error_key = "companyProfile"
    produces = (
        "industry",
        "headquarters",
        "yearFounded",
        "description",
        "employeeCount",
        "companyType",
    )

    def validate_input(self, context: AgentContext) -> bool:
        return bool(context.company_name or context.website)

    async def _gather_about_page(self, website: str) -> tuple[str | None, str]:
        found = await self.scrape_first([f"{website}{path}" for path in ABOUT_PATHS])
        if found:
            url, page = found
            return url, page_text(page)

        crawl = await self.research.crawl(
            website,
            CrawlOptions(
                limit=10,
                max_depth=1,
                include_paths=["/about/*", "/company/*", "/careers/*"],
            ),
        )
        pages = [page for page in crawl.pages if page.has_content]
        if not pages:
            return None, ""
        return pages[0].url or website, "\n\n".join(page_text(page) for page in pages)

    async def _execute(self, context: AgentContext, result: AgentResult) -> None:
        company = context.company_name or host_of(context.website or "")
        website = context.website

        search_results = await self.search_many(
            [
                f"{company} industry sector",
                f"{company} headquarters location",
                f"{company} founded year",
                f"about {company} company",
                f"{company} number of employees",
            ],
            limit=5,
            source_types=WEB_AND_NEWS,
        )
        search_results = prioritize_by_domain(search_results, PROFILE_AUTHORITIES)

        about_url, about_text = (None, "")
        if website:
            about_url, about_text = await self._gather_about_page(website)

        sections = [f"Company: {company}"]
        if website:
            sections.append(f"Website: {website}")
        if about_text:
            sections.append(f"About page ({about_url}):\n{truncate(about_text, 3000)}")
        if search_results:
            sections.append("Search results:\n" + format_search_results(search_results, 8, 300))

        extracted = await self.extractor.extract(
            PROFILE_INSTRUCTIONS, CompanyProfileOutput, "\n\n".join(sections)
        )

        primary = bool(about_text)
        search_urls = [r.url for r in search_results]
        sources = ([about_url] if about_url else []) + search_urls
        sources = sources[:3]

        result.add("industry", extracted.industry, 0.85 if primary else 0.7, sources)
        result.add("headquarters", extracted.headquarters, 0.85 if primary else 0.7, sources)
        result.add("yearFounded", extracted.year_founded, 0.85 if primary else 0.7, sources)
        result.add("description", extracted.description, 0.9 if primary else 0.75, sources)
        result.add("employeeCount", extracted.employee_count, 0.7, search_urls[:3] or sources)
        if extracted.company_type and extracted.company_type.lower() != "unknown":
            result.add("companyType", extracted.company_type.lower(), 0.75, sources)
