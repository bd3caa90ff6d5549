"""Person agent: title, seniority, department, LinkedIn URL, location."""

import logging

from pydantic import Field

from contact_enrichment.agents.base import AgentContext, BaseEnrichmentAgent, host_of, truncate
from contact_enrichment.agents.extraction import ExtractionModel
from contact_enrichment.models.enrichment import AgentResult
from contact_enrichment.research.base import SearchResult

logger = logging.getLogger(__name__)

SENIORITY_LEVELS = frozenset(
    {"executive", "director", "senior", "mid", "junior", "founder", "unknown"}
)

PERSON_INSTRUCTIONS = """You identify a person's role at a company from search results.
Only report facts about this exact person at this exact company.
Return titleNormalized (a clean job title), seniority (executive, director, senior,
mid, junior, founder), department, linkedinUrl (a linkedin.com/in/ profile URL)
and location. Leave a field out if the sources do not support it."""


class PersonOutput(ExtractionModel):
    title_normalized: str | None = Field(None, alias="titleNormalized")
    seniority: str | None = None
    department: str | None = None
    linkedin_url: str | None = Field(None, alias="linkedinUrl")
    location: str | None = None


def is_linkedin(url: str) -> bool:
    host = host_of(url)
    return host == "linkedin.com" or host.endswith(".linkedin.com")


def format_person_results(results: list[SearchResult]) -> str:
    """Render hits; LinkedIn pages contribute only their title and URL."""
    blocks = []
    for index, result in enumerate(results[:10], start=1):
        if is_linkedin(result.url):
            blocks.append(
                f"[{index}] [LinkedIn Profile - metadata only] {result.title}\nURL: {result.url}"
            )
            continue
        body = truncate(result.markdown or result.description, 400)
        blocks.append(f"[{index}] {result.title}\nURL: {result.url}\n{body}".rstrip())
    return "\n\n".join(blocks)


class PersonAgent(BaseEnrichmentAgent):
    """Looks up the address owner by derived name and company."""

    name = "Person"
    error_key = "person"
    produces = ("titleNormalized", "seniority", "department", "linkedinUrl", "location")

    @staticmethod
    def person_name(context: AgentContext) -> str:
        return context.email_context.personal_name or context.email.split("@", 1)[0]

    def validate_input(self, context: AgentContext) -> bool:
        return bool(self.person_name(context) and context.company_name)

    async def _execute(self, context: AgentContext, result: AgentResult) -> None:
        person = self.person_name(context)
        company = context.company_name

        search_results = await self.search_many(
            [
                f"{person} {company}",
                f"{person} {company} linkedin",
                f"{context.email} {company}",
                f'"{person}" "{company}" title',
            ],
            limit=5,
        )
        if not search_results:
            logger.info("No person research found for %s at %s", person, company)
            return

        context_text = (
            f"Person: {person}\nEmail: {context.email}\nCompany: {company}\n\n"
            f"Search results:\n{format_person_results(search_results)}"
        )
        extracted = await self.extractor.extract(PERSON_INSTRUCTIONS, PersonOutput, context_text)

        linkedin_urls = [r.url for r in search_results if is_linkedin(r.url)]
        other_urls = [r.url for r in search_results if not is_linkedin(r.url)]
        sources = (linkedin_urls + other_urls)[:3]

        result.add(
            "titleNormalized", extracted.title_normalized, 0.85 if linkedin_urls else 0.7, sources
        )
        seniority = (extracted.seniority or "").lower()
        if seniority in SENIORITY_LEVELS and seniority != "unknown":
            result.add("seniority", seniority, 0.75, sources)
        result.add("department", extracted.department, 0.7, sources)

        linkedin_url = extracted.linkedin_url
        if linkedin_url and is_linkedin(linkedin_url):
            backed = linkedin_url.rstrip("/") in {u.rstrip("/") for u in linkedin_urls}
            result.add(
                "linkedinUrl",
                linkedin_url,
                0.9 if backed else 0.6,
                [linkedin_url] if backed else sources,
            )
        result.add("location", extracted.location, 0.7, sources)
