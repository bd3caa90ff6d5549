"""General agent: caller-requested fields no specialized agent owns."""

import logging

from contact_enrichment.agents.base import (
    AgentContext,
    BaseEnrichmentAgent,
    dedupe_results,
    format_search_results,
    host_of,
)
from contact_enrichment.agents.company_profile import CompanyProfileAgent
from contact_enrichment.agents.discovery import DiscoveryAgent
from contact_enrichment.agents.extraction import build_output_schema
from contact_enrichment.agents.funding import FundingAgent
from contact_enrichment.agents.person import PersonAgent
from contact_enrichment.agents.tech_stack import TechStackAgent
from contact_enrichment.models.enrichment import AgentResult, EnrichmentField

logger = logging.getLogger(__name__)

GENERAL_CONFIDENCE = 0.7

# The general agent never extracts a field a specialized agent produces
SPECIALIZED_FIELD_NAMES: frozenset[str] = frozenset(
    name
    for agent in (DiscoveryAgent, CompanyProfileAgent, FundingAgent, TechStackAgent, PersonAgent)
    for name in agent.produces
)

GENERAL_INSTRUCTIONS = """You extract custom attributes about a company from search results.
Each requested field is described in the schema. Answer only from the sources,
match each field's declared type, and leave a field out if it is not supported."""


def custom_fields(requested: list[EnrichmentField]) -> list[EnrichmentField]:
    """Requested fields that no specialized agent produces."""
    seen: set[str] = set()
    remaining: list[EnrichmentField] = []
    for field in requested:
        if field.name in SPECIALIZED_FIELD_NAMES or field.name in seen:
            continue
        seen.add(field.name)
        remaining.append(field)
    return remaining


class GeneralAgent(BaseEnrichmentAgent):
    """Fills custom fields with a schema built from their declared types."""

    name = "General"
    error_key = "general"

    def validate_input(self, context: AgentContext) -> bool:
        return bool(custom_fields(context.requested_fields)) and bool(
            context.company_name or context.website
        )

    async def _execute(self, context: AgentContext, result: AgentResult) -> None:
        fields = custom_fields(context.requested_fields)
        company = context.company_name or host_of(context.website or "")

        search_results = []
        for field in fields:
            topic = field.description or field.display_name or field.name
            search_results.extend(await self.research.search(f"{company} {topic}", limit=5))
        search_results = dedupe_results(search_results)

        field_lines = "\n".join(
            f"- {field.name} ({field.type.value}): {field.description or field.display_name}"
            for field in fields
        )
        context_text = f"Company: {company}\n\nRequested fields:\n{field_lines}"
        if search_results:
            context_text += "\n\nSearch results:\n" + format_search_results(
                search_results, 10, 500
            )

        output_model = build_output_schema(fields)
        extracted = await self.extractor.extract(GENERAL_INSTRUCTIONS, output_model, context_text)
        values = extracted.model_dump(by_alias=True, exclude_none=True)

        sources = [r.url for r in search_results[:2]]
        for field in fields:
            if field.name in values:
                result.add(field.name, values[field.name], GENERAL_CONFIDENCE, sources)
