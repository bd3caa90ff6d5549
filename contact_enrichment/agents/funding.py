"""Funding agent: stage, amounts raised, investors, valuation."""

import logging

from pydantic import Field

from contact_enrichment.agents.base import (
    WEB_AND_NEWS,
    AgentContext,
    BaseEnrichmentAgent,
    format_search_results,
    host_of,
    prioritize_by_domain,
)
from contact_enrichment.agents.extraction import ExtractionModel
from contact_enrichment.models.enrichment import AgentResult

logger = logging.getLogger(__name__)

FUNDING_AUTHORITIES = ("crunchbase.com", "techcrunch.com", "bloomberg.com", "reuters.com")

FUNDING_STAGES = frozenset(
    {
        "seed",
        "series-a",
        "series-b",
        "series-c",
        "series-d",
        "series-e",
        "series-f",
        "ipo",
        "acquired",
        "bootstrapped",
    }
)

# field -> (confidence with an authority source, confidence from snippets only)
FUNDING_CONFIDENCE: dict[str, tuple[float, float]] = {
    "fundingStage": (0.85, 0.7),
    "totalRaised": (0.85, 0.7),
    "lastRoundAmount": (0.8, 0.65),
    "lastRoundDate": (0.75, 0.6),
    "investors": (0.8, 0.65),
    "valuation": (0.7, 0.55),
}

FUNDING_INSTRUCTIONS = """You extract venture funding facts about a company.
Trust funding databases and major business press over other sources.
fundingStage must be one of: seed, series-a, series-b, series-c, series-d,
series-e, series-f, ipo, acquired, bootstrapped.
Amounts keep their currency and scale as written (e.g. "$45M").
Leave a field out if the sources do not state it."""


def normalize_stage(stage: str | None) -> str | None:
    """Map free-form stage text like ``Series A`` to ``series-a``."""
    if not stage:
        return None
    normalized = "-".join(stage.lower().replace("_", " ").split())
    return normalized if normalized in FUNDING_STAGES else None


class FundingOutput(ExtractionModel):
    funding_stage: str | None = Field(None, alias="fundingStage")
    total_raised: str | None = Field(None, alias="totalRaised")
    last_round_amount: str | None = Field(None, alias="lastRoundAmount")
    last_round_date: str | None = Field(None, alias="lastRoundDate")
    investors: list[str] | None = None
    valuation: str | None = None


class FundingAgent(BaseEnrichmentAgent):
    """Researches funding history, preferring funding-data and press sites."""

    name = "Funding"
    error_key = "funding"
    produces = tuple(FUNDING_CONFIDENCE)

    def validate_input(self, context: AgentContext) -> bool:
        return bool(context.company_name)

    async def _execute(self, context: AgentContext, result: AgentResult) -> None:
        company = context.company_name
        search_results = await self.search_many(
            [
                f"{company} funding",
                f"{company} investors",
                f"{company} series A",
                f"{company} crunchbase",
                f"{company} raised",
                f"{company} valuation",
            ],
            limit=5,
            source_types=WEB_AND_NEWS,
        )
        ranked = prioritize_by_domain(search_results, FUNDING_AUTHORITIES)[:10]
        if not ranked:
            logger.info("No funding research found for %s", company)
            return

        context_text = f"Company: {company}\n\nSearch results:\n" + format_search_results(
            ranked, 10, 400
        )
        extracted = await self.extractor.extract(FUNDING_INSTRUCTIONS, FundingOutput, context_text)

        authority_urls = [
            r.url
            for r in ranked
            if any(host_of(r.url).endswith(domain) for domain in FUNDING_AUTHORITIES)
        ]
        sources = (authority_urls or [r.url for r in ranked])[:3]
        tier = 0 if authority_urls else 1

        values = {
            "fundingStage": normalize_stage(extracted.funding_stage),
            "totalRaised": extracted.total_raised,
            "lastRoundAmount": extracted.last_round_amount,
            "lastRoundDate": extracted.last_round_date,
            "investors": [i for i in (extracted.investors or []) if i],
            "valuation": extracted.valuation,
        }
        for field_name, value in values.items():
            result.add(field_name, value, FUNDING_CONFIDENCE[field_name][tier], sources)
