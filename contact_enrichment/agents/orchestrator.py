"""Enrichment orchestrator.

Runs the agents as an ordered list of phases over a shared
discovered-data mapping and merges their output field by field.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from contact_enrichment.agents.base import AgentContext, BaseEnrichmentAgent
from contact_enrichment.agents.company_profile import CompanyProfileAgent
from contact_enrichment.agents.discovery import DiscoveryAgent
from contact_enrichment.agents.extraction import StructuredExtractor
from contact_enrichment.agents.fields import DEFAULT_FIELDS
from contact_enrichment.agents.funding import FundingAgent
from contact_enrichment.agents.general import GeneralAgent
from contact_enrichment.agents.person import PersonAgent
from contact_enrichment.agents.tech_stack import TechStackAgent
from contact_enrichment.models.enrichment import (
    AgentResult,
    EmailContext,
    EnrichmentField,
    EnrichmentResult,
    SourceContext,
)
from contact_enrichment.research.adapter import ResearchAdapter, get_research_adapter
from contact_enrichment.services.email_context import parse_email_context

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.7


class MergePolicy(str, Enum):
    """How a phase's fields combine with results from earlier phases."""

    OVERRIDE_BY_CONFIDENCE = "override_by_confidence"
    FILL_ABSENT_ONLY = "fill_absent_only"


@dataclass(frozen=True)
class PhaseDescriptor:
    """One step of the pipeline."""

    name: str
    agent: BaseEnrichmentAgent
    merge_policy: MergePolicy = MergePolicy.OVERRIDE_BY_CONFIDENCE


def clamp_confidence(value: float | None) -> float:
    """Missing confidence defaults to 0.7; anything else is clamped to [0, 1]."""
    if value is None:
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


def merge_agent_result(
    results: dict[str, EnrichmentResult],
    agent_result: AgentResult,
    policy: MergePolicy,
) -> list[str]:
    """Merge one phase's fields into ``results`` in place.

    A field absent from ``results`` is always inserted. A present field is
    replaced only under ``OVERRIDE_BY_CONFIDENCE`` and only when the new
    confidence is strictly greater.

    Returns:
        Names of fields that were inserted or replaced.
    """
    changed: list[str] = []
    for name, value in agent_result.fields.items():
        confidence = clamp_confidence(agent_result.confidence.get(name))
        existing = results.get(name)
        if existing is not None:
            if policy is MergePolicy.FILL_ABSENT_ONLY or confidence <= existing.confidence:
                continue

        sources = agent_result.sources.get(name, [])
        results[name] = EnrichmentResult(
            field=name,
            value=value,
            confidence=confidence,
            source=sources[0] if sources else None,
            source_context=[SourceContext(url=url, snippet="") for url in sources],
        )
        changed.append(name)
    return changed


def seed_discovered_data(context: EmailContext) -> dict[str, Any]:
    """Initial discovered data for a corporate address."""
    return {
        "email": context.email,
        "domain": context.domain,
        "companyDomain": context.company_domain,
        "companyNameGuess": context.company_name_guess,
        "website": f"https://{context.company_domain}" if context.company_domain else None,
    }


def build_default_phases(
    research: ResearchAdapter, extractor: StructuredExtractor
) -> list[PhaseDescriptor]:
    """Discovery, CompanyProfile, Funding, TechStack, Person, then General."""
    return [
        PhaseDescriptor("discovery", DiscoveryAgent(research, extractor)),
        PhaseDescriptor("companyProfile", CompanyProfileAgent(research, extractor)),
        PhaseDescriptor("funding", FundingAgent(research, extractor)),
        PhaseDescriptor("techStack", TechStackAgent(research, extractor)),
        PhaseDescriptor("person", PersonAgent(research, extractor)),
        PhaseDescriptor("general", GeneralAgent(research, extractor), MergePolicy.FILL_ABSENT_ONLY),
    ]


class EnrichmentOrchestrator:
    """Runs enrichment phases in order and arbitrates their output.

    Args:
        research: Research adapter shared by every agent; defaults to the
            process-wide Firecrawl-backed adapter.
        extractor: LLM extraction helper.
        phases: Explicit phase list; defaults to :func:`build_default_phases`.
    """

    def __init__(
        self,
        research: ResearchAdapter | None = None,
        extractor: StructuredExtractor | None = None,
        phases: list[PhaseDescriptor] | None = None,
    ) -> None:
        if phases is None:
            phases = build_default_phases(
                research or get_research_adapter(), extractor or StructuredExtractor()
            )
        self.phases = phases

    async def enrich_email(
        self,
        email: str,
        fields: list[EnrichmentField] | None = None,
    ) -> dict[str, EnrichmentResult]:
        """Enrich one address.

        Args:
            email: Address to enrich.
            fields: Requested fields; the built-in set when empty or None.

        Returns:
            Merged results keyed by field name. Empty for personal addresses.

        Raises:
            InvalidEmailError: If the address is malformed.
        """
        email_context = parse_email_context(email)
        if email_context.is_personal_email:
            logger.info("Skipping enrichment for personal email domain %s", email_context.domain)
            return {}

        context = AgentContext(
            email=email,
            email_context=email_context,
            discovered_data=seed_discovered_data(email_context),
            requested_fields=list(fields) if fields else list(DEFAULT_FIELDS),
        )
        results: dict[str, EnrichmentResult] = {}

        for phase in self.phases:
            start_time = time.perf_counter()
            try:
                agent_result = await phase.agent.execute(context)
            except Exception:
                logger.exception("Phase %s raised; continuing with empty result", phase.name)
                agent_result = AgentResult()

            changed = merge_agent_result(results, agent_result, phase.merge_policy)
            context.discovered_data.update(agent_result.fields)

            logger.info(
                "Enrichment phase %s complete",
                phase.name,
                extra={
                    "phase": phase.name,
                    "fields_found": sorted(agent_result.fields),
                    "fields_merged": changed,
                    "errors": agent_result.errors,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                },
            )

        return results
