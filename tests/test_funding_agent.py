"""Tests for the funding agent."""

from collections.abc import Callable

import pytest

from contact_enrichment.agents.base import AgentContext
from contact_enrichment.agents.extraction import StructuredExtractor
from contact_enrichment.agents.funding import FundingAgent, normalize_stage
from contact_enrichment.research.adapter import ResearchAdapter
from contact_enrichment.research.base import SearchResult

from conftest import FakeLLMClient, FakeResearchProvider

CRUNCHBASE = "https://www.crunchbase.com/organization/acme"
BLOG = "https://blog.test/acme-raises"


def _agent(adapter: ResearchAdapter, llm: FakeLLMClient) -> FundingAgent:
    return FundingAgent(adapter, StructuredExtractor(llm))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Series A", "series-a"),
        ("series_b", "series-b"),
        ("IPO", "ipo"),
        ("  Seed ", "seed"),
        ("pre-seed", None),
        (None, None),
    ],
)
def test_normalize_stage(raw: str | None, expected: str | None) -> None:
    assert normalize_stage(raw) == expected


class TestFundingAgent:
    """Tests for FundingAgent.execute."""

    async def test_authority_sources_use_higher_confidence(
        self,
        adapter: ResearchAdapter,
        provider: FakeResearchProvider,
        make_llm: Callable[..., FakeLLMClient],
        make_context: Callable[..., AgentContext],
        make_result: Callable[..., SearchResult],
    ) -> None:
        provider.search_results["acme"] = [make_result(BLOG), make_result(CRUNCHBASE)]
        llm = make_llm(
            FundingOutput={
                "fundingStage": "Series A",
                "totalRaised": "$45M",
                "investors": ["Sequoia", ""],
            }
        )

        result = await _agent(adapter, llm).execute(make_context())

        assert result.fields == {
            "fundingStage": "series-a",
            "totalRaised": "$45M",
            "investors": ["Sequoia"],
        }
        assert result.confidence == {
            "fundingStage": 0.85,
            "totalRaised": 0.85,
            "investors": 0.8,
        }
        assert result.sources["fundingStage"] == [CRUNCHBASE]

    async def test_snippet_only_sources_use_lower_confidence(
        self,
        adapter: ResearchAdapter,
        provider: FakeResearchProvider,
        make_llm: Callable[..., FakeLLMClient],
        make_context: Callable[..., AgentContext],
        make_result: Callable[..., SearchResult],
    ) -> None:
        provider.search_results["acme"] = [make_result(BLOG)]
        llm = make_llm(
            FundingOutput={"totalRaised": "$45M", "lastRoundDate": "2023-04", "valuation": "$1B"}
        )

        result = await _agent(adapter, llm).execute(make_context())

        assert result.confidence == {
            "totalRaised": 0.7,
            "lastRoundDate": 0.6,
            "valuation": 0.55,
        }
        assert result.sources["totalRaised"] == [BLOG]

    async def test_authority_results_come_first_in_prompt(
        self,
        adapter: ResearchAdapter,
        provider: FakeResearchProvider,
        llm: FakeLLMClient,
        make_context: Callable[..., AgentContext],
        make_result: Callable[..., SearchResult],
    ) -> None:
        provider.search_results["acme"] = [make_result(BLOG), make_result(CRUNCHBASE)]

        await _agent(adapter, llm).execute(make_context())

        prompt = llm.calls[0]["user_content"]
        assert prompt.index(CRUNCHBASE) < prompt.index(BLOG)
        assert provider.count("search") == 6

    async def test_unrecognized_stage_is_dropped(
        self,
        adapter: ResearchAdapter,
        provider: FakeResearchProvider,
        make_llm: Callable[..., FakeLLMClient],
        make_context: Callable[..., AgentContext],
        make_result: Callable[..., SearchResult],
    ) -> None:
        provider.search_results["acme"] = [make_result(CRUNCHBASE)]
        llm = make_llm(FundingOutput={"fundingStage": "Series Z"})

        result = await _agent(adapter, llm).execute(make_context())

        assert "fundingStage" not in result.fields

    async def test_no_research_means_no_extraction(
        self,
        adapter: ResearchAdapter,
        llm: FakeLLMClient,
        make_context: Callable[..., AgentContext],
    ) -> None:
        result = await _agent(adapter, llm).execute(make_context())

        assert result.is_empty
        assert llm.calls == []

    async def test_skipped_without_company_name(
        self,
        adapter: ResearchAdapter,
        provider: FakeResearchProvider,
        llm: FakeLLMClient,
        make_context: Callable[..., AgentContext],
    ) -> None:
        result = await _agent(adapter, llm).execute(make_context(companyNameGuess=None))

        assert result.is_empty
        assert provider.calls == []
