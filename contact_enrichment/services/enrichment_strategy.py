"""Enrichment strategy: the entry point callers use.

Applies the skip list, bounds the run with a timeout, and turns every
outcome into a ``completed``, ``skipped`` or ``error`` response.
"""

import asyncio
import logging

from contact_enrichment.agents.orchestrator import EnrichmentOrchestrator
from contact_enrichment.core.config import settings
from contact_enrichment.models.enrichment import (
    EnrichmentField,
    EnrichmentResponse,
    EnrichmentStatus,
)
from contact_enrichment.services.skip_list import SkipListStore, create_skip_list_store

logger = logging.getLogger(__name__)

SKIPPED_MESSAGE = "Email domain is in skip list"


class EnrichmentStrategy:
    """Facade over the orchestrator.

    Args:
        orchestrator: Pipeline to run.
        skip_list_store: Source of blocked domains and addresses.
        timeout_seconds: Upper bound for one enrichment call.
    """

    def __init__(
        self,
        orchestrator: EnrichmentOrchestrator | None = None,
        skip_list_store: SkipListStore | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._orchestrator = orchestrator or EnrichmentOrchestrator()
        self._skip_list_store = skip_list_store or create_skip_list_store()
        self._timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.ENRICHMENT_TIMEOUT_SECONDS
        )

    async def should_skip(self, email: str) -> bool:
        """Check the freshly loaded skip list."""
        skip_list = await self._skip_list_store.load()
        return skip_list.matches(email)

    async def enrich_email(
        self,
        email: str,
        fields: list[EnrichmentField] | None = None,
    ) -> EnrichmentResponse:
        """Enrich an address; never raises.

        Args:
            email: Address to enrich.
            fields: Requested fields; the built-in set when empty or None.

        Returns:
            EnrichmentResponse with status and, when completed, the results.
        """
        try:
            if await self.should_skip(email):
                logger.info("Enrichment skipped by skip list", extra={"email": email})
                return EnrichmentResponse(status=EnrichmentStatus.SKIPPED, error=SKIPPED_MESSAGE)

            enrichments = await asyncio.wait_for(
                self._orchestrator.enrich_email(email, fields),
                timeout=self._timeout_seconds,
            )
        except TimeoutError:
            message = f"Enrichment timed out after {self._timeout_seconds:g} seconds"
            logger.warning(message, extra={"email": email})
            return EnrichmentResponse(status=EnrichmentStatus.ERROR, error=message)
        except Exception as e:
            logger.warning("Enrichment failed for %s: %s", email, e)
            return EnrichmentResponse(
                status=EnrichmentStatus.ERROR, error=str(e) or type(e).__name__
            )

        logger.info(
            "Enrichment completed",
            extra={"email": email, "field_count": len(enrichments)},
        )
        return EnrichmentResponse(status=EnrichmentStatus.COMPLETED, enrichments=enrichments)
