"""Models package for the enrichment pipeline."""

from contact_enrichment.models.enrichment import (
    AgentResult,
    EmailContext,
    EnrichmentField,
    EnrichmentResponse,
    EnrichmentResult,
    EnrichmentStatus,
    EnrichRequest,
    FieldType,
    SourceContext,
)

__all__ = [
    "AgentResult",
    "EmailContext",
    "EnrichmentField",
    "EnrichmentResponse",
    "EnrichmentResult",
    "EnrichmentStatus",
    "EnrichRequest",
    "FieldType",
    "SourceContext",
]
