"""Enrichment Pydantic models.

Request-side field declarations, per-phase agent output, and the merged
per-field results returned to callers.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    """Declared value type of a requested enrichment field."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


class EnrichmentField(BaseModel):
    """A field the caller wants extracted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., min_length=1, description="Key used in the result map")
    display_name: str = Field("", alias="displayName")
    description: str = ""
    type: FieldType = FieldType.STRING
    required: bool = False


class EmailContext(BaseModel):
    """What can be inferred from an email address alone."""

    model_config = ConfigDict(frozen=True)

    email: str
    domain: str
    company_domain: str | None = None
    personal_name: str | None = None
    company_name_guess: str | None = None
    is_personal_email: bool = False


class AgentResult(BaseModel):
    """Output of one agent phase.

    ``fields``, ``confidence`` and ``sources`` are keyed by field name.
    ``errors`` is keyed by the agent's logical sub-task (e.g. ``funding``).
    A field the agent is unsure about is left out entirely.
    """

    fields: dict[str, Any] = Field(default_factory=dict)
    confidence: dict[str, float] = Field(default_factory=dict)
    sources: dict[str, list[str]] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)

    def add(
        self,
        name: str,
        value: Any,
        confidence: float,
        sources: list[str] | None = None,
    ) -> None:
        """Record a field, skipping empty values."""
        if value is None or value == "" or value == []:
            return
        self.fields[name] = value
        self.confidence[name] = confidence
        self.sources[name] = [url for url in (sources or []) if url]

    @property
    def is_empty(self) -> bool:
        return not self.fields and not self.errors


class SourceContext(BaseModel):
    """A source URL backing a result, with an optional supporting snippet."""

    url: str
    snippet: str = ""


class EnrichmentResult(BaseModel):
    """Final merged value for one field."""

    model_config = ConfigDict(populate_by_name=True)

    field: str
    value: Any
    confidence: float = Field(..., ge=0.0, le=1.0)
    source: str | None = None
    source_context: list[SourceContext] = Field(default_factory=list, alias="sourceContext")


class EnrichmentStatus(str, Enum):
    """Overall outcome of an enrichment call."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    ERROR = "error"


class EnrichmentResponse(BaseModel):
    """Result of ``EnrichmentStrategy.enrich_email``."""

    enrichments: dict[str, EnrichmentResult] = Field(default_factory=dict)
    status: EnrichmentStatus
    error: str | None = None


class EnrichRequest(BaseModel):
    """Request body for ``POST /api/v1/enrich``."""

    email: str = Field(
        ...,
        pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
        description="Address to enrich",
    )
    fields: list[EnrichmentField] | None = Field(
        None,
        description="Fields to extract; defaults to the built-in set",
    )
