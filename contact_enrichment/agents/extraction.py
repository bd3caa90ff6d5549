"""Schema-validated extraction from research text.

Every agent turns page text into typed fields through
``StructuredExtractor.extract``; nothing parses model output elsewhere.
"""

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from contact_enrichment.core.exceptions import ExtractionError
from contact_enrichment.core.llm import LLMClient
from contact_enrichment.models.enrichment import EnrichmentField, FieldType

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ExtractionModel(BaseModel):
    """Base for extraction output models.

    Undeclared keys are dropped and scalar values are coerced to the
    declared type where pydantic's lax mode allows it.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )


class DeclaredFieldsModel(BaseModel):
    """Base for models built from caller field declarations.

    Same coercion as :class:`ExtractionModel`, but values are accepted only
    under the declared names; the positional attribute names never match
    model output.
    """

    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )


# One annotation per declared field type; every field is optional so the
# model can omit what it did not find.
_FIELD_ANNOTATIONS: dict[FieldType, Any] = {
    FieldType.STRING: str | None,
    FieldType.NUMBER: int | float | None,
    FieldType.BOOLEAN: bool | None,
    FieldType.ARRAY: list[str] | None,
}


def build_output_schema(
    fields: list[EnrichmentField], model_name: str = "CustomFieldsOutput"
) -> type[DeclaredFieldsModel]:
    """Build an output model for caller-declared fields.

    Attribute names are positional (``f0``, ``f1``...) so any field name is
    usable; the declared name is the alias used in the JSON schema and when
    dumping with ``by_alias=True``.

    Args:
        fields: Fields to include.
        model_name: Name of the generated model.

    Returns:
        A new :class:`DeclaredFieldsModel` subclass.
    """
    definitions: dict[str, Any] = {}
    for index, field in enumerate(fields):
        description = field.description or field.display_name or field.name
        definitions[f"f{index}"] = (
            _FIELD_ANNOTATIONS[field.type],
            Field(None, alias=field.name, description=description),
        )
    return create_model(model_name, __base__=DeclaredFieldsModel, **definitions)


def _strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text.strip()).strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Decode model output that should be a single JSON object.

    Raises:
        ExtractionError: If the text is not a JSON object.
    """
    cleaned = _strip_code_fences(text)
    if not cleaned:
        raise ExtractionError("Model returned an empty response")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Model returned invalid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise ExtractionError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class StructuredExtractor:
    """Ask the language model for output matching a pydantic model."""

    def __init__(self, llm: LLMClient | None = None) -> None:
        self._llm = llm or LLMClient()

    async def extract(
        self,
        instructions: str,
        output_model: type[ModelT],
        context: str,
    ) -> ModelT:
        """Extract an ``output_model`` instance from ``context``.

        Args:
            instructions: System instruction describing the task.
            output_model: Pydantic model the result must validate against.
            context: Research text to extract from.

        Returns:
            Validated model instance.

        Raises:
            ExtractionError: If the provider call fails or the response does
                not validate.
        """
        schema_name = output_model.__name__
        try:
            raw = await self._llm.generate_structured(
                system_prompt=instructions,
                user_content=context,
                json_schema=output_model.model_json_schema(by_alias=True),
                schema_name=schema_name,
            )
        except ExtractionError:
            raise
        except Exception as e:
            logger.warning("Extraction provider call failed for %s: %s", schema_name, e)
            raise ExtractionError(f"LLM call failed: {e}", schema=schema_name) from e

        data = parse_json_object(raw)
        try:
            return output_model.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "Extraction output failed validation",
                extra={"schema": schema_name, "error_count": e.error_count()},
            )
            raise ExtractionError(
                f"Model output does not match {schema_name}: {e.error_count()} error(s)",
                schema=schema_name,
            ) from e
