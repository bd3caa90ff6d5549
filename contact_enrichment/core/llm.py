"""LLM client module for schema-constrained generation.

Routes requests through LiteLLM so any supported model string can be used,
with optional Langfuse observability callbacks.
"""

from __future__ import annotations

import logging
from typing import Any

import litellm
from litellm import acompletion

from contact_enrichment.core.circuit_breaker import CircuitBreaker
from contact_enrichment.core.config import Settings, settings

logger = logging.getLogger(__name__)

litellm.set_verbose = False  # type: ignore[assignment]

DEFAULT_MAX_TOKENS = 2048

_llm_circuit_breaker = CircuitBreaker("llm", failure_threshold=5, recovery_timeout=30.0)


def get_llm_circuit_breaker() -> CircuitBreaker:
    """Breaker shared by LLM clients that do not supply their own."""
    return _llm_circuit_breaker


def _configure_callbacks(config: Settings) -> None:
    """Enable Langfuse tracing when configured."""
    if config.LANGFUSE_ENABLED:
        litellm.success_callback = ["langfuse"]
        litellm.failure_callback = ["langfuse"]


def _build_messages(system_prompt: str, user_content: str) -> list[dict[str, Any]]:
    """Convert a system prompt plus context into chat messages."""
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_content},
    ]


def _extract_text(response: Any) -> str:
    """Pull the assistant text out of a LiteLLM completion response."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = choices[0].message
    return message.content or ""


class LLMClient:
    """Async client for structured output from a LiteLLM-routed model.

    Args:
        model: LiteLLM model string; defaults to ``LLM_MODEL``.
        config: Settings instance; defaults to the global settings.
        circuit_breaker: Breaker guarding the provider.
    """

    def __init__(
        self,
        model: str | None = None,
        config: Settings | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        self._config = config or settings
        self._model = model or self._config.LLM_MODEL
        self._breaker = circuit_breaker or _llm_circuit_breaker
        _configure_callbacks(self._config)

    @property
    def model(self) -> str:
        return self._model

    async def generate_structured(
        self,
        system_prompt: str,
        user_content: str,
        json_schema: dict[str, Any],
        schema_name: str = "extraction",
        max_tokens: int | None = None,
    ) -> str:
        """Generate a JSON document constrained by ``json_schema``.

        Args:
            system_prompt: Instruction describing what to extract.
            user_content: Research context to extract from.
            json_schema: JSON Schema the response must follow.
            schema_name: Name sent alongside the schema.
            max_tokens: Override for the configured token ceiling.

        Returns:
            Raw text of the model response (expected to be JSON).

        Raises:
            CircuitBreakerOpen: If the provider has been failing.
            Exception: Any provider error raised by LiteLLM.
        """
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": _build_messages(system_prompt, user_content),
            "max_tokens": max_tokens or self._config.LLM_MAX_TOKENS or DEFAULT_MAX_TOKENS,
            "temperature": self._config.LLM_TEMPERATURE,
            "timeout": self._config.LLM_TIMEOUT_SECONDS,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": json_schema},
            },
        }
        api_key = self._config.LLM_API_KEY.get_secret_value()
        if api_key:
            kwargs["api_key"] = api_key

        response = await self._breaker.call(acompletion, **kwargs)
        text = _extract_text(response)
        logger.debug(
            "LLM structured response received",
            extra={"model": self._model, "schema": schema_name, "chars": len(text)},
        )
        return text
