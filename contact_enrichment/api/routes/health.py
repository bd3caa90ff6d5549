"""Health check API routes.

Provides:
- GET /health: process status, provider configuration, breaker and backoff state
- GET /health/ping: lightweight 200 for external uptime monitors
"""

import logging
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, status

from contact_enrichment import __version__
from contact_enrichment.api.deps import SettingsDep
from contact_enrichment.core.llm import get_llm_circuit_breaker
from contact_enrichment.research.adapter import get_research_adapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_start_time = time.monotonic()


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(config: SettingsDep) -> dict[str, Any]:
    """Overall health with configuration and resilience state.

    No authentication required.
    """
    gate = get_research_adapter().gate
    return {
        "status": "healthy" if config.is_configured else "degraded",
        "version": __version__,
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "providers": {
            "research": config.firecrawl_configured,
            "llm": config.llm_configured,
        },
        "circuit_breakers": {"llm": get_llm_circuit_breaker().state.value},
        "research_backoff_seconds": round(gate.remaining(), 1),
    }


@router.get("/ping", status_code=status.HTTP_200_OK)
async def ping() -> dict[str, str]:
    """Lightweight ping for external uptime monitors.

    No dependency checks, no auth. Returns 200 with current timestamp.
    """
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}
