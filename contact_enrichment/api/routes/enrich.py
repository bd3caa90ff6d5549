"""Enrichment API routes.

POST /enrich runs the pipeline for one address. Each client (keyed by
forwarded IP) may start ``ENRICH_RATE_LIMIT_PER_HOUR`` enrichments per
hour; the quota is reported in ``X-RateLimit-*`` headers.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from contact_enrichment.api.deps import RateLimitTrackerDep, SettingsDep, StrategyDep
from contact_enrichment.core.exceptions import ConfigurationError, RateLimitError
from contact_enrichment.core.rate_limiter import RateLimitConfig, RateLimitStatus, client_identifier
from contact_enrichment.models.enrichment import EnrichmentStatus, EnrichRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enrich", tags=["enrichment"])

QUOTA_WINDOW_SECONDS = 3600


@router.post("")
async def enrich_contact(
    request: Request,
    body: EnrichRequest,
    strategy: StrategyDep,
    config: SettingsDep,
    tracker: RateLimitTrackerDep,
) -> JSONResponse:
    """Enrich an email address.

    Args:
        request: The incoming request (used for the client key).
        body: Address and optional field declarations.
        strategy: Enrichment strategy.
        config: Application settings.
        tracker: Per-client quota tracker.

    Returns:
        200 with enrichments when completed, 200 with ``status: skipped``
        when the skip list matched, 500 on pipeline error.

    Raises:
        RateLimitError: When the client has used its hourly quota.
        ConfigurationError: When provider API keys are missing.
    """
    quota: RateLimitStatus | None = None
    if config.RATE_LIMIT_ENABLED:
        quota_config = RateLimitConfig(
            requests=config.ENRICH_RATE_LIMIT_PER_HOUR,
            window_seconds=QUOTA_WINDOW_SECONDS,
        )
        identifier = client_identifier(request)
        quota = tracker.hit(identifier, quota_config)
        if not quota.allowed:
            logger.warning("Enrichment quota exceeded", extra={"client": identifier})
            raise RateLimitError(
                retry_after=quota.retry_after,
                limit=f"{quota.limit}/hour",
                headers=quota.headers(),
            )

    if not config.is_configured:
        raise ConfigurationError()

    response = await strategy.enrich_email(body.email, body.fields)
    headers = quota.headers() if quota else None

    if response.status is EnrichmentStatus.SKIPPED:
        return JSONResponse(
            status_code=200,
            content={"success": False, "status": response.status.value, "error": response.error},
            headers=headers,
        )

    if response.status is EnrichmentStatus.ERROR:
        return JSONResponse(
            status_code=500,
            content={"success": False, "status": response.status.value, "error": response.error},
            headers=headers,
        )

    enrichments = {
        name: result.model_dump(mode="json", by_alias=True)
        for name, result in response.enrichments.items()
    }
    return JSONResponse(
        status_code=200,
        content={"success": True, "data": {"enrichments": enrichments}},
        headers=headers,
    )
