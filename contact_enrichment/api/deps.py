"""FastAPI dependencies for the enrichment API."""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from contact_enrichment.core.config import Settings, get_settings
from contact_enrichment.core.rate_limiter import RateLimitTracker, get_rate_limit_tracker
from contact_enrichment.services.enrichment_strategy import EnrichmentStrategy

logger = logging.getLogger(__name__)


@lru_cache
def get_enrichment_strategy() -> EnrichmentStrategy:
    """Process-wide strategy sharing one research adapter and backoff gate."""
    logger.info("Creating enrichment strategy")
    return EnrichmentStrategy()


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
StrategyDep = Annotated[EnrichmentStrategy, Depends(get_enrichment_strategy)]
RateLimitTrackerDep = Annotated[RateLimitTracker, Depends(get_rate_limit_tracker)]
