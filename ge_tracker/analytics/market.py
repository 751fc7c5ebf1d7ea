"""
Market insights: history in, trend or price suggestion out.

Thin glue between the market data client and the pure analyzers.  The
trend and the suggestion are computed independently from the same series,
so callers wanting both should fetch the history once and call the
analyzers directly.
"""

import logging
from typing import Optional

from ge_tracker.analytics.suggestions import suggest_prices
from ge_tracker.analytics.trend import analyze_trend
from ge_tracker.data_pipeline.fetcher import GEClient
from ge_tracker.domain.models import PriceSuggestion, PriceTrend

logger = logging.getLogger(__name__)


async def get_item_trend(client: GEClient, item_id: int) -> Optional[PriceTrend]:
    history = await client.get_history(item_id)
    if not history:
        logger.info("No price history for item %d; no trend", item_id)
        return None
    return analyze_trend(history)


async def get_item_suggestions(client: GEClient, item_id: int) -> Optional[PriceSuggestion]:
    history = await client.get_history(item_id)
    if not history:
        logger.info("No price history for item %d; no suggestion", item_id)
        return None
    return suggest_prices(history)
