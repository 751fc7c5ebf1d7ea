"""
ge_tracker.personalization.recommender — Up to five items to flip again.

Recommendations only ever name items the user has already completed a flip
on and holds no open position in.  Small histories (five or fewer such
items) or a missing reasoning service are ranked by total profit.  Larger
histories send the 30 most-traded candidates to the reasoning service,
keep the names it returns that exactly match a candidate, and backfill any
gap from the profit ranking.

Confidence, risk and hold time always come from the item's own record so
the labels stay trustworthy whatever the reasoning service says.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from ge_tracker.analytics.tax import calculate_flip_tax
from ge_tracker.core.constants import (
    DEFAULT_STRATEGY,
    REASONING_MAX_ITEMS,
    REC_HIGH_CONFIDENCE_ROI,
    REC_HIGH_CONFIDENCE_WIN_RATE,
    REC_HIGH_RISK_ROI,
    REC_LOW_CONFIDENCE_WIN_RATE,
    REC_LOW_RISK_MAX_ROI,
    REC_LOW_RISK_WIN_RATE,
    RECOMMENDATION_COUNT,
)
from ge_tracker.core.utils import format_gp, format_hold_time, round_half_up
from ge_tracker.domain.enums import Confidence, RecommendationSource, RiskLevel
from ge_tracker.domain.models import Flip, ItemPerformance, PersonalizedRecommendation
from ge_tracker.personalization.profile import (
    analyze_trading_profile,
    item_statistics,
    open_positions,
)
from ge_tracker.personalization.reasoning import RankedItem, ReasoningService

logger = logging.getLogger(__name__)


def item_confidence(item: ItemPerformance) -> Confidence:
    if item.win_rate >= REC_HIGH_CONFIDENCE_WIN_RATE and item.avg_roi >= REC_HIGH_CONFIDENCE_ROI:
        return Confidence.HIGH
    if item.win_rate < REC_LOW_CONFIDENCE_WIN_RATE:
        return Confidence.LOW
    return Confidence.MEDIUM


def item_risk(item: ItemPerformance) -> RiskLevel:
    if item.win_rate >= REC_LOW_RISK_WIN_RATE and item.avg_roi <= REC_LOW_RISK_MAX_ROI:
        return RiskLevel.LOW
    if item.avg_roi > REC_HIGH_RISK_ROI:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def build_recommendation(
    item: ItemPerformance,
    ranked: Optional[RankedItem] = None,
) -> PersonalizedRecommendation:
    """Turn an item's record (plus an optional ranked reply) into a card.

    Suggested prices are the user's own average buy and sell; profit and
    ROI are per unit after GE tax.
    """
    buy = int(round_half_up(item.avg_buy_price, 0))
    sell = int(round_half_up(item.avg_sell_price, 0))
    calc = calculate_flip_tax(sell, buy, 1, item_id=item.item_id, item_name=item.name)
    own_strategy = item.strategies[0] if item.strategies else DEFAULT_STRATEGY

    if ranked is None:
        reasoning = (
            f"Traded {item.trade_count} times with a {item.win_rate:.0f}% win rate "
            f"and {format_gp(item.total_profit)} total profit"
        )
        match_score = min(100, int(round_half_up(item.win_rate, 0)))
        match_reasons = [
            f"{item.trade_count} completed flips",
            f"{item.avg_roi:.1f}% average ROI",
        ]
        strategy = own_strategy
        source = RecommendationSource.HISTORY
    else:
        reasoning = ranked.reasoning
        match_score = ranked.match_score
        match_reasons = list(ranked.match_reasons)
        strategy = ranked.strategy or own_strategy
        source = RecommendationSource.REASONING

    return PersonalizedRecommendation(
        item_name=item.name,
        item_id=item.item_id,
        item_icon=item.item_icon,
        suggested_buy_price=buy,
        suggested_sell_price=sell,
        potential_profit=calc.profit,
        potential_roi=calc.roi,
        confidence=item_confidence(item),
        risk_level=item_risk(item),
        estimated_hold_time=format_hold_time(item.avg_hold_seconds),
        strategy=strategy,
        reasoning=reasoning,
        match_score=match_score,
        match_reasons=match_reasons,
        source=source,
    )


def _by_profit(items: Iterable[ItemPerformance]) -> List[ItemPerformance]:
    return sorted(items, key=lambda s: (-s.total_profit, s.name.lower()))


def _by_frequency(items: Iterable[ItemPerformance]) -> List[ItemPerformance]:
    return sorted(items, key=lambda s: (-s.trade_count, -s.total_profit, s.name.lower()))


def eligible_items(flips: List[Flip]) -> Dict[str, ItemPerformance]:
    """Traded items with no open position, keyed by lower-cased name."""
    held = {f.item_name.strip().lower() for f in open_positions(flips)}
    return {key: s for key, s in item_statistics(flips).items() if key not in held}


async def recommend_items(
    flips: Iterable[Flip],
    reasoning: Optional[ReasoningService] = None,
    limit: int = RECOMMENDATION_COUNT,
) -> List[PersonalizedRecommendation]:
    """Best-effort recommendations; never raises for reasoning failures."""
    flips = list(flips)
    eligible = eligible_items(flips)
    ranked_by_profit = _by_profit(eligible.values())

    if len(eligible) <= limit or reasoning is None or not reasoning.enabled:
        return [build_recommendation(s) for s in ranked_by_profit[:limit]]

    candidates = _by_frequency(eligible.values())[:REASONING_MAX_ITEMS]
    lookup = {c.name.strip().lower(): c for c in candidates}

    try:
        ranked = await reasoning.rank_items(analyze_trading_profile(flips), candidates, limit)
    except Exception as exc:
        logger.warning("Reasoning service failed (%s); using profit ranking", exc)
        return [build_recommendation(s) for s in ranked_by_profit[:limit]]

    picked: List[PersonalizedRecommendation] = []
    seen = set()
    for entry in ranked:
        key = entry.item_name.strip().lower()
        if key not in lookup or key in seen:
            logger.debug("Discarding reasoning suggestion %r", entry.item_name)
            continue
        seen.add(key)
        picked.append(build_recommendation(lookup[key], entry))
        if len(picked) == limit:
            return picked

    if len(picked) < limit:
        logger.info("Reasoning returned %d usable items; backfilling by profit", len(picked))
    for item in ranked_by_profit:
        if len(picked) >= limit:
            break
        key = item.name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        picked.append(build_recommendation(item))
    return picked
