"""
ge_tracker.personalization.profile — Trading profile from a user's history.

Only completed, non-deleted flips count (sell price and sell date both
set).  Profit and ROI for every flip go through the GE tax calculator, so
bonds, cheap items and the 5M cap are treated here exactly as on the trade
list.

Risk classification (first rule wins)::

    aggressive    "Speculative" used more than once, or avg ROI > 15%
    conservative  "Fast Flip" used more than twice, or avg ROI < 5%
    moderate      otherwise

Membership preference: members (or F2P) when it outnumbers the other side
more than 2:1, else "both".
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from ge_tracker.analytics.tax import calculate_flip_tax
from ge_tracker.core.constants import (
    DEFAULT_PRICE_RANGE_MAX,
    DEFAULT_STRATEGY,
    FREQUENT_ITEMS,
    MEMBERSHIP_MAJORITY_RATIO,
    PROFILE_AGGRESSIVE_ROI,
    PROFILE_CONSERVATIVE_ROI,
    PROFILE_FAST_FLIP_COUNT,
    PROFILE_SPECULATIVE_COUNT,
    STRATEGY_FAST_FLIP,
    STRATEGY_SPECULATIVE,
    TOP_PERFORMING_ITEMS,
)
from ge_tracker.core.utils import mean_safe, safe_div
from ge_tracker.domain.enums import MembershipPreference, RiskProfile
from ge_tracker.domain.models import (
    Flip,
    ItemPerformance,
    StrategyStats,
    TopItem,
    TradingProfile,
    TradingVolume,
)

logger = logging.getLogger(__name__)


def completed_flips(flips: Iterable[Flip]) -> List[Flip]:
    return [f for f in flips if f.is_completed and not f.is_deleted]


def open_positions(flips: Iterable[Flip]) -> List[Flip]:
    """Live flips with no sell price yet."""
    return [f for f in flips if not f.sell_price and not f.is_deleted]


def _as_utc(when: datetime) -> datetime:
    # Stored timestamps may be naive; they are recorded in UTC.
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when


def _hold_seconds(flip: Flip) -> float:
    return (_as_utc(flip.sell_date) - _as_utc(flip.buy_date)).total_seconds()


def _flip_result(flip: Flip):
    return calculate_flip_tax(
        flip.sell_price,
        flip.buy_price,
        flip.quantity,
        item_id=flip.item_id,
        item_name=flip.item_name,
    )


def item_statistics(flips: Iterable[Flip]) -> Dict[str, ItemPerformance]:
    """Per-item performance keyed by lower-cased item name.

    The display name, id and icon come from the first flip that has them.
    ``strategies`` is ordered by how often each tag was used.
    """
    grouped: Dict[str, List[Flip]] = defaultdict(list)
    for flip in completed_flips(flips):
        grouped[flip.item_name.strip().lower()].append(flip)

    stats: Dict[str, ItemPerformance] = {}
    for key, item_flips in grouped.items():
        results = [_flip_result(f) for f in item_flips]
        wins = sum(1 for r in results if r.profit > 0)
        tags = Counter(f.strategy_tag or DEFAULT_STRATEGY for f in item_flips)

        stats[key] = ItemPerformance(
            name=item_flips[0].item_name,
            item_id=next((f.item_id for f in item_flips if f.item_id), None),
            item_icon=next((f.item_icon for f in item_flips if f.item_icon), None),
            trade_count=len(item_flips),
            total_profit=sum(r.profit for r in results),
            avg_buy_price=mean_safe([f.buy_price for f in item_flips]),
            avg_sell_price=mean_safe([f.sell_price for f in item_flips]),
            avg_roi=mean_safe([r.roi for r in results]),
            win_rate=safe_div(wins, len(item_flips)) * 100,
            avg_hold_seconds=mean_safe([_hold_seconds(f) for f in item_flips]),
            strategies=[tag for tag, _ in tags.most_common()],
        )
    return stats


def _strategy_stats(flips: List[Flip], rois: List[float], profits: List[int]) -> List[StrategyStats]:
    buckets: Dict[str, List[int]] = defaultdict(list)
    for idx, flip in enumerate(flips):
        buckets[flip.strategy_tag or DEFAULT_STRATEGY].append(idx)

    out = [
        StrategyStats(
            strategy=name,
            frequency=len(idxs),
            avg_roi=mean_safe([rois[i] for i in idxs]),
            win_rate=safe_div(sum(1 for i in idxs if profits[i] > 0), len(idxs)) * 100,
        )
        for name, idxs in buckets.items()
    ]
    out.sort(key=lambda s: s.frequency, reverse=True)
    return out


def classify_risk(strategies: List[StrategyStats], avg_roi: float) -> RiskProfile:
    counts = {s.strategy: s.frequency for s in strategies}
    if counts.get(STRATEGY_SPECULATIVE, 0) > PROFILE_SPECULATIVE_COUNT or avg_roi > PROFILE_AGGRESSIVE_ROI:
        return RiskProfile.AGGRESSIVE
    if counts.get(STRATEGY_FAST_FLIP, 0) > PROFILE_FAST_FLIP_COUNT or avg_roi < PROFILE_CONSERVATIVE_ROI:
        return RiskProfile.CONSERVATIVE
    return RiskProfile.MODERATE


def classify_membership(members: int, f2p: int) -> MembershipPreference:
    if members > f2p * MEMBERSHIP_MAJORITY_RATIO:
        return MembershipPreference.MEMBERS
    if f2p > members * MEMBERSHIP_MAJORITY_RATIO:
        return MembershipPreference.F2P
    return MembershipPreference.BOTH


def _trading_volume(flips: List[Flip], now: datetime) -> TradingVolume:
    volume = TradingVolume()
    for flip in flips:
        age = now - _as_utc(flip.buy_date)
        spent = flip.buy_price * flip.quantity
        if age < timedelta(days=1):
            volume.daily += spent
        if age < timedelta(days=7):
            volume.weekly += spent
        if age < timedelta(days=30):
            volume.monthly += spent
    return volume


def analyze_trading_profile(flips: Iterable[Flip], now: Optional[datetime] = None) -> TradingProfile:
    """Aggregate a user's completed flips into a ``TradingProfile``.

    An empty history has a 0% average ROI, so it reads as conservative,
    with both membership types and a price range of 0 to 10M.
    """
    done = completed_flips(flips)
    now = _as_utc(now or datetime.now(timezone.utc))

    results = [_flip_result(f) for f in done]
    profits = [r.profit for r in results]
    rois = [r.roi for r in results]

    strategies = _strategy_stats(done, rois, profits)
    avg_roi = mean_safe(rois)

    buy_prices = [f.buy_price for f in done]
    all_prices = buy_prices + [f.sell_price for f in done]
    price_range = (
        min(buy_prices) if buy_prices else 0,
        max(all_prices) if all_prices else DEFAULT_PRICE_RANGE_MAX,
    )

    members = sum(1 for f in done if f.is_members)

    stats = item_statistics(done)
    top_items = sorted(stats.values(), key=lambda s: s.total_profit, reverse=True)
    frequent = sorted(stats.values(), key=lambda s: s.trade_count, reverse=True)

    profile = TradingProfile(
        preferred_strategies=strategies,
        preferred_price_range=price_range,
        avg_hold_seconds=mean_safe([_hold_seconds(f) for f in done]),
        risk_profile=classify_risk(strategies, avg_roi),
        membership_preference=classify_membership(members, len(done) - members),
        total_flips=len(done),
        win_rate=safe_div(sum(1 for p in profits if p > 0), len(done)) * 100,
        avg_roi=avg_roi,
        top_performing_items=[
            TopItem(name=s.name, profit=s.total_profit, roi_percent=s.avg_roi)
            for s in top_items[:TOP_PERFORMING_ITEMS]
        ],
        frequently_traded_items=[s.name for s in frequent[:FREQUENT_ITEMS]],
        trading_volume=_trading_volume(done, now),
    )
    logger.debug(
        "Profile: %d flips, %.1f%% win rate, %.2f%% avg ROI, %s",
        profile.total_flips, profile.win_rate, profile.avg_roi, profile.risk_profile.value,
    )
    return profile
