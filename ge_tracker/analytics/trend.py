"""
ge_tracker.analytics.trend — Direction, streak and buy/sell/hold call
from a daily price history.

Input is a chronologically ascending series (one point per day, up to 90).
Moving averages and the 30-day range use the trailing slice of the series
without padding, so a short history simply averages fewer points.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ge_tracker.core.constants import (
    ABOVE_AVERAGE_PCT,
    BELOW_AVERAGE_PCT,
    CHANGE_LOOKBACK,
    NEAR_AVERAGE_PCT,
    NEAR_EXTREME_PCT,
    STREAK_LONG_DAYS,
    STREAK_NOISE_PCT,
    WINDOW_LONG,
    WINDOW_SHORT,
)
from ge_tracker.core.utils import mean_safe, pct_diff, round_half_up
from ge_tracker.domain.enums import Recommendation, TrendDirection
from ge_tracker.domain.models import PricePoint, PriceTrend


def detect_streak(prices: Sequence[int]) -> Tuple[Optional[TrendDirection], int]:
    """Walk backward from the latest price and measure the current streak.

    Every earlier day is compared with the latest price.  Days within the
    noise band count toward the streak.  The first day outside the band
    fixes the direction (rising when the latest price is above it), later
    days outside the band must agree, and the first one that disagrees ends
    the walk.

    Returns ``(direction, days)``; direction is ``None`` when no day left
    the noise band.  ``days`` is at least 1.
    """
    if len(prices) < 2:
        return None, 1

    current = prices[-1]
    direction: Optional[TrendDirection] = None
    days = 0

    for price in reversed(prices[:-1]):
        diff = pct_diff(price, current)
        if abs(diff) < STREAK_NOISE_PCT:
            days += 1
            continue

        step = TrendDirection.RISING if diff > 0 else TrendDirection.FALLING
        if direction is None:
            direction = step
        elif step is not direction:
            break
        days += 1

    return direction, max(days, 1)


def _recommend(
    current: int,
    avg_30d: float,
    low_30d: int,
    high_30d: int,
    streak_dir: Optional[TrendDirection],
    streak_days: int,
) -> Tuple[Recommendation, str]:
    """First matching rule wins; the order is significant."""
    falling = streak_dir is TrendDirection.FALLING
    rising = streak_dir is TrendDirection.RISING

    if current <= low_30d * (1 + NEAR_EXTREME_PCT) and not falling:
        above_low = pct_diff(low_30d, current)
        return (
            Recommendation.BUY,
            f"Price is near the 30-day low ({above_low:.1f}% above it) - good entry point",
        )

    if current >= high_30d * (1 - NEAR_EXTREME_PCT) and not rising:
        below_high = -pct_diff(high_30d, current)
        return (
            Recommendation.SELL,
            f"Price is near the 30-day high ({below_high:.1f}% below it) - consider selling",
        )

    vs_avg = pct_diff(avg_30d, current)

    if falling and streak_days >= STREAK_LONG_DAYS:
        return (
            Recommendation.HOLD,
            f"Price has been falling for {streak_days} days - wait for stabilization",
        )

    if rising and streak_days >= STREAK_LONG_DAYS and abs(vs_avg) <= NEAR_AVERAGE_PCT * 100:
        return (
            Recommendation.BUY,
            f"Rising for {streak_days} days and still within {abs(vs_avg):.1f}% of the 30-day average",
        )

    if vs_avg < -BELOW_AVERAGE_PCT * 100:
        return (
            Recommendation.BUY,
            f"Price is {abs(vs_avg):.1f}% below the 30-day average",
        )

    if vs_avg > ABOVE_AVERAGE_PCT * 100:
        return (
            Recommendation.SELL,
            f"Price is {vs_avg:.1f}% above the 30-day average",
        )

    return (
        Recommendation.HOLD,
        f"Price is in its normal range ({vs_avg:+.1f}% vs 30-day average)",
    )


def analyze_trend(series: Sequence[PricePoint]) -> Optional[PriceTrend]:
    """Derive a ``PriceTrend`` from an ascending price series.

    Returns ``None`` for fewer than 2 points rather than a half-filled
    result.
    """
    if len(series) < 2:
        return None

    prices: List[int] = [p.price for p in series]
    current = prices[-1]

    last_30 = prices[-WINDOW_LONG:]
    avg_7d = mean_safe(prices[-WINDOW_SHORT:])
    avg_30d = mean_safe(last_30)
    low_30d = min(last_30)
    high_30d = max(last_30)

    streak_dir, streak_days = detect_streak(prices)

    if len(prices) > CHANGE_LOOKBACK:
        reference = prices[-(CHANGE_LOOKBACK + 1)]
    else:
        reference = prices[0]
    change_amount = current - reference
    change_percent = round_half_up(pct_diff(reference, current), 2)

    recommendation, reason = _recommend(
        current, avg_30d, low_30d, high_30d, streak_dir, streak_days,
    )

    # Inside the noise band the direction falls back to the sign of the
    # weekly change; only an unchanged price is stable.
    direction = streak_dir
    if direction is None:
        if change_amount > 0:
            direction = TrendDirection.RISING
        elif change_amount < 0:
            direction = TrendDirection.FALLING
        else:
            direction = TrendDirection.STABLE

    return PriceTrend(
        direction=direction,
        change_percent=change_percent,
        change_amount=change_amount,
        streak_days=streak_days,
        current_price=current,
        avg_price_7d=avg_7d,
        avg_price_30d=avg_30d,
        low_price_30d=low_30d,
        high_price_30d=high_30d,
        recommendation=recommendation,
        recommendation_reason=reason,
    )
