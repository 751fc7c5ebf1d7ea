"""
Price Suggestion Engine
Volatility-aware buy/sell targets from a daily price history.
Clamps against the observed 30-day range to avoid dumb suggestions.

The buy target is a discount off the current price, the sell target a
premium over it.  Both widen with volatility and lean with the short-term
trend, then get blended with an anchor 30% of the way from the 30-day
extreme toward the 30-day average, and finally clamped 2% inside the
30-day range.  Profit and ROI here are pre-trade estimates without tax.
"""

import math
from typing import List, Optional, Sequence, Tuple

from ge_tracker.core.constants import (
    CONFIDENCE_HIGH_ROI,
    CONFIDENCE_LOW_ROI,
    CONFIDENCE_MAX_VOLATILITY,
    CONFIDENCE_MIN_VOLATILITY,
    ROI_DECIMALS,
    SUGGEST_ANCHOR_FRACTION,
    SUGGEST_BASE_OFFSET,
    SUGGEST_FALLING_EXTRA_DISCOUNT,
    SUGGEST_HIGH_VOL_OFFSET,
    SUGGEST_HIGH_VOLATILITY,
    SUGGEST_MID_VOL_OFFSET,
    SUGGEST_MID_VOLATILITY,
    SUGGEST_RANGE_MARGIN,
    SUGGEST_RISING_EXTRA_PREMIUM,
    SUGGEST_TREND_PCT,
    WINDOW_LONG,
    WINDOW_MEDIUM,
    WINDOW_SHORT,
)
from ge_tracker.core.utils import mean_safe, round_half_up, safe_div, volatility_pct
from ge_tracker.domain.enums import Confidence, TrendDirection
from ge_tracker.domain.models import PricePoint, PriceSuggestion


def classify_trend(current: float, avg_7d: float) -> TrendDirection:
    """Rising/falling when the price is more than 3% off its 7-day average."""
    if current > avg_7d * (1 + SUGGEST_TREND_PCT):
        return TrendDirection.RISING
    if current < avg_7d * (1 - SUGGEST_TREND_PCT):
        return TrendDirection.FALLING
    return TrendDirection.STABLE


def volatility_offset(volatility: float) -> float:
    """Base discount / premium fraction for a given volatility (%)."""
    if volatility > SUGGEST_HIGH_VOLATILITY:
        return SUGGEST_HIGH_VOL_OFFSET
    if volatility > SUGGEST_MID_VOLATILITY:
        return SUGGEST_MID_VOL_OFFSET
    return SUGGEST_BASE_OFFSET


def suggest_buy_price(
    current: int,
    avg_30d: float,
    low_30d: int,
    volatility: float,
    trend: TrendDirection,
) -> Tuple[int, str]:
    """Return ``(price, reason)``; never below 2% above the 30-day low."""
    discount = volatility_offset(volatility)
    if trend is TrendDirection.FALLING:
        discount += SUGGEST_FALLING_EXTRA_DISCOUNT

    target = current * (1 - discount)
    anchor = low_30d + (avg_30d - low_30d) * SUGGEST_ANCHOR_FRACTION
    floor_price = low_30d * (1 + SUGGEST_RANGE_MARGIN)

    candidate = min(target, anchor)
    if candidate < floor_price:
        reason = "Floored just above the 30-day low"
    elif anchor < target:
        reason = "Anchored between the 30-day low and average"
    else:
        reason = f"{discount * 100:.0f}% below the current price"

    # Round up so the floor holds on whole coins.
    return math.ceil(max(floor_price, candidate)), reason


def suggest_sell_price(
    current: int,
    avg_30d: float,
    high_30d: int,
    volatility: float,
    trend: TrendDirection,
) -> Tuple[int, str]:
    """Return ``(price, reason)``; never above 2% below the 30-day high."""
    premium = volatility_offset(volatility)
    if trend is TrendDirection.RISING:
        premium += SUGGEST_RISING_EXTRA_PREMIUM

    target = current * (1 + premium)
    anchor = high_30d - (high_30d - avg_30d) * SUGGEST_ANCHOR_FRACTION
    ceiling_price = high_30d * (1 - SUGGEST_RANGE_MARGIN)

    candidate = max(target, anchor)
    if candidate > ceiling_price:
        reason = "Capped just below the 30-day high"
    elif anchor > target:
        reason = "Anchored between the 30-day average and high"
    else:
        reason = f"{premium * 100:.0f}% above the current price"

    return math.floor(min(ceiling_price, candidate)), reason


def classify_confidence(
    volatility: float,
    roi: float,
    trend: TrendDirection,
    current: int,
    avg_30d: float,
) -> Tuple[Confidence, str]:
    if CONFIDENCE_MIN_VOLATILITY <= volatility < CONFIDENCE_MAX_VOLATILITY and roi >= CONFIDENCE_HIGH_ROI:
        confidence = Confidence.HIGH
        reason = f"Healthy volatility ({volatility:.1f}%) with a {roi:.1f}% margin"
    elif volatility > CONFIDENCE_MAX_VOLATILITY:
        confidence = Confidence.LOW
        reason = f"High volatility ({volatility:.1f}%) makes targets unreliable"
    elif roi < CONFIDENCE_LOW_ROI:
        confidence = Confidence.LOW
        reason = f"Thin margin ({roi:.1f}%) between suggested prices"
    else:
        confidence = Confidence.MEDIUM
        reason = f"Moderate setup: {volatility:.1f}% volatility, {roi:.1f}% margin"

    if trend is TrendDirection.RISING and current < avg_30d:
        confidence = Confidence.HIGH
        reason = "Rising from below the 30-day average - room to recover"
    elif trend is TrendDirection.FALLING and current > avg_30d:
        confidence = Confidence.MEDIUM
        reason = "Falling while still above the 30-day average - caution"

    return confidence, reason


def suggest_prices(series: Sequence[PricePoint]) -> Optional[PriceSuggestion]:
    """Build a ``PriceSuggestion`` from an ascending price series.

    Returns ``None`` for fewer than 2 points.
    """
    if len(series) < 2:
        return None

    prices: List[int] = [p.price for p in series]
    current = prices[-1]

    last_30 = prices[-WINDOW_LONG:]
    avg_7d = mean_safe(prices[-WINDOW_SHORT:])
    avg_14d = mean_safe(prices[-WINDOW_MEDIUM:])
    avg_30d = mean_safe(last_30)
    low_30d = min(last_30)
    high_30d = max(last_30)
    volatility = volatility_pct(last_30)

    trend = classify_trend(current, avg_7d)

    buy, buy_reason = suggest_buy_price(current, avg_30d, low_30d, volatility, trend)
    sell, sell_reason = suggest_sell_price(current, avg_30d, high_30d, volatility, trend)

    profit = sell - buy
    roi = round_half_up(safe_div(profit, buy) * 100, ROI_DECIMALS)

    confidence, confidence_reason = classify_confidence(
        volatility, roi, trend, current, avg_30d,
    )

    return PriceSuggestion(
        suggested_buy_price=buy,
        suggested_sell_price=sell,
        potential_profit=profit,
        potential_roi=roi,
        confidence=confidence,
        confidence_reason=confidence_reason,
        buy_reason=buy_reason,
        sell_reason=sell_reason,
        current_price=current,
        avg_price_7d=avg_7d,
        avg_price_14d=avg_14d,
        avg_price_30d=avg_30d,
        low_price_30d=low_30d,
        high_price_30d=high_30d,
        volatility=round_half_up(volatility, ROI_DECIMALS),
        trend=trend,
    )
