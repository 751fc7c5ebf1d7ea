"""
Tests for ge_tracker.analytics.suggestions — buy/sell targets, bounds,
confidence.
"""

import pytest

from ge_tracker.analytics.suggestions import (
    classify_confidence,
    classify_trend,
    suggest_buy_price,
    suggest_prices,
    suggest_sell_price,
    volatility_offset,
)
from ge_tracker.domain.enums import Confidence, TrendDirection


class TestClassifyTrend:
    def test_rising(self):
        assert classify_trend(104, 100) is TrendDirection.RISING

    def test_falling(self):
        assert classify_trend(96, 100) is TrendDirection.FALLING

    def test_stable(self):
        assert classify_trend(102, 100) is TrendDirection.STABLE


class TestVolatilityOffset:
    @pytest.mark.parametrize("vol, expected", [
        (0, 0.05), (10, 0.05), (15, 0.08), (20, 0.08), (25, 0.12),
    ])
    def test_bands(self, vol, expected):
        assert volatility_offset(vol) == expected


class TestBuyPrice:
    def test_anchor_wins_when_below_target(self):
        price, reason = suggest_buy_price(1_000, 1_000, 800, 5, TrendDirection.STABLE)
        assert price == pytest.approx(860, abs=1)
        assert "Anchored" in reason

    def test_falling_adds_discount(self):
        price, reason = suggest_buy_price(1_000, 1_100, 900, 5, TrendDirection.FALLING)
        assert price == pytest.approx(920, abs=1)
        assert reason == "8% below the current price"

    def test_floored_above_low(self):
        price, reason = suggest_buy_price(1_000, 1_000, 990, 5, TrendDirection.STABLE)
        assert price >= 990 * 1.02
        assert "30-day low" in reason


class TestSellPrice:
    def test_anchor_wins_when_above_target(self):
        price, reason = suggest_sell_price(1_000, 1_000, 1_200, 5, TrendDirection.STABLE)
        assert price == pytest.approx(1_140, abs=1)
        assert "Anchored" in reason

    def test_rising_adds_premium(self):
        price, reason = suggest_sell_price(1_000, 900, 1_100, 5, TrendDirection.RISING)
        assert price == pytest.approx(1_070, abs=1)
        assert reason == "7% above the current price"

    def test_capped_below_high(self):
        price, reason = suggest_sell_price(1_000, 1_000, 1_010, 5, TrendDirection.STABLE)
        assert price <= 1_010 * 0.98
        assert "30-day high" in reason


class TestConfidence:
    def test_high(self):
        assert classify_confidence(10, 9, TrendDirection.STABLE, 100, 100)[0] is Confidence.HIGH

    def test_low_for_high_volatility(self):
        assert classify_confidence(25, 20, TrendDirection.STABLE, 100, 100)[0] is Confidence.LOW

    def test_low_for_thin_margin(self):
        assert classify_confidence(10, 3, TrendDirection.STABLE, 100, 100)[0] is Confidence.LOW

    def test_medium_for_calm_market(self):
        assert classify_confidence(3, 9, TrendDirection.STABLE, 100, 100)[0] is Confidence.MEDIUM

    def test_volatility_twenty_is_medium(self):
        assert classify_confidence(20, 9, TrendDirection.STABLE, 100, 100)[0] is Confidence.MEDIUM

    def test_rising_below_average_overrides_to_high(self):
        confidence, reason = classify_confidence(25, 1, TrendDirection.RISING, 90, 100)
        assert confidence is Confidence.HIGH
        assert reason

    def test_falling_above_average_overrides_to_medium(self):
        confidence, _ = classify_confidence(10, 9, TrendDirection.FALLING, 110, 100)
        assert confidence is Confidence.MEDIUM


SERIES = [
    [1_000 + (i % 7) * 40 for i in range(60)],
    [5_000 - i * 30 for i in range(40)],
    [200 + i * 5 for i in range(30)],
    [100, 300] * 15,
    [1_000_000 + ((i * 37) % 11) * 10_000 for i in range(90)],
]


class TestSuggestPrices:
    def test_needs_two_points(self, make_series):
        assert suggest_prices(make_series([100])) is None

    @pytest.mark.parametrize("prices", SERIES)
    def test_bounds_hold(self, make_series, prices):
        s = suggest_prices(make_series(prices))
        assert s.suggested_buy_price >= 1.02 * s.low_price_30d
        assert s.suggested_sell_price <= 0.98 * s.high_price_30d
        assert isinstance(s.suggested_buy_price, int)
        assert isinstance(s.suggested_sell_price, int)

    @pytest.mark.parametrize("prices", SERIES)
    def test_profit_and_roi_from_suggested_prices(self, make_series, prices):
        s = suggest_prices(make_series(prices))
        assert s.potential_profit == s.suggested_sell_price - s.suggested_buy_price
        assert s.potential_roi == pytest.approx(
            s.potential_profit / s.suggested_buy_price * 100, abs=0.01,
        )

    def test_statistics(self, make_series):
        prices = [1_000] * 60 + [100] * 16 + [200] * 14
        s = suggest_prices(make_series(prices))
        assert s.current_price == 200
        assert s.avg_price_7d == 200
        assert s.avg_price_14d == 200
        assert s.avg_price_30d == pytest.approx((100 * 16 + 200 * 14) / 30)
        assert s.low_price_30d == 100
        assert s.high_price_30d == 200
        assert s.trend is TrendDirection.STABLE

    def test_high_volatility_is_low_confidence(self, make_series):
        s = suggest_prices(make_series([100, 300] * 15))
        assert s.volatility == 50.0
        assert s.confidence is Confidence.LOW

    def test_to_dict(self, make_series):
        data = suggest_prices(make_series(SERIES[0])).to_dict()
        assert data["confidence"] in {"high", "medium", "low"}
        assert data["trend"] in {"rising", "falling", "stable"}
