"""
Tests for ge_tracker.personalization.profile — item statistics and the
trading profile.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ge_tracker.core.constants import DEFAULT_PRICE_RANGE_MAX
from ge_tracker.domain.enums import MembershipPreference, RiskProfile
from ge_tracker.personalization.profile import (
    analyze_trading_profile,
    completed_flips,
    item_statistics,
    open_positions,
)

# Default flip: buy 1M, sell 1.1M → tax 22K, profit 78K, ROI 7.8%


class TestFiltering:
    def test_completed_excludes_open_and_deleted(self, make_flip, now):
        done = make_flip()
        flips = [
            done,
            make_flip(sell_price=None),
            make_flip(sell_date=None),
            make_flip(deleted_at=now),
        ]
        assert completed_flips(flips) == [done]

    def test_open_positions(self, make_flip, now):
        held = make_flip(item_name="Shark", sell_price=None)
        flips = [make_flip(), held, make_flip(sell_price=None, deleted_at=now)]
        assert open_positions(flips) == [held]


class TestItemStatistics:
    def test_groups_case_insensitively(self, make_flip):
        stats = item_statistics([
            make_flip(item_name="Abyssal whip", item_id=4151, strategy_tag="Fast Flip"),
            make_flip(item_name="abyssal Whip", sell_price=900_000, hold_hours=4),
            make_flip(item_name="Shark", buy_price=900, sell_price=1_000),
        ])
        assert set(stats) == {"abyssal whip", "shark"}

        whip = stats["abyssal whip"]
        assert whip.name == "Abyssal whip"
        assert whip.item_id == 4151
        assert whip.trade_count == 2
        # 78,000 + (900,000 - 18,000 - 1,000,000)
        assert whip.total_profit == 78_000 - 118_000
        assert whip.win_rate == 50.0
        assert whip.avg_buy_price == 1_000_000
        assert whip.avg_sell_price == 1_000_000
        assert whip.avg_hold_seconds == 3 * 3600
        assert whip.strategies == ["Fast Flip", "Other"]

    def test_uses_tax_rules(self, make_flip):
        stats = item_statistics([
            make_flip(item_name="Bond", item_id=29492, buy_price=80_000_000, sell_price=90_000_000),
        ])
        assert stats["bond"].total_profit == 10_000_000

    def test_strategies_ordered_by_use(self, make_flip):
        stats = item_statistics([
            make_flip(strategy_tag="Bulk"),
            make_flip(strategy_tag="Speculative"),
            make_flip(strategy_tag="Speculative"),
        ])
        assert stats["abyssal whip"].strategies == ["Speculative", "Bulk"]


class TestTradingProfile:
    def test_empty_history(self, now):
        profile = analyze_trading_profile([], now=now)
        assert profile.total_flips == 0
        assert profile.preferred_price_range == (0, DEFAULT_PRICE_RANGE_MAX)
        assert profile.win_rate == 0
        assert profile.risk_profile is RiskProfile.CONSERVATIVE
        assert profile.membership_preference is MembershipPreference.BOTH
        assert profile.top_performing_items == []

    def test_moderate(self, make_flip, now):
        profile = analyze_trading_profile([make_flip(), make_flip()], now=now)
        assert profile.avg_roi == pytest.approx(7.8)
        assert profile.win_rate == 100.0
        assert profile.risk_profile is RiskProfile.MODERATE

    def test_speculative_twice_is_aggressive(self, make_flip, now):
        flips = [make_flip(strategy_tag="Speculative") for _ in range(2)]
        assert analyze_trading_profile(flips, now=now).risk_profile is RiskProfile.AGGRESSIVE

    def test_speculative_once_is_not_aggressive(self, make_flip, now):
        flips = [make_flip(strategy_tag="Speculative"), make_flip()]
        assert analyze_trading_profile(flips, now=now).risk_profile is RiskProfile.MODERATE

    def test_high_roi_is_aggressive(self, make_flip, now):
        # 100 → 130: tax 2, profit 28, ROI 28%
        flips = [make_flip(buy_price=100, sell_price=130)]
        assert analyze_trading_profile(flips, now=now).risk_profile is RiskProfile.AGGRESSIVE

    def test_many_fast_flips_is_conservative(self, make_flip, now):
        flips = [make_flip(strategy_tag="Fast Flip") for _ in range(3)]
        assert analyze_trading_profile(flips, now=now).risk_profile is RiskProfile.CONSERVATIVE

    def test_low_roi_is_conservative(self, make_flip, now):
        flips = [make_flip(sell_price=1_030_000)]
        assert analyze_trading_profile(flips, now=now).risk_profile is RiskProfile.CONSERVATIVE

    @pytest.mark.parametrize("members, f2p, expected", [
        (3, 1, MembershipPreference.MEMBERS),
        (2, 1, MembershipPreference.BOTH),
        (1, 3, MembershipPreference.F2P),
        (0, 0, MembershipPreference.BOTH),
    ])
    def test_membership(self, make_flip, now, members, f2p, expected):
        flips = [make_flip(is_members=True) for _ in range(members)]
        flips += [make_flip(is_members=None) for _ in range(f2p)]
        assert analyze_trading_profile(flips, now=now).membership_preference is expected

    def test_strategy_stats(self, make_flip, now):
        flips = [
            make_flip(strategy_tag="Bulk"),
            make_flip(strategy_tag="Bulk", sell_price=900_000),
            make_flip(),
        ]
        strategies = analyze_trading_profile(flips, now=now).preferred_strategies
        assert [s.strategy for s in strategies] == ["Bulk", "Other"]
        assert strategies[0].frequency == 2
        assert strategies[0].win_rate == 50.0
        assert strategies[1].avg_roi == pytest.approx(7.8)

    def test_price_range(self, make_flip, now):
        flips = [
            make_flip(buy_price=500, sell_price=600),
            make_flip(buy_price=2_000_000, sell_price=2_500_000),
        ]
        assert analyze_trading_profile(flips, now=now).preferred_price_range == (500, 2_500_000)

    def test_top_and_frequent_items(self, make_flip, now):
        flips = []
        for i in range(12):
            # item i traded (i % 3) + 1 times, profit grows with i
            for _ in range(i % 3 + 1):
                flips.append(make_flip(item_name=f"Item {i}", buy_price=1_000, sell_price=1_100 + i * 100))
        profile = analyze_trading_profile(flips, now=now)

        assert len(profile.top_performing_items) == 5
        profits = [t.profit for t in profile.top_performing_items]
        assert profits == sorted(profits, reverse=True)
        assert profile.top_performing_items[0].name == "Item 11"

        assert len(profile.frequently_traded_items) == 10
        assert set(profile.frequently_traded_items[:4]) == {"Item 2", "Item 5", "Item 8", "Item 11"}

    def test_trading_volume(self, make_flip, now):
        flips = [
            make_flip(buy_price=100, quantity=10, days_ago=0.5),
            make_flip(buy_price=100, quantity=20, days_ago=3),
            make_flip(buy_price=100, quantity=30, days_ago=20),
            make_flip(buy_price=100, quantity=40, days_ago=40),
        ]
        volume = analyze_trading_profile(flips, now=now).trading_volume
        assert volume.daily == 1_000
        assert volume.weekly == 3_000
        assert volume.monthly == 6_000

    def test_aware_now_with_naive_dates(self, make_flip, now):
        aware = now.replace(tzinfo=timezone.utc)
        profile = analyze_trading_profile([make_flip(days_ago=0.5)], now=aware)
        assert profile.trading_volume.daily == 1_000_000

    def test_average_hold(self, make_flip, now):
        flips = [make_flip(hold_hours=2), make_flip(hold_hours=6)]
        assert analyze_trading_profile(flips, now=now).avg_hold_seconds == 4 * 3600

    def test_to_dict(self, make_flip, now):
        data = analyze_trading_profile([make_flip()], now=now).to_dict()
        assert data["risk_profile"] == "moderate"
        assert data["preferred_price_range"] == [1_000_000, 1_100_000]
