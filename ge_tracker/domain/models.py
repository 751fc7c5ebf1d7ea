"""
ge_tracker.domain.models — Canonical dataclass models.

These are the single source of truth for data structures flowing through
the package.  Layers that produce or consume these models must not invent
their own parallel types.

Everything except ``Flip`` is a derived value object: computed fresh per
request from the stored trades or the market data source, never persisted.

Import pattern::

    from ge_tracker.domain.models import Flip, PricePoint, PriceTrend
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ge_tracker.domain.enums import (
    Confidence,
    FlipStatus,
    MembershipPreference,
    Recommendation,
    RecommendationSource,
    RiskLevel,
    RiskProfile,
    TrendDirection,
)


def _plain(value: Any) -> Any:
    """Recursively turn enums and dates into JSON-friendly values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain dict for JSON responses."""
        return _plain(dataclasses.asdict(self))


# ---------------------------------------------------------------------------
# Trade record (owned by the persistence layer)
# ---------------------------------------------------------------------------

@dataclass
class Flip(_Serializable):
    """
    One logged buy and, once closed, its sell.

    All prices are per unit, in GP (integer).
    """
    item_name: str
    buy_price: int
    buy_date:  datetime
    quantity:  int = 1

    id:      Optional[str] = None
    user_id: Optional[str] = None

    item_id:   Optional[int] = None
    item_icon: Optional[str] = None

    sell_price: Optional[int]      = None
    sell_date:  Optional[datetime] = None

    notes:        Optional[str]  = None
    category:     Optional[str]  = None
    strategy_tag: Optional[str]  = None
    is_members:   Optional[bool] = None

    deleted_at: Optional[datetime] = None   # tombstone; recoverable

    @property
    def status(self) -> FlipStatus:
        if self.sell_price and self.sell_date:
            return FlipStatus.COMPLETED
        return FlipStatus.OPEN

    @property
    def is_completed(self) -> bool:
        return self.status is FlipStatus.COMPLETED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


# ---------------------------------------------------------------------------
# Tax / profit
# ---------------------------------------------------------------------------

@dataclass
class TaxCalculation(_Serializable):
    """Tax-adjusted result of selling ``quantity`` units at one price."""
    tax_per_item:     float     # effective: total_tax / quantity
    raw_tax_per_item: int       # floor(sell × 2%) before the cap
    total_tax:        int
    net_sell_per_item: float
    net_sell_total:   int
    gross_sell_total: int
    total_cost:       int
    profit:           int
    profit_per_item:  float
    roi:              float     # percent, 2 dp
    is_tax_exempt:    bool = False
    exempt_reason:    Optional[str] = None
    tax_capped:       bool = False


@dataclass
class FlipSummary(_Serializable):
    """A stored flip plus its tax figures; all figures ``None`` while open."""
    flip:   Flip
    status: FlipStatus
    tax:    Optional[TaxCalculation] = None

    @property
    def profit(self) -> Optional[int]:
        return self.tax.profit if self.tax else None

    @property
    def roi(self) -> Optional[float]:
        return self.tax.roi if self.tax else None

    @property
    def total_tax(self) -> Optional[int]:
        return self.tax.total_tax if self.tax else None


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

@dataclass
class GEItem(_Serializable):
    """Current price and metadata for one tradeable item."""
    id:        int
    name:      str
    price:     int
    volume:    Optional[int] = None
    timestamp: Optional[str] = None
    icon:      Optional[str] = None


@dataclass
class CatalogEntry:
    """One row of the bulk catalog dump held by ``CatalogCache``."""
    id:     int
    name:   str
    price:  int
    volume: Optional[int] = None


@dataclass(frozen=True)
class PricePoint:
    """One day of price history."""
    date:   date
    price:  int
    volume: Optional[int] = None


# ---------------------------------------------------------------------------
# Derived analytics
# ---------------------------------------------------------------------------

@dataclass
class PriceTrend(_Serializable):
    """Output of ``analytics.trend.analyze_trend``."""
    direction:      TrendDirection
    change_percent: float
    change_amount:  int
    streak_days:    int
    current_price:  int
    avg_price_7d:   float
    avg_price_30d:  float
    low_price_30d:  int
    high_price_30d: int
    recommendation:        Recommendation
    recommendation_reason: str


@dataclass
class PriceSuggestion(_Serializable):
    """Output of ``analytics.suggestions.suggest_prices``.

    Profit and ROI are pre-trade estimates: no GE tax applied.
    """
    suggested_buy_price:  int
    suggested_sell_price: int
    potential_profit:     int
    potential_roi:        float
    confidence:           Confidence
    confidence_reason:    str
    buy_reason:           str
    sell_reason:          str

    current_price:  int
    avg_price_7d:   float
    avg_price_14d:  float
    avg_price_30d:  float
    low_price_30d:  int
    high_price_30d: int
    volatility:     float
    trend:          TrendDirection


# ---------------------------------------------------------------------------
# Personalization
# ---------------------------------------------------------------------------

@dataclass
class StrategyStats(_Serializable):
    strategy:  str
    frequency: int
    avg_roi:   float
    win_rate:  float     # percent


@dataclass
class ItemPerformance(_Serializable):
    """Aggregate of one user's completed flips on a single item."""
    name:          str
    item_id:       Optional[int] = None
    item_icon:     Optional[str] = None
    trade_count:   int   = 0
    total_profit:  int   = 0
    avg_buy_price:  float = 0.0
    avg_sell_price: float = 0.0
    avg_roi:       float = 0.0
    win_rate:      float = 0.0      # percent
    avg_hold_seconds: float = 0.0
    strategies:    List[str] = field(default_factory=list)


@dataclass
class TopItem(_Serializable):
    name:        str
    profit:      int
    roi_percent: float


@dataclass
class TradingVolume(_Serializable):
    """GP committed to buys over trailing windows."""
    daily:   int = 0
    weekly:  int = 0
    monthly: int = 0


@dataclass
class TradingProfile(_Serializable):
    """Derived from a user's full completed-trade history."""
    preferred_strategies:   List[StrategyStats] = field(default_factory=list)
    preferred_price_range:  Tuple[int, int] = (0, 0)
    avg_hold_seconds:       float = 0.0
    risk_profile:           RiskProfile = RiskProfile.MODERATE
    membership_preference:  MembershipPreference = MembershipPreference.BOTH
    total_flips:            int = 0
    win_rate:               float = 0.0      # percent
    avg_roi:                float = 0.0
    top_performing_items:   List[TopItem] = field(default_factory=list)
    frequently_traded_items: List[str] = field(default_factory=list)
    trading_volume:         TradingVolume = field(default_factory=TradingVolume)


@dataclass
class PersonalizedRecommendation(_Serializable):
    item_name: str
    item_id:   Optional[int]
    item_icon: Optional[str]

    suggested_buy_price:  int
    suggested_sell_price: int
    potential_profit:     int       # per unit, after GE tax
    potential_roi:        float

    confidence:  Confidence
    risk_level:  RiskLevel
    estimated_hold_time: str
    strategy:    str

    reasoning:     str
    match_score:   int = 0
    match_reasons: List[str] = field(default_factory=list)
    source:        RecommendationSource = RecommendationSource.HISTORY
