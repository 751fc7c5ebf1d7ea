"""
GE Flip Tracker — System-wide constants.

Every magic number lives here. If you find a literal in the codebase that is
not a local variable, it belongs here instead.
"""

# ---------------------------------------------------------------------------
# Grand Exchange Tax
# ---------------------------------------------------------------------------

GE_TAX_RATE: float = 0.02          # 2% of the per-unit sell price
GE_TAX_CAP: int = 5_000_000        # Maximum total tax on one sale

# Items sold for this much or less per unit are not taxed.
GE_TAX_EXEMPT_MAX_PRICE: int = 49

# Bonds are exempt from tax regardless of price.
BOND_ITEM_IDS: frozenset = frozenset({
    29492,  # Bond
    43998,  # Premier Club bond
})
BOND_NAME_FRAGMENT: str = "bond"

ROI_DECIMALS: int = 2

# ---------------------------------------------------------------------------
# Price history windows (points, one per day)
# ---------------------------------------------------------------------------

HISTORY_MAX_POINTS: int = 90
WINDOW_SHORT: int = 7
WINDOW_MEDIUM: int = 14
WINDOW_LONG: int = 30

# Change is measured against the price this many points back.
CHANGE_LOOKBACK: int = 7

# ---------------------------------------------------------------------------
# Trend analyzer
# ---------------------------------------------------------------------------

STREAK_NOISE_PCT: float = 2.0       # moves under 2% do not break a streak
STREAK_LONG_DAYS: int = 5

NEAR_EXTREME_PCT: float = 0.10      # within 10% of the 30-day low / high
NEAR_AVERAGE_PCT: float = 0.05      # within 5% of the 30-day average
BELOW_AVERAGE_PCT: float = 0.05     # > 5% under the average is a dip
ABOVE_AVERAGE_PCT: float = 0.10     # > 10% over the average is a spike

# ---------------------------------------------------------------------------
# Price suggestion engine
# ---------------------------------------------------------------------------

SUGGEST_TREND_PCT: float = 0.03     # price vs 7-day average for rising/falling

SUGGEST_BASE_OFFSET: float = 0.05
SUGGEST_MID_VOL_OFFSET: float = 0.08
SUGGEST_HIGH_VOL_OFFSET: float = 0.12
SUGGEST_MID_VOLATILITY: float = 10.0
SUGGEST_HIGH_VOLATILITY: float = 20.0
SUGGEST_FALLING_EXTRA_DISCOUNT: float = 0.03
SUGGEST_RISING_EXTRA_PREMIUM: float = 0.02

# Anchors sit 30% of the way from the extreme toward the 30-day average.
SUGGEST_ANCHOR_FRACTION: float = 0.30
# Suggestions never go beyond 2% inside the observed 30-day range.
SUGGEST_RANGE_MARGIN: float = 0.02

CONFIDENCE_MIN_VOLATILITY: float = 5.0
CONFIDENCE_MAX_VOLATILITY: float = 20.0
CONFIDENCE_HIGH_ROI: float = 8.0
CONFIDENCE_LOW_ROI: float = 5.0

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

SEARCH_MIN_QUERY_LENGTH: int = 2

SEARCH_SCORE_EXACT: int = 100
SEARCH_SCORE_PREFIX: int = 80
SEARCH_SCORE_WORD_PREFIX: int = 60
SEARCH_SCORE_CONTAINS: int = 40
SEARCH_SCORE_FUZZY: int = 20

# ---------------------------------------------------------------------------
# Personalization
# ---------------------------------------------------------------------------

RECOMMENDATION_COUNT: int = 5
REASONING_MAX_ITEMS: int = 30
TOP_PERFORMING_ITEMS: int = 5
FREQUENT_ITEMS: int = 10

DEFAULT_STRATEGY: str = "Other"
STRATEGY_FAST_FLIP: str = "Fast Flip"
STRATEGY_SPECULATIVE: str = "Speculative"

PROFILE_AGGRESSIVE_ROI: float = 15.0
PROFILE_CONSERVATIVE_ROI: float = 5.0
PROFILE_FAST_FLIP_COUNT: int = 2      # more than this many fast flips
PROFILE_SPECULATIVE_COUNT: int = 1    # more than this many speculative flips
MEMBERSHIP_MAJORITY_RATIO: int = 2

DEFAULT_PRICE_RANGE_MAX: int = 10_000_000

# Per-item recommendation labels (win rate in %, ROI in %)
REC_HIGH_CONFIDENCE_WIN_RATE: float = 70.0
REC_HIGH_CONFIDENCE_ROI: float = 5.0
REC_LOW_CONFIDENCE_WIN_RATE: float = 50.0
REC_LOW_RISK_WIN_RATE: float = 80.0
REC_LOW_RISK_MAX_ROI: float = 10.0
REC_HIGH_RISK_ROI: float = 15.0

# ---------------------------------------------------------------------------
# Market data API (RS3 Grand Exchange via Weird Gloop)
# ---------------------------------------------------------------------------

GE_API_BASE_URL: str = "https://api.weirdgloop.org/exchange/history/rs"
GE_CATALOG_URL: str = "https://chisel.weirdgloop.org/gazproj/gazbot/rs_dump.json"
GE_ICON_BASE_URL: str = "https://secure.runescape.com/m=itemdb_rs"
GE_USER_AGENT: str = "GE-Flip-Tracker/1.0"

CATALOG_TTL_SECONDS: int = 30 * 60
SEARCH_RESULT_LIMIT: int = 15
