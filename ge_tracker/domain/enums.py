"""
ge_tracker.domain.enums — All enumerations used across the package.

Keep this module import-clean (stdlib only). Values are the lower-case
strings the API layer serialises.
"""

from enum import Enum


# ---------------------------------------------------------------------------
# Trade record lifecycle
# ---------------------------------------------------------------------------

class FlipStatus(str, Enum):
    OPEN      = "open"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Market trend / recommendation
# ---------------------------------------------------------------------------

class TrendDirection(str, Enum):
    RISING  = "rising"
    FALLING = "falling"
    STABLE  = "stable"


class Recommendation(str, Enum):
    BUY  = "buy"
    SELL = "sell"
    HOLD = "hold"


class Confidence(str, Enum):
    HIGH   = "high"
    MEDIUM = "medium"
    LOW    = "low"


# ---------------------------------------------------------------------------
# Personalization
# ---------------------------------------------------------------------------

class RiskProfile(str, Enum):
    """Coarse risk classification derived from a user's completed trades."""
    CONSERVATIVE = "conservative"
    MODERATE     = "moderate"
    AGGRESSIVE   = "aggressive"


class RiskLevel(str, Enum):
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"


class MembershipPreference(str, Enum):
    MEMBERS = "members"
    F2P     = "f2p"
    BOTH    = "both"


class RecommendationSource(str, Enum):
    """Where a personalized recommendation's ranking came from."""
    HISTORY   = "history"     # ranked by the user's own total profit
    REASONING = "reasoning"   # ranked by the external reasoning service
