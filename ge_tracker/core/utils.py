"""
GE Flip Tracker — Shared utilities.

Pure functions used across the whole package. No imports from other
ge_tracker modules; only the standard library and ge_tracker.core.constants
are allowed.
"""

from __future__ import annotations

import math
import re
import statistics
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

def round_half_up(value: float, decimals: int = 2) -> float:
    """Round ``value`` to ``decimals`` places, halves toward +infinity.

    ``round()`` uses banker's rounding, which disagrees with the figures
    users see elsewhere (``7.125 → 7.13``, ``-7.125 → -7.12``).
    """
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


# ---------------------------------------------------------------------------
# Formatting / parsing
# ---------------------------------------------------------------------------

def format_gp(amount: int | float) -> str:
    """Human-readable GP amount with K/M/B suffix."""
    amount = int(amount)
    if abs(amount) >= 1_000_000_000:
        return f"{amount / 1_000_000_000:.1f}B"
    if abs(amount) >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if abs(amount) >= 1_000:
        return f"{amount / 1_000:.1f}K"
    return f"{amount:,}"


_GP_SHORTHAND = re.compile(r"^([\d.]+)([kmb])?$")
_GP_MULTIPLIERS = {None: 1, "k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def parse_gp(value: str) -> Optional[int]:
    """Parse a GP amount written with optional k/m/b shorthand.

    ``"4.3b" → 4_300_000_000``, ``"500k" → 500_000``, ``"1,250" → 1250``.
    Fractions of a coin are dropped. Returns ``None`` for unparseable input.
    """
    if not value or not isinstance(value, str):
        return None
    cleaned = re.sub(r"[,\s]", "", value).lower()
    if not cleaned:
        return None

    match = _GP_SHORTHAND.match(cleaned)
    if not match:
        try:
            return math.floor(float(cleaned))
        except (ValueError, OverflowError):
            return None

    number, suffix = match.groups()
    try:
        base = Decimal(number)
    except InvalidOperation:
        return None
    return math.floor(base * _GP_MULTIPLIERS[suffix])


def format_hold_time(seconds: float) -> str:
    """Describe a holding period in the coarsest sensible unit."""
    hours = seconds / 3600
    if hours < 1:
        return "less than 1 hour"
    if hours < 24:
        return f"{int(round_half_up(hours, 0))} hours"
    return f"{int(round_half_up(hours / 24, 0))} days"


# ---------------------------------------------------------------------------
# Math helpers
# ---------------------------------------------------------------------------

def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide without raising on zero denominator."""
    if denominator == 0:
        return default
    return numerator / denominator


def mean_safe(values: Sequence[float], default: float = 0.0) -> float:
    """Return mean of ``values``, or ``default`` when the sequence is empty."""
    if not values:
        return default
    return statistics.mean(values)


def pct_diff(reference: float, value: float) -> float:
    """Return ``(value - reference) / reference * 100``; 0.0 for a zero reference."""
    return safe_div(value - reference, reference, 0.0) * 100.0


# ---------------------------------------------------------------------------
# Statistical helpers
# ---------------------------------------------------------------------------

def volatility_pct(values: Sequence[float]) -> float:
    """Coefficient of variation as a percentage (population stdev / mean × 100).

    Returns 0.0 when fewer than 2 values are provided or the mean is zero.
    """
    if len(values) < 2:
        return 0.0
    mean = statistics.mean(values)
    if mean == 0:
        return 0.0
    return statistics.pstdev(values) / mean * 100.0
