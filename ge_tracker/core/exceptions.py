"""
GE Flip Tracker — Exception types.

These never escape the public market-data or personalization entry points;
they mark failure inside a boundary so the caller can convert them into the
typed "none" / fallback outcome in one place.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GETrackerError(Exception):
    """Base class for all package errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class MarketDataUnavailable(GETrackerError):
    """The market data source failed or answered with an unexpected shape."""


class MalformedResponse(GETrackerError):
    """An external service replied, but not with the agreed schema."""


class ReasoningUnavailable(GETrackerError):
    """The reasoning service is disabled, unreachable or timed out."""
