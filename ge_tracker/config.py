"""
Centralized configuration for GE Flip Tracker.
All settings come from environment variables for 12-factor deployment.
"""

import os

from ge_tracker.core import constants


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///ge_flip_tracker.db")

# ---------------------------------------------------------------------------
# Market data source
# ---------------------------------------------------------------------------
GE_API_BASE = os.environ.get("GE_API_BASE", constants.GE_API_BASE_URL).rstrip("/")
GE_CATALOG_URL = os.environ.get("GE_CATALOG_URL", constants.GE_CATALOG_URL)
GE_ICON_BASE = os.environ.get("GE_ICON_BASE", constants.GE_ICON_BASE_URL).rstrip("/")
GE_USER_AGENT = os.environ.get("GE_USER_AGENT", constants.GE_USER_AGENT)

# Each outbound call carries its own timeout so one slow dependency cannot
# hold a request open indefinitely.
MARKET_HTTP_TIMEOUT_SECONDS = float(os.environ.get("MARKET_HTTP_TIMEOUT_SECONDS", "15"))
MARKET_HTTP_MAX_RETRIES = int(os.environ.get("MARKET_HTTP_MAX_RETRIES", "2"))
MARKET_HTTP_BACKOFF_SECONDS = float(os.environ.get("MARKET_HTTP_BACKOFF_SECONDS", "1"))

CATALOG_TTL_SECONDS = int(os.environ.get("CATALOG_TTL_SECONDS", str(constants.CATALOG_TTL_SECONDS)))
SEARCH_RESULT_LIMIT = int(os.environ.get("SEARCH_RESULT_LIMIT", str(constants.SEARCH_RESULT_LIMIT)))

# ---------------------------------------------------------------------------
# External reasoning service (personalized recommendations)
# ---------------------------------------------------------------------------
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
REASONING_ENABLED = _env_bool("REASONING_ENABLED", True)
REASONING_MODEL = os.environ.get("REASONING_MODEL", "claude-3-5-sonnet-latest")
REASONING_TIMEOUT_SECONDS = float(os.environ.get("REASONING_TIMEOUT_SECONDS", "30"))
REASONING_MAX_TOKENS = int(os.environ.get("REASONING_MAX_TOKENS", "2000"))
