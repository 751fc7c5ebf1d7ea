"""
ge_tracker.personalization.reasoning — Claude-backed ranking of a user's
previously traded items.

The service sees a bounded payload (the user's profile plus at most 30
candidate items) and must answer with a single JSON object::

    {"items": [{"item_name": "...", "reasoning": "...", "match_score": 0-100,
                "match_reasons": ["..."], "strategy": "..."}]}

The reply is untrusted.  It is validated against ``ReasoningResponse``; any
deviation raises ``MalformedResponse`` and the recommender falls back to
its own profit ranking.  Whether the named items are real candidates is
the recommender's job, not this module's.
"""

from __future__ import annotations

import json
import logging
import re
from typing import List, Optional, Sequence

import anthropic
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ge_tracker import config
from ge_tracker.core.exceptions import MalformedResponse, ReasoningUnavailable
from ge_tracker.core.utils import format_gp, format_hold_time
from ge_tracker.domain.models import ItemPerformance, TradingProfile

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a RuneScape 3 Grand Exchange trading advisor. You only rank items "
    "from the list you are given, using their exact names. Always answer with "
    "one JSON object containing an \"items\" array and nothing else."
)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class RankedItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_name: str = Field(min_length=1)
    reasoning: str = "Matches your trading profile"
    match_score: int = Field(default=70, ge=0, le=100)
    match_reasons: List[str] = Field(default_factory=list)
    strategy: Optional[str] = None


class ReasoningResponse(BaseModel):
    items: List[RankedItem]


def _candidate_payload(item: ItemPerformance) -> dict:
    return {
        "item_name": item.name,
        "trade_count": item.trade_count,
        "total_profit": item.total_profit,
        "avg_roi": round(item.avg_roi, 2),
        "win_rate": round(item.win_rate, 1),
        "avg_hold": format_hold_time(item.avg_hold_seconds),
        "strategies": item.strategies,
    }


def build_prompt(profile: TradingProfile, candidates: Sequence[ItemPerformance], count: int) -> str:
    low, high = profile.preferred_price_range
    strategies = ", ".join(
        f"{s.strategy} ({s.frequency} trades, {s.avg_roi:.1f}% avg ROI)"
        for s in profile.preferred_strategies
    ) or "None yet"

    return (
        f"Rank the {count} items from CANDIDATES that best fit this trader.\n\n"
        "TRADER PROFILE:\n"
        f"- Risk profile: {profile.risk_profile.value}\n"
        f"- Preferred price range: {format_gp(low)} - {format_gp(high)}\n"
        f"- Average ROI: {profile.avg_roi:.1f}%\n"
        f"- Win rate: {profile.win_rate:.1f}%\n"
        f"- Average hold time: {format_hold_time(profile.avg_hold_seconds)}\n"
        f"- Completed flips: {profile.total_flips}\n"
        f"- Membership preference: {profile.membership_preference.value}\n"
        f"- Preferred strategies: {strategies}\n\n"
        "CANDIDATES (the trader's own history, no open positions):\n"
        f"{json.dumps([_candidate_payload(c) for c in candidates], indent=2)}\n\n"
        "Answer with JSON only:\n"
        '{"items": [{"item_name": "exact name from CANDIDATES", '
        '"reasoning": "one sentence", "match_score": 0-100, '
        '"match_reasons": ["..."], "strategy": "Fast Flip|Slow Flip|Bulk|High Margin|Speculative"}]}'
    )


def parse_response(text: str) -> ReasoningResponse:
    """Validate the raw reply; raises ``MalformedResponse``."""
    cleaned = _FENCE.sub("", (text or "").strip())
    if not cleaned:
        raise MalformedResponse("Empty reasoning response")
    try:
        return ReasoningResponse.model_validate_json(cleaned)
    except ValidationError as exc:
        raise MalformedResponse(
            "Reasoning response failed validation",
            {"errors": exc.error_count(), "preview": cleaned[:120]},
        ) from exc


class ReasoningService:
    """Thin adapter over ``anthropic.AsyncAnthropic``.

    The client carries its own timeout, independent of the market data
    client's, and is never retried: the fallback ranking is always there.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ) -> None:
        self.model = model or config.REASONING_MODEL
        self.max_tokens = max_tokens or config.REASONING_MAX_TOKENS
        timeout = timeout if timeout is not None else config.REASONING_TIMEOUT_SECONDS

        if client is not None:
            self._client = client
        else:
            key = api_key or config.ANTHROPIC_API_KEY
            self._client = (
                anthropic.AsyncAnthropic(api_key=key, timeout=timeout, max_retries=0)
                if key else None
            )

    @classmethod
    def from_config(cls) -> Optional["ReasoningService"]:
        """Service built from the environment, or ``None`` when switched off."""
        if not config.REASONING_ENABLED or not config.ANTHROPIC_API_KEY:
            logger.info("Reasoning service disabled; recommendations use history ranking")
            return None
        return cls()

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def rank_items(
        self,
        profile: TradingProfile,
        candidates: Sequence[ItemPerformance],
        count: int = 5,
    ) -> List[RankedItem]:
        """Ask the service to rank ``candidates``.

        Raises ``ReasoningUnavailable`` on transport failure and
        ``MalformedResponse`` when the reply does not validate.
        """
        if self._client is None:
            raise ReasoningUnavailable("No API key configured")

        try:
            message = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_prompt(profile, candidates, count)}],
            )
        except anthropic.APIError as exc:
            raise ReasoningUnavailable(
                "Reasoning request failed", {"error": type(exc).__name__}
            ) from exc

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        response = parse_response(text)
        logger.info("Reasoning service ranked %d items", len(response.items))
        return response.items
