"""
Tests for ge_tracker.personalization.reasoning — prompt, reply validation
and the Anthropic adapter (client mocked).
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from ge_tracker import config
from ge_tracker.core.exceptions import MalformedResponse, ReasoningUnavailable
from ge_tracker.domain.models import ItemPerformance, TradingProfile
from ge_tracker.personalization.reasoning import (
    ReasoningService,
    build_prompt,
    parse_response,
)

CANDIDATES = [
    ItemPerformance(name="Abyssal whip", trade_count=4, total_profit=300_000, avg_roi=6.5,
                    win_rate=75.0, avg_hold_seconds=7_200, strategies=["Fast Flip"]),
    ItemPerformance(name="Shark", trade_count=9, total_profit=40_000, avg_roi=3.1,
                    win_rate=88.9, avg_hold_seconds=600, strategies=["Bulk"]),
]


def _message(text):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def _mock_client(reply=None, exc=None):
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=reply, side_effect=exc)
    return client


class TestParseResponse:
    def test_valid(self):
        reply = parse_response(json.dumps({"items": [
            {"item_name": "Shark", "reasoning": "Cheap and liquid", "match_score": 91,
             "match_reasons": ["High volume"], "strategy": "Bulk"},
        ]}))
        assert reply.items[0].item_name == "Shark"
        assert reply.items[0].match_score == 91

    def test_code_fence_stripped(self):
        reply = parse_response('```json\n{"items": [{"item_name": "Shark"}]}\n```')
        assert reply.items[0].item_name == "Shark"

    def test_defaults(self):
        item = parse_response('{"items": [{"item_name": "Shark"}]}').items[0]
        assert item.match_score == 70
        assert item.reasoning == "Matches your trading profile"
        assert item.match_reasons == []
        assert item.strategy is None

    @pytest.mark.parametrize("text", [
        "",
        "not json",
        '[{"item_name": "Shark"}]',
        '{"recommendations": [{"item_name": "Shark"}]}',
        '{"items": [{"reasoning": "no name"}]}',
        '{"items": [{"item_name": "Shark", "match_score": 150}]}',
    ])
    def test_malformed(self, text):
        with pytest.raises(MalformedResponse):
            parse_response(text)


class TestBuildPrompt:
    def test_includes_profile_and_candidates(self):
        prompt = build_prompt(TradingProfile(total_flips=13, avg_roi=5.25), CANDIDATES, 5)
        assert "Rank the 5 items" in prompt
        assert "Completed flips: 13" in prompt
        assert "Average ROI: 5.2%" in prompt or "Average ROI: 5.3%" in prompt
        assert '"item_name": "Abyssal whip"' in prompt
        assert '"avg_hold": "2 hours"' in prompt


class TestReasoningService:
    @pytest.mark.asyncio
    async def test_rank_items(self):
        client = _mock_client(_message('{"items": [{"item_name": "Shark", "match_score": 88}]}'))
        service = ReasoningService(model="test-model", max_tokens=500, client=client)

        ranked = await service.rank_items(TradingProfile(), CANDIDATES)

        assert [r.item_name for r in ranked] == ["Shark"]
        kwargs = client.messages.create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 500
        assert "Shark" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_api_error_is_unavailable(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client = _mock_client(exc=anthropic.APITimeoutError(request=request))
        service = ReasoningService(client=client)
        with pytest.raises(ReasoningUnavailable):
            await service.rank_items(TradingProfile(), CANDIDATES)

    @pytest.mark.asyncio
    async def test_malformed_reply(self):
        service = ReasoningService(client=_mock_client(_message("Sure! Here are some items...")))
        with pytest.raises(MalformedResponse):
            await service.rank_items(TradingProfile(), CANDIDATES)

    @pytest.mark.asyncio
    async def test_without_key_is_disabled(self, monkeypatch):
        monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "")
        service = ReasoningService()
        assert service.enabled is False
        with pytest.raises(ReasoningUnavailable):
            await service.rank_items(TradingProfile(), CANDIDATES)

    def test_from_config_respects_switch(self, monkeypatch):
        monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "sk-test")
        monkeypatch.setattr(config, "REASONING_ENABLED", False)
        assert ReasoningService.from_config() is None

        monkeypatch.setattr(config, "REASONING_ENABLED", True)
        assert ReasoningService.from_config().enabled is True
