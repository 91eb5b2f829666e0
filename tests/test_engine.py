"""Tests for the analysis engine orchestration.

Verifies the flow: collaborators → pipeline → narrative → JSON-ready dict.
Uses mock collaborators to avoid real provider calls.
"""

import json
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from goldsignal.config import Config
from goldsignal.data.models import GoldHistorical, GoldSpot, NewsEvent, Quote
from goldsignal.data.news_client import mock_calendar
from goldsignal.engine import AnalysisEngine
from goldsignal.narrative.generator import NarrativeGenerator
from goldsignal.strategy.models import CandleData


NOW = datetime(2025, 3, 5, 14, 0, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_config(**overrides) -> Config:
    """Build a Config with sensible test defaults."""
    defaults = dict(
        finnhub_api_key=None,
        alphavantage_api_key=None,
        marketstack_api_key=None,
        goldapi_key=None,
        news_api_key=None,
        openai_api_key=None,
        anthropic_api_key=None,
        openai_model="gpt-4o-mini",
        anthropic_model="claude-sonnet-4-20250514",
        default_symbol="XAU/USD",
        provider_timeout_ms=8000,
        provider_max_retries=1,
        log_level="WARNING",
        host="127.0.0.1",
        port=8080,
    )
    defaults.update(overrides)
    return Config(**defaults)


def _flat_candles(n: int = 50) -> list[CandleData]:
    return [CandleData(time=1_741_000_000 + i * 3600, open=2000, high=2000, low=2000, close=2000) for i in range(n)]


def _make_market(candles=None):
    market = AsyncMock()
    candles = _flat_candles() if candles is None else candles
    market.fetch_quote_with_provider.return_value = (
        Quote(symbol="XAU/USD", close=2001.0, previous_close=2000.0, change=1.0), "finnhub",
    )
    market.fetch_candles_with_provider.return_value = (candles, "finnhub")
    return market


def _make_news(today=None, week=None):
    """Calendar fake returning *today* or, for the week view, *week* (default: *today*)."""
    today_events = [] if today is None else today
    week_events = today_events if week is None else week

    async def _fetch_events(week=False, now=None):
        return week_events if week else today_events

    news = AsyncMock()
    news.fetch_events.side_effect = _fetch_events
    return news


def _make_goldapi(spot=None, history=None):
    goldapi = AsyncMock()
    goldapi.fetch_spot.return_value = spot
    goldapi.fetch_week_history.return_value = history or []
    return goldapi


def _make_engine(market=None, news=None, goldapi=None) -> AnalysisEngine:
    config = _make_config()
    return AnalysisEngine(
        config,
        market=market or _make_market(),
        goldapi=goldapi or _make_goldapi(),
        news=news or _make_news(),
        narrator=NarrativeGenerator(config),
        clock=lambda: NOW,
    )


# ── Tests ────────────────────────────────────────────────────────────────


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_flat_market_result(self):
        market = _make_market()
        engine = _make_engine(market=market)

        result = await engine.analyze("gold", "1h")

        assert result["symbol"] == "XAU/USD"
        assert result["interval"] == "1h"
        assert result["timestamp"] == NOW.isoformat()
        assert result["price"] == 2001.0
        assert result["provider"] == "finnhub"
        assert result["signal"]["action"] == "WAIT"
        assert result["phase"]["phase"] == "TRANSITION"
        assert result["news_risk"]["level"] == "GREEN"
        assert result["news_bias"]["bias"] == "NEUTRAL"
        assert result["spot"] is None
        assert result["spot_insights"] is None
        assert result["session"] == {"code": "OVERLAP", "name": "London/NY Overlap"}
        assert result["narrative_source"] == "fallback"
        assert result["narrative"].startswith("XAU/USD consolidating.")
        assert len(result["macro_correlations"]) == 5

        market.fetch_candles_with_provider.assert_awaited_once_with("XAU/USD", "1h", 150)
        market.fetch_indicators.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_result_is_json_serialisable(self):
        result = await _make_engine().analyze()
        json.dumps(result)

    @pytest.mark.asyncio
    async def test_default_symbol_from_config(self):
        market = _make_market()
        await _make_engine(market=market).analyze(None, "4h")
        market.fetch_quote_with_provider.assert_awaited_once_with("XAU/USD")

    @pytest.mark.asyncio
    async def test_invalid_interval(self):
        market = _make_market()
        engine = _make_engine(market=market)
        with pytest.raises(ValueError, match="interval"):
            await engine.analyze("XAU/USD", "2h")
        market.fetch_candles_with_provider.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_spot_price_and_insights(self):
        spot = GoldSpot(timestamp=1_741_183_200, ask=2011.0, bid=2009.0, price=2010.0)
        history = [
            GoldHistorical(date="20250226", price=1990.0),
            GoldHistorical(date="20250227", price=2000.0),
            GoldHistorical(date="20250228", price=2030.0),
        ]
        goldapi = _make_goldapi(spot=spot, history=history)
        result = await _make_engine(goldapi=goldapi).analyze()

        assert result["price"] == 2010.0
        assert result["spot"]["bid"] == 2009.0
        assert result["spot_insights"]["spread_quality"] == "WIDE"
        assert result["spot_insights"]["weekly_range"]["position_pct"] == 50.0
        goldapi.fetch_week_history.assert_awaited_once_with(date(2025, 3, 5))

    @pytest.mark.asyncio
    async def test_news_events_feed_risk_and_impacts(self):
        news = _make_news(mock_calendar(NOW))
        result = await _make_engine(news=news).analyze()

        assert result["news_risk"]["level"] == "GREEN"
        assert [i["event"] for i in result["event_impacts"]][0] == "Federal Funds Rate"
        news.fetch_events.assert_any_await(now=NOW)
        news.fetch_events.assert_any_await(week=True, now=NOW)

    @pytest.mark.asyncio
    async def test_empty_candles_still_answer(self):
        result = await _make_engine(market=_make_market(candles=[])).analyze()
        assert result["signal"]["action"] == "WAIT"
        assert result["signal"]["confidence"] == 0
        assert result["order_blocks"] == []

    @pytest.mark.asyncio
    async def test_week_calendar_feeds_impacts_and_upcoming(self):
        past_nfp = NewsEvent(
            id="9", country="United States", currency="USD",
            event="Non-Farm Payrolls", date=(NOW - timedelta(days=2)).isoformat(), impact="High",
        )
        ecb = NewsEvent(
            id="10", country="Euro Area", currency="EUR",
            event="ECB Interest Rate Decision", date=(NOW + timedelta(days=1)).isoformat(), impact="High",
        )
        news = _make_news(today=[], week=[past_nfp, ecb, *mock_calendar(NOW)])
        result = await _make_engine(news=news).analyze()

        assert result["news"]["today"] == []
        assert [e["event"] for e in result["news"]["upcoming"]] == [
            "Non-Farm Payrolls", "CPI (YoY)", "GDP (QoQ)", "Federal Funds Rate",
        ]
        assert all(e["id"] != "9" for e in result["news"]["upcoming"])
        assert result["event_impacts"][0]["event"] == "Federal Funds Rate"
        assert result["news_risk"]["level"] == "GREEN"

    @pytest.mark.asyncio
    async def test_synthetic_candles_give_neutral_indicators(self):
        noisy = [
            CandleData(time=1_741_000_000 + i * 3600, open=2000 + i % 7, high=2010 + i % 5,
                       low=1990 - i % 3, close=2000 + (i * 37) % 11)
            for i in range(60)
        ]
        market = _make_market(candles=noisy)
        market.fetch_candles_with_provider.return_value = (noisy, "synthetic")

        result = await _make_engine(market=market).analyze()

        indicators = result["indicators"]
        assert indicators["rsi"] == 50.0
        assert indicators["macd"] == {"macd": 0.0, "signal": 0.0, "histogram": 0.0}
        assert indicators["bbands"]["middle"] == 2001.0
        assert indicators["atr"] == 15.0
        assert not any("RSI" in c for c in result["primary"]["confluences"])
        market.fetch_indicators.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_indicators_come_from_fetched_candles(self):
        rising = [
            CandleData(time=1_741_000_000 + i * 3600, open=2000 + i, high=2001 + i, low=1999 + i, close=2000.5 + i)
            for i in range(60)
        ]
        market = _make_market(candles=rising)
        result = await _make_engine(market=market).analyze()

        assert result["indicators"]["rsi"] == 100.0
        assert result["indicators"]["atr"] > 0
        market.fetch_candles_with_provider.assert_awaited_once()
        market.fetch_indicators.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_payload_includes_candles(self):
        result = await _make_engine().analyze()
        assert len(result["candles"]) == 50
        assert result["candles"][0] == {
            "time": 1_741_000_000, "open": 2000, "high": 2000, "low": 2000, "close": 2000, "volume": 0.0,
        }

    @pytest.mark.asyncio
    async def test_deep_analysis_fallback(self):
        result = await _make_engine().analyze()
        assert result["deep_analysis_source"] == "fallback"
        assert result["deep_analysis"].startswith(result["narrative"])
        assert "Structure: 0 order blocks, 0 FVGs and 0 S/R levels" in result["deep_analysis"]


class TestConstruction:
    def test_builds_default_collaborators(self):
        engine = AnalysisEngine(_make_config())
        assert engine._market is not None
        assert engine._narrator.provider == "fallback"
