"""Tests for the HTTP API — /health, /analyze and /signals/history."""

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from goldsignal.api.routers import configure_routers
from goldsignal.config import Config
from goldsignal.engine import AnalysisEngine
from goldsignal.main import app

client = TestClient(app)


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_config(**overrides) -> Config:
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


def _result(action="BUY", confidence=72.0, symbol="XAU/USD", interval="1h", ts="2025-03-05T14:00:00+00:00"):
    return {
        "symbol": symbol,
        "interval": interval,
        "timestamp": ts,
        "price": 2912.4,
        "signal": {"action": action, "confidence": confidence, "entry": 2912.4},
        "narrative": "text",
    }


def _make_engine(*results):
    """Return a mock engine whose analyze() yields *results* in order."""
    engine = AsyncMock()
    engine.analyze.side_effect = list(results) or [_result()]
    return engine


# ── Tests ────────────────────────────────────────────────────────────────


class TestHealth:
    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestAnalyzeEndpoint:
    def test_analyze_defaults(self):
        engine = _make_engine()
        configure_routers(engine=engine)
        resp = client.post("/analyze")
        assert resp.status_code == 200
        assert resp.json()["signal"]["action"] == "BUY"
        engine.analyze.assert_awaited_once_with(None, "1h")

    def test_analyze_passes_symbol_and_interval(self):
        engine = _make_engine(_result(interval="4h"))
        configure_routers(engine=engine)
        resp = client.post("/analyze", json={"symbol": "GOLD", "interval": "4h"})
        assert resp.status_code == 200
        engine.analyze.assert_awaited_once_with("GOLD", "4h")

    def test_invalid_interval_is_400(self):
        engine = _make_engine()
        configure_routers(engine=engine)
        resp = client.post("/analyze", json={"interval": "5m"})
        assert resp.status_code == 400
        assert "Invalid interval '5m'" in resp.json()["detail"]
        engine.analyze.assert_not_awaited()

    def test_no_engine_is_503(self):
        configure_routers(engine=None)
        resp = client.post("/analyze", json={"interval": "1h"})
        assert resp.status_code == 503


class TestSignalHistory:
    def test_empty(self):
        configure_routers(engine=_make_engine())
        resp = client.get("/signals/history")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_newest_first(self):
        engine = _make_engine(
            _result(action="BUY", ts="t1"),
            _result(action="WAIT", confidence=40.0, ts="t2"),
            _result(action="SELL", ts="t3"),
        )
        configure_routers(engine=engine)
        for _ in range(3):
            client.post("/analyze")

        history = client.get("/signals/history").json()
        assert [h["action"] for h in history] == ["SELL", "WAIT", "BUY"]
        assert history[1] == {
            "timestamp": "t2",
            "symbol": "XAU/USD",
            "interval": "1h",
            "action": "WAIT",
            "confidence": 40.0,
            "entry": 2912.4,
        }

        limited = client.get("/signals/history", params={"limit": 1}).json()
        assert [h["timestamp"] for h in limited] == ["t3"]

    def test_history_is_bounded(self):
        engine = _make_engine(*[_result(ts=f"t{i}") for i in range(55)])
        configure_routers(engine=engine)
        for _ in range(55):
            client.post("/analyze")
        history = client.get("/signals/history", params={"limit": 100}).json()
        assert len(history) == 50
        assert history[0]["timestamp"] == "t54"
        assert history[-1]["timestamp"] == "t5"


class TestOfflineEndToEnd:
    def test_analyze_without_any_provider_keys(self):
        """No keys: synthetic candles, mock calendar, no spot, fallback narrative."""
        configure_routers(engine=AnalysisEngine(_make_config()))
        resp = client.post("/analyze", json={"symbol": "xauusd", "interval": "1h"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["symbol"] == "XAU/USD"
        assert data["provider"] == "synthetic"
        assert data["spot"] is None
        assert data["narrative_source"] == "fallback"
        assert data["signal"]["action"] in ("BUY", "SELL", "WAIT")
        assert 0 <= data["signal"]["confidence"] <= 95
        assert len(data["event_impacts"]) == 4
