"""Deterministic tests for candlestick and chart pattern detection."""

import pytest

from goldsignal.strategy.candlestick import analyze_wicks, detect_candlestick_patterns
from goldsignal.strategy.chart_patterns import (
    detect_chart_patterns,
    detect_flag,
    detect_triangle,
    detect_wedge,
)
from goldsignal.strategy.models import CandleData


# ── Candle fixtures ──────────────────────────────────────────────────────

def _make_candle(i: int, o: float, h: float, l: float, c: float) -> CandleData:
    return CandleData(time=1_700_000_000 + i * 3600, open=o, high=h, low=l, close=c)


def _quiet(n: int, price: float = 2000.0) -> list[CandleData]:
    """Small bullish bars with tiny wicks: no pattern fires on them."""
    return [_make_candle(i, price, price + 2.2, price - 0.2, price + 2) for i in range(n)]


def _names(candles: list[CandleData]) -> list[str]:
    return [p.name for p in detect_candlestick_patterns(candles) if p.index == len(candles) - 1]


# ── Candlesticks ─────────────────────────────────────────────────────────


class TestCandlesticks:
    def test_quiet_bars_have_no_patterns(self):
        assert detect_candlestick_patterns(_quiet(12)) == []

    def test_bullish_engulfing(self):
        candles = _quiet(2) + [
            _make_candle(2, 2005, 2005.5, 1999.5, 2000),
            _make_candle(3, 1999, 2012.5, 1998.5, 2012),
        ]
        found = [p for p in detect_candlestick_patterns(candles) if p.name == "Bullish Engulfing"]
        assert len(found) == 1
        p = found[0]
        assert p.direction == "BULLISH"
        assert p.strength == "STRONG"            # 13 / 5 = 2.6
        assert p.confidence == pytest.approx(95.0)  # min(95, 60 + 2.6 × 15)
        assert p.index == 3

    def test_bearish_engulfing_moderate(self):
        candles = _quiet(2) + [
            _make_candle(2, 2000, 2010.5, 1999.5, 2010),
            _make_candle(3, 2011, 2011.5, 1993.5, 1994),
        ]
        found = [p for p in detect_candlestick_patterns(candles) if p.name == "Bearish Engulfing"]
        assert len(found) == 1
        assert found[0].strength == "MODERATE"   # 17 / 10 = 1.7
        assert found[0].confidence == pytest.approx(85.5)

    def test_hammer(self):
        candles = _quiet(2) + [_make_candle(2, 2000, 2004.5, 1987, 2004)]
        found = [p for p in detect_candlestick_patterns(candles) if p.name == "Hammer"]
        assert len(found) == 1
        assert found[0].direction == "BULLISH"
        assert found[0].strength == "STRONG"     # lower 13 > 3 × body 4
        assert found[0].confidence == pytest.approx(81.25)  # 65 + 13 / 4 × 5

    def test_shooting_star(self):
        candles = _quiet(2) + [_make_candle(2, 2004, 2016, 1999.5, 2000)]
        found = [p for p in detect_candlestick_patterns(candles) if p.name == "Shooting Star"]
        assert len(found) == 1
        assert found[0].direction == "BEARISH"

    def test_doji(self):
        candles = _quiet(2) + [_make_candle(2, 2000, 2005, 1995, 2000.5)]
        assert "Doji" in _names(candles)

    def test_bullish_pin_bar(self):
        candles = _quiet(2) + [_make_candle(2, 2008, 2010, 1990, 2009)]
        found = [p for p in detect_candlestick_patterns(candles) if p.name == "Pin Bar (Bullish)"]
        assert len(found) == 1
        assert found[0].strength == "STRONG"
        assert found[0].confidence == 80

    def test_morning_star(self):
        candles = [
            _make_candle(0, 2020, 2021, 2004, 2005),
            _make_candle(1, 2004, 2006, 2001, 2003),
            _make_candle(2, 2004, 2024, 2003, 2023),
        ]
        found = [p for p in detect_candlestick_patterns(candles) if p.name == "Morning Star"]
        assert len(found) == 1
        assert found[0].strength == "STRONG"     # third close above first open
        assert found[0].confidence == 85

    def test_evening_star(self):
        candles = [
            _make_candle(0, 2000, 2016, 1999, 2015),
            _make_candle(1, 2016, 2019, 2014, 2017),
            _make_candle(2, 2016, 2017, 2001, 2005),
        ]
        assert "Evening Star" in _names(candles)

    def test_lookback_limits_scan(self):
        candles = _quiet(2) + [_make_candle(2, 2000, 2005, 1995, 2000.5)] + _quiet(15)
        assert detect_candlestick_patterns(candles, lookback=10) == []

    def test_too_few_candles(self):
        assert detect_candlestick_patterns(_quiet(2)) == []


# ── Wick analysis ────────────────────────────────────────────────────────


class TestWickAnalysis:
    def test_lower_rejection(self):
        wicks = analyze_wicks(_make_candle(0, 2008, 2010, 1990, 2009))
        assert wicks.sentiment == "BULLISH"
        assert wicks.rejection_type == "lower"
        assert wicks.lower_wick_ratio == pytest.approx(0.9)
        assert wicks.significance == pytest.approx(100.0)

    def test_upper_rejection(self):
        wicks = analyze_wicks(_make_candle(0, 2001, 2020, 2000, 2002))
        assert wicks.sentiment == "BEARISH"
        assert wicks.rejection_type == "upper"
        assert wicks.significance == pytest.approx(100.0)

    def test_strong_body(self):
        wicks = analyze_wicks(_make_candle(0, 2000, 2010.5, 1999.5, 2010))
        assert wicks.sentiment == "BULLISH"
        assert wicks.rejection_type == "none"
        assert wicks.body_ratio == pytest.approx(10 / 11)
        assert wicks.significance == pytest.approx(10 / 11 * 70)

    def test_zero_range(self):
        wicks = analyze_wicks(_make_candle(0, 2000, 2000, 2000, 2000))
        assert wicks.sentiment == "NEUTRAL"
        assert wicks.significance == 0
        assert wicks.body_ratio == 0


# ── Chart patterns ───────────────────────────────────────────────────────


def _contracting(end_close: float) -> list[CandleData]:
    """20 bars: wide first half ($40 swings), tight second half."""
    candles = []
    for i in range(10):
        c = 1980.0 if i % 2 == 0 else 2020.0
        candles.append(_make_candle(i, c, c + 1, c - 1, c))
    for i in range(10, 19):
        candles.append(_make_candle(i, 2000, 2002, 1998, 2000))
    candles.append(_make_candle(19, end_close, end_close + 1, end_close - 1, end_close))
    return candles


def _bull_flag() -> list[CandleData]:
    """10-bar pole rising $5 a bar, then a 15-bar flag within $4."""
    candles = []
    for i in range(10):
        c = 2000.0 + i * 5
        candles.append(_make_candle(i, c - 1, c + 0.5, c - 1.5, c))
    for k in range(15):
        c = 2044.0 + (k % 3)
        candles.append(_make_candle(10 + k, c, c + 0.5, c - 0.5, c))
    return candles


class TestChartPatterns:
    def test_triangle_direction_follows_close(self):
        up = detect_triangle(_contracting(end_close=2003))
        down = detect_triangle(_contracting(end_close=1997))
        assert up.direction == "BULLISH"
        assert down.direction == "BEARISH"
        assert up.breakout_level == pytest.approx(2021)
        assert up.target_level == pytest.approx(2021 + 42)
        assert up.confidence == 75

    def test_wedge_rising_breaks_down(self):
        wedge = detect_wedge(_contracting(end_close=2003))
        assert wedge.name == "Rising Wedge"
        assert wedge.direction == "BEARISH"
        assert wedge.type == "reversal"

    def test_bull_flag(self):
        flag = detect_flag(_bull_flag())
        assert flag is not None
        assert flag.name == "Bull Flag"
        assert flag.direction == "BULLISH"
        assert flag.target_level == pytest.approx(2045 + 45)
        assert flag.confidence == 78

    def test_no_flag_without_pole(self):
        assert detect_flag(_quiet(30)) is None

    def test_order_and_minimum(self):
        found = detect_chart_patterns(_contracting(end_close=2003))
        assert [p.name for p in found] == ["Symmetrical Triangle", "Rising Wedge"]
        assert detect_chart_patterns(_quiet(19)) == []

    def test_flat_market_has_no_patterns(self):
        flat = [_make_candle(i, 2000, 2000, 2000, 2000) for i in range(50)]
        assert detect_chart_patterns(flat) == []
