"""Deterministic tests for the signal builders and the risk ladder.

Primary builder: oscillator/MACD/regime decision order and additive
confluence scoring.  Price-action builder: pattern, wick and chart scoring.
"""

import pytest

from goldsignal.risk.sl_tp import calculate_risk_ladder, risk_reward
from goldsignal.strategy.indicators import BollingerValues, IndicatorBundle, MACDValues
from goldsignal.strategy.models import (
    CandleData,
    FairValueGap,
    MarketPhase,
    OrderBlock,
    SRLevel,
)
from goldsignal.strategy.price_action import generate_price_action_signal
from goldsignal.strategy.signals import build_signal


# ── Fixtures ─────────────────────────────────────────────────────────────

def _make_candle(i: int, o: float, h: float, l: float, c: float) -> CandleData:
    return CandleData(time=1_700_000_000 + i * 3600, open=o, high=h, low=l, close=c)


def _flat(n: int = 50, price: float = 2000.0) -> list[CandleData]:
    return [_make_candle(i, price, price, price, price) for i in range(n)]


def _quiet(n: int, price: float = 2000.0) -> list[CandleData]:
    return [_make_candle(i, price, price + 2.2, price - 0.2, price + 2) for i in range(n)]


def _indicators(rsi: float = 50.0, histogram: float = 0.0, atr: float = 10.0) -> IndicatorBundle:
    return IndicatorBundle(
        rsi=rsi,
        macd=MACDValues(macd=histogram, signal=0.0, histogram=histogram),
        bbands=BollingerValues(upper=2050, middle=2000, lower=1950),
        atr=atr,
    )


def _phase(bias: str = "NEUTRAL", strength: float = 40.0) -> MarketPhase:
    return MarketPhase(
        phase="TRANSITION",
        bias=bias,
        session_high=2010,
        session_low=1990,
        strength=strength,
        description="test phase",
    )


def _ob(kind: str, strength: str = "STRONG") -> OrderBlock:
    return OrderBlock(
        id=f"OB_{kind}", type=kind, top=1995, bottom=1990,
        body_top=1995, body_bottom=1992, time=0, strength=strength,
    )


def _fvg(kind: str) -> FairValueGap:
    return FairValueGap(
        id=f"FVG_{kind}", type=kind, top=1998, bottom=1994, size=4, midpoint=1996, time=0,
    )


def _sr(kind: str) -> SRLevel:
    return SRLevel(price=1980, type=kind, touches=3, strength=0.6)


def _build(rsi=50.0, histogram=0.0, bias="NEUTRAL", strength=40.0, obs=(), fvgs=(), srs=()):
    return build_signal(
        _flat(),
        _indicators(rsi=rsi, histogram=histogram),
        _phase(bias, strength),
        list(obs),
        list(fvgs),
        list(srs),
    )


# ── Risk ladder ──────────────────────────────────────────────────────────


class TestRiskLadder:
    def test_buy_ladder(self):
        ladder = calculate_risk_ladder(2000.0, "BUY", atr=10.0)
        assert ladder.sl == pytest.approx(1985.0)
        assert (ladder.tp1, ladder.tp2, ladder.tp3) == pytest.approx((2030.0, 2045.0, 2060.0))
        assert (ladder.rr1, ladder.rr2, ladder.rr3) == pytest.approx((2.0, 3.0, 4.0))
        assert ladder.pips.sl == pytest.approx(150.0)
        assert ladder.pips.tp3 == pytest.approx(600.0)

    def test_sell_ladder(self):
        ladder = calculate_risk_ladder(2000.0, "SELL", atr=10.0)
        assert ladder.sl == pytest.approx(2015.0)
        assert ladder.tp1 == pytest.approx(1970.0)

    def test_zero_atr_has_zero_rr(self):
        ladder = calculate_risk_ladder(2000.0, "BUY", atr=0.0)
        assert ladder.sl == ladder.tp1 == 2000.0
        assert ladder.rr1 == 0.0

    def test_invalid_direction(self):
        with pytest.raises(ValueError, match="direction"):
            calculate_risk_ladder(2000.0, "HOLD", atr=10.0)

    def test_risk_reward(self):
        assert risk_reward(2000, 1990, 2030) == pytest.approx(3.0)
        assert risk_reward(2000, 2000, 2030) == 0.0


# ── Primary builder ──────────────────────────────────────────────────────


class TestPrimarySignal:
    def test_oversold_buys(self):
        signal = _build(rsi=25)
        assert signal.action == "BUY"
        assert signal.confidence == 73  # 65 + 0.2 × 40
        assert signal.entry == 2000
        assert signal.stop_loss == pytest.approx(1985.0)
        assert signal.tp3 == pytest.approx(2060.0)
        assert signal.entry_zone == pytest.approx((1995.0, 2005.0))
        assert signal.invalidation == "Price below $1985.00"

    def test_overbought_sells(self):
        signal = _build(rsi=75)
        assert signal.action == "SELL"
        assert signal.confidence == 73
        assert signal.stop_loss == pytest.approx(2015.0)
        assert signal.invalidation == "Price above $2015.00"

    def test_recovering_rsi_with_bullish_macd(self):
        signal = _build(rsi=35, histogram=1.0)
        assert signal.action == "BUY"
        assert signal.confidence == 68

    def test_recovering_rsi_needs_macd_agreement(self):
        signal = _build(rsi=35, histogram=-1.0)
        assert signal.action == "WAIT"
        assert signal.confidence == 58  # base 50 + regime 8

    def test_falling_rsi_with_bearish_macd(self):
        signal = _build(rsi=65, histogram=-1.0)
        assert signal.action == "SELL"
        assert signal.confidence == 68

    def test_regime_bias_fallback(self):
        signal = _build(rsi=50, bias="BULLISH", strength=70)
        assert signal.action == "BUY"
        assert signal.confidence == 69  # 55 + 14
        assert signal.regime_score == 70

    def test_regime_bias_needs_rsi_room(self):
        assert _build(rsi=56, bias="BULLISH").action == "WAIT"
        assert _build(rsi=44, bias="BEARISH").action == "WAIT"

    def test_aligned_zones_add_confidence(self):
        plain = _build(rsi=25)
        with_ob = _build(rsi=25, obs=[_ob("BULLISH", "MODERATE")])
        assert plain.confidence == 73
        assert with_ob.confidence == 82  # 70 + 8 + 4.5, rounded half-even
        assert with_ob.pattern_score == 15

    def test_confluence_is_capped(self):
        signal = _build(
            rsi=25,
            obs=[_ob("BULLISH")],
            fvgs=[_fvg("BULLISH")],
            srs=[_sr("SUPPORT"), _sr("SUPPORT")],
        )
        assert signal.pattern_score == 55
        assert signal.confidence == 95

    def test_misaligned_zones_are_ignored(self):
        signal = _build(
            rsi=25,
            obs=[_ob("BEARISH")],
            fvgs=[_fvg("BEARISH")],
            srs=[_sr("RESISTANCE")],
        )
        assert signal.confidence == 73
        assert signal.pattern_score == 0

    def test_wait_carries_display_ladder(self):
        signal = _build(rsi=50)
        assert signal.action == "WAIT"
        assert signal.stop_loss == pytest.approx(2015.0)
        assert signal.session_bias == "NEUTRAL"

    def test_confidence_bounds(self):
        for rsi in (5, 25, 35, 50, 65, 75, 95):
            for hist in (-1.0, 0.0, 1.0):
                signal = _build(rsi=rsi, histogram=hist, obs=[_ob("BULLISH")], srs=[_sr("SUPPORT")] * 4)
                assert 0 <= signal.confidence <= 95


# ── Price-action builder ─────────────────────────────────────────────────


class TestPriceActionSignal:
    def test_flat_market_waits(self):
        signal = generate_price_action_signal(_flat(), 2000.0, atr=0.0)
        assert signal.action == "WAIT"
        assert signal.confidence == 0
        assert signal.stop_loss == signal.take_profit1 == 2000.0
        assert signal.risk_reward == 0
        assert signal.chart_pattern is None

    def test_empty_input_waits(self):
        signal = generate_price_action_signal([], 2000.0, atr=15.0)
        assert signal.action == "WAIT"
        assert signal.wick_analysis.sentiment == "NEUTRAL"

    def test_bullish_pin_bar_buys(self):
        candles = _quiet(2) + [_make_candle(2, 2008, 2010, 1990, 2009)]
        signal = generate_price_action_signal(candles, 2009.0, atr=10.0)
        assert signal.action == "BUY"
        assert signal.confidence == 95  # pin bar 80 × 1.5 + wick 100, capped
        assert signal.stop_loss == pytest.approx(1994.0)
        assert signal.take_profit1 == pytest.approx(2029.0)
        assert signal.take_profit2 == pytest.approx(2044.0)
        assert signal.risk_reward == pytest.approx(20 / 15)
        assert any("wick rejection" in c for c in signal.confluences)

    def test_bearish_pin_bar_sells(self):
        candles = _quiet(2) + [_make_candle(2, 2002, 2020, 2000, 2001)]
        signal = generate_price_action_signal(candles, 2001.0, atr=10.0)
        assert signal.action == "SELL"
        assert signal.stop_loss == pytest.approx(2016.0)

    def test_neutral_patterns_do_not_trade(self):
        candles = _quiet(2) + [_make_candle(2, 2000, 2005, 1995, 2000.5)]
        signal = generate_price_action_signal(candles, 2000.5, atr=10.0)
        assert signal.action == "WAIT"
        assert [p.name for p in signal.patterns] == ["Doji"]
