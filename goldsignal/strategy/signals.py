"""Primary signal builder — pure functions, no I/O.

Combines the oscillator and momentum readings, the market phase and the
structural zone detectors into a first ``GoldSignal``.

Decision order (first applicable branch sets the action):

1. RSI extremes: < 30 → BUY, > 70 → SELL (base 65).
2. RSI recovering with MACD histogram agreement:
   30 ≤ RSI < 40 and histogram > 0 → BUY; 60 < RSI ≤ 70 and
   histogram < 0 → SELL (base 60).
3. Still WAIT: adopt the phase bias when RSI sits on its favourable
   side (BULLISH and RSI < 55, BEARISH and RSI > 45) (base 55).

Zones aligned with the chosen action then add confidence; they never
change the action.
"""

from goldsignal.risk.sl_tp import calculate_risk_ladder
from goldsignal.strategy.indicators import IndicatorBundle
from goldsignal.strategy.models import (
    CandleData,
    FairValueGap,
    GoldSignal,
    MarketPhase,
    OrderBlock,
    SRLevel,
)


MAX_CONFIDENCE = 95.0
DEFAULT_BASE_CONFIDENCE = 50.0


def _aligned(action: str, zone_type: str) -> bool:
    """True when a zone of *zone_type* supports *action*."""
    if action == "BUY":
        return zone_type in ("BULLISH", "SUPPORT")
    if action == "SELL":
        return zone_type in ("BEARISH", "RESISTANCE")
    return False


def build_signal(
    candles: list[CandleData],
    indicators: IndicatorBundle,
    phase: MarketPhase,
    order_blocks: list[OrderBlock],
    fvgs: list[FairValueGap],
    sr_levels: list[SRLevel],
    sl_atr_mult: float = 1.5,
    tp_multiples: tuple[float, float, float] = (2.0, 3.0, 4.0),
) -> GoldSignal:
    """Build the primary signal from indicators, regime and zones.

    Args:
        candles: Candle history, oldest-first (at least one bar).
        indicators: Latest indicator snapshot.
        phase: Market phase classification.
        order_blocks: Active order blocks.
        fvgs: Unmitigated fair value gaps.
        sr_levels: Active support/resistance levels.
        sl_atr_mult: Stop distance as a multiple of ATR.
        tp_multiples: Targets as multiples of the stop distance.

    Returns:
        ``GoldSignal``.  A WAIT signal still carries a level ladder around
        the last close for display; it has no trading meaning.
    """
    price = candles[-1].close
    rsi = indicators.rsi
    histogram = indicators.macd.histogram
    atr = indicators.atr

    action = "WAIT"
    base = DEFAULT_BASE_CONFIDENCE
    confluences: list[str] = []

    # ── Oscillator ──
    if rsi < 30:
        action, base = "BUY", 65.0
        confluences.append("RSI oversold (<30), bullish reversal opportunity")
    elif rsi > 70:
        action, base = "SELL", 65.0
        confluences.append("RSI overbought (>70), bearish reversal risk")
    elif 30 <= rsi < 40 and histogram > 0:
        action, base = "BUY", 60.0
        confluences.append("RSI recovering from oversold with bullish MACD")
    elif 60 < rsi <= 70 and histogram < 0:
        action, base = "SELL", 60.0
        confluences.append("RSI declining from overbought with bearish MACD")

    # ── Regime bias ──
    if action == "WAIT":
        if phase.bias == "BULLISH" and rsi < 55:
            action, base = "BUY", 55.0
            confluences.append(f"{phase.phase} phase with bullish bias")
        elif phase.bias == "BEARISH" and rsi > 45:
            action, base = "SELL", 55.0
            confluences.append(f"{phase.phase} phase with bearish bias")

    # ── Zone confluence ──
    pattern_score = 0.0

    aligned_obs = [ob for ob in order_blocks if _aligned(action, ob.type)]
    if aligned_obs:
        strong = [ob for ob in aligned_obs if ob.strength == "STRONG"]
        if strong:
            base += 10
            pattern_score += 25
            confluences.append(f"{len(strong)} strong order block(s) aligned")
        else:
            base += 5
            pattern_score += 15
            confluences.append(f"{len(aligned_obs)} order block(s) in zone")

    aligned_fvgs = [g for g in fvgs if _aligned(action, g.type)]
    if aligned_fvgs:
        base += 5
        pattern_score += 10
        confluences.append(f"{len(aligned_fvgs)} FVG(s) providing entry context")

    aligned_sr = [lvl for lvl in sr_levels if _aligned(action, lvl.type)]
    if aligned_sr:
        base += 5 * len(aligned_sr)
        pattern_score += 10 * len(aligned_sr)
        confluences.append(f"{len(aligned_sr)} S/R level(s) supporting direction")

    regime_score = phase.strength
    confidence = base
    confidence += min(regime_score * 0.2, 15.0)
    confidence += min(pattern_score * 0.3, 15.0)
    confidence = float(round(max(0.0, min(confidence, MAX_CONFIDENCE))))

    # ── Levels ──
    ladder = calculate_risk_ladder(
        price,
        "BUY" if action == "BUY" else "SELL",
        atr,
        sl_atr_mult=sl_atr_mult,
        tp_multiples=tp_multiples,
    )
    if action == "BUY":
        invalidation = f"Price below ${ladder.sl:.2f}"
    else:
        invalidation = f"Price above ${ladder.sl:.2f}"

    return GoldSignal(
        action=action,
        confidence=confidence,
        entry=price,
        entry_zone=(price - atr * 0.5, price + atr * 0.5),
        stop_loss=ladder.sl,
        tp1=ladder.tp1,
        tp2=ladder.tp2,
        tp3=ladder.tp3,
        rr1=ladder.rr1,
        rr2=ladder.rr2,
        rr3=ladder.rr3,
        pips=ladder.pips,
        confluences=tuple(confluences),
        invalidation=invalidation,
        session_bias=phase.bias,
        regime_score=regime_score,
        pattern_score=pattern_score,
        overall_score=confidence,
    )
