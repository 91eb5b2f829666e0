"""Market phase (AMD regime) classification — pure functions.

Classifies the recent candle window as accumulation, distribution,
manipulation, decline or transition, and derives a directional bias
from the close's position in the session range confirmed by EMA(20)
vs EMA(50) ordering.
"""

from typing import Optional

from goldsignal.strategy.indicators import calculate_ema
from goldsignal.strategy.models import CandleData, Direction, MarketPhase


_DESCRIPTIONS = {
    "ACCUMULATION": "Price consolidating near session lows, potential accumulation phase",
    "DISTRIBUTION": "Price distributing near session highs, potential distribution phase",
    "MANIPULATION": "Recent liquidity sweep detected, awaiting structure confirmation",
    "DECLINE": "Clear bearish structure, downtrend in progress",
    "TRANSITION": "Market in transition, awaiting clear directional bias",
}


def _has_wick_spike(candles: list[CandleData], lookback: int = 10) -> bool:
    """True when a recent bar shows an upper wick > 2× body closing below the wick midpoint."""
    recent = candles[-lookback:]
    for c in recent[2:]:
        upper_wick = c.high - max(c.open, c.close)
        body = abs(c.close - c.open)
        if upper_wick > 0 and upper_wick > body * 2 and c.close < c.high - upper_wick * 0.5:
            return True
    return False


def _is_declining(
    candles: list[CandleData], lookback: int = 20, threshold: float = 0.6,
) -> bool:
    """True when more than *threshold* of transitions print lower highs and lower lows."""
    recent = candles[-lookback:]
    transitions = len(recent) - 1
    if transitions < 1:
        return False

    lower_highs = sum(
        1 for i in range(1, len(recent)) if recent[i].high < recent[i - 1].high
    )
    lower_lows = sum(
        1 for i in range(1, len(recent)) if recent[i].low < recent[i - 1].low
    )
    return (
        lower_highs / transitions > threshold
        and lower_lows / transitions > threshold
    )


def _half_ranges(
    candles: list[CandleData], lookback: int = 50,
) -> tuple[Optional[tuple[float, float]], Optional[tuple[float, float]]]:
    """(high, low) of the first and second halves of the recent window."""
    recent = candles[-lookback:]
    mid = len(recent) // 2
    if mid == 0:
        return None, None
    first, second = recent[:mid], recent[mid:]
    return (
        (max(c.high for c in first), min(c.low for c in first)),
        (max(c.high for c in second), min(c.low for c in second)),
    )


def _ema_confirmed_bias(
    candles: list[CandleData], bias: Direction, fast: int = 20, slow: int = 50,
) -> Direction:
    """Confirm or neutralise *bias* using EMA(fast) vs EMA(slow) ordering.

    Fewer than *slow* candles or equal EMAs leave the bias unchanged.
    """
    if len(candles) < slow:
        return bias

    ema_fast = calculate_ema(candles, fast)[-1]
    ema_slow = calculate_ema(candles, slow)[-1]

    if ema_fast > ema_slow:
        return "NEUTRAL" if bias == "BEARISH" else "BULLISH"
    if ema_fast < ema_slow:
        return "NEUTRAL" if bias == "BULLISH" else "BEARISH"
    return bias


def detect_market_phase(
    candles: list[CandleData],
    interval: str = "1h",
    session_bars: int = 20,
    recent_bars: int = 50,
    low_position: float = 0.35,
    high_position: float = 0.65,
    max_expansion: float = 0.5,
    decline_threshold: float = 0.6,
) -> MarketPhase:
    """Classify the current market regime.

    Args:
        candles: Candle history, oldest-first.
        interval: Interval label of the series (reported in the description).
        session_bars: Bars forming the session range.
        recent_bars: Bars forming the broader recent range.
        low_position: Position below which a contracted range reads as accumulation.
        high_position: Position above which a contracted range reads as distribution.
        max_expansion: Session/recent range ratio under which the range is contracted.
        decline_threshold: Fraction of lower highs and lower lows marking a decline.

    Returns:
        ``MarketPhase``.  Degenerate input (no candles, zero-width session
        or recent range) returns TRANSITION with a NEUTRAL bias.
    """
    if not candles:
        return MarketPhase(
            phase="TRANSITION",
            bias="NEUTRAL",
            session_high=0.0,
            session_low=0.0,
            strength=40.0,
            description=_DESCRIPTIONS["TRANSITION"],
            manipulation="Monitoring for liquidity sweeps",
        )

    session = candles[-session_bars:]
    recent = candles[-recent_bars:]
    session_high = max(c.high for c in session)
    session_low = min(c.low for c in session)
    recent_high = max(c.high for c in recent)
    recent_low = min(c.low for c in recent)
    first_half, second_half = _half_ranges(candles, recent_bars)

    session_range = session_high - session_low
    recent_range = recent_high - recent_low

    def _result(phase, bias, strength) -> MarketPhase:
        return MarketPhase(
            phase=phase,
            bias=bias,
            session_high=session_high,
            session_low=session_low,
            strength=strength,
            description=f"{_DESCRIPTIONS[phase]} ({interval})",
            manipulation=(
                "Liquidity sweep detected, await return to fair value"
                if phase == "MANIPULATION"
                else "Monitoring for liquidity sweeps"
            ),
            asia_high=first_half[0] if first_half else None,
            asia_low=first_half[1] if first_half else None,
            london_high=second_half[0] if second_half else None,
            london_low=second_half[1] if second_half else None,
        )

    if session_range <= 0 or recent_range <= 0:
        return _result("TRANSITION", "NEUTRAL", 40.0)

    position = (candles[-1].close - session_low) / session_range
    expansion = session_range / recent_range

    if position < low_position and expansion < max_expansion:
        phase, strength = "ACCUMULATION", 70.0
    elif position > high_position and expansion < max_expansion:
        phase, strength = "DISTRIBUTION", 70.0
    elif _has_wick_spike(candles):
        phase, strength = "MANIPULATION", 60.0
    elif _is_declining(candles, session_bars, decline_threshold):
        phase, strength = "DECLINE", 75.0
    else:
        phase, strength = "TRANSITION", 40.0

    bias: Direction = "NEUTRAL"
    if position > 0.6:
        bias = "BEARISH"
    elif position < 0.4:
        bias = "BULLISH"
    bias = _ema_confirmed_bias(candles, bias, slow=recent_bars)

    return _result(phase, bias, strength)
