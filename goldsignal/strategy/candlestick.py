"""Candlestick pattern detection and wick analysis — pure functions.

Each sub-detector is a body/wick ratio test on one to three bars and
returns ``None`` or a ``(name, direction, strength, confidence,
description)`` tuple; ``detect_candlestick_patterns`` slides them over
the trailing window and stamps index and time.
"""

from typing import Optional

from goldsignal.strategy.models import CandleData, CandlestickPattern, WickAnalysis


_Hit = tuple[str, str, str, float, str]


def _parts(c: CandleData) -> tuple[float, float, float, float]:
    """Return ``(body, upper_wick, lower_wick, range)`` of a bar."""
    body = abs(c.close - c.open)
    upper = c.high - max(c.open, c.close)
    lower = min(c.open, c.close) - c.low
    return body, upper, lower, c.high - c.low


def _engulfing_tier(ratio: float) -> str:
    if ratio > 2:
        return "STRONG"
    if ratio > 1.5:
        return "MODERATE"
    return "WEAK"


def _bullish_engulfing(prev: CandleData, curr: CandleData) -> Optional[_Hit]:
    if not (prev.close < prev.open and curr.close > curr.open):
        return None
    if not (curr.open <= prev.close and curr.close >= prev.open):
        return None
    ratio = abs(curr.close - curr.open) / abs(prev.close - prev.open)
    tier = _engulfing_tier(ratio)
    return (
        "Bullish Engulfing", "BULLISH", tier, min(95.0, 60 + ratio * 15),
        f"Bullish reversal, {tier.lower()} engulfment",
    )


def _bearish_engulfing(prev: CandleData, curr: CandleData) -> Optional[_Hit]:
    if not (prev.close > prev.open and curr.close < curr.open):
        return None
    if not (curr.open >= prev.close and curr.close <= prev.open):
        return None
    ratio = abs(curr.close - curr.open) / abs(prev.close - prev.open)
    tier = _engulfing_tier(ratio)
    return (
        "Bearish Engulfing", "BEARISH", tier, min(95.0, 60 + ratio * 15),
        f"Bearish reversal, {tier.lower()} engulfment",
    )


def _hammer(c: CandleData) -> Optional[_Hit]:
    body, upper, lower, rng = _parts(c)
    if lower > body * 2 and upper < body * 0.5 and body > rng * 0.2:
        tier = "STRONG" if lower > body * 3 else "MODERATE"
        return (
            "Hammer", "BULLISH", tier, min(85.0, 65 + (lower / body) * 5),
            "Bullish reversal, lower wick rejection",
        )
    return None


def _shooting_star(c: CandleData) -> Optional[_Hit]:
    body, upper, lower, rng = _parts(c)
    if upper > body * 2 and lower < body * 0.5 and body > rng * 0.2:
        tier = "STRONG" if upper > body * 3 else "MODERATE"
        return (
            "Shooting Star", "BEARISH", tier, min(85.0, 65 + (upper / body) * 5),
            "Bearish reversal, upper wick rejection",
        )
    return None


def _doji(c: CandleData) -> Optional[_Hit]:
    body, _, _, rng = _parts(c)
    if rng > 0 and body < rng * 0.1:
        return (
            "Doji", "NEUTRAL", "MODERATE", 70.0,
            "Market indecision, potential reversal zone",
        )
    return None


def _morning_star(
    first: CandleData, second: CandleData, third: CandleData,
) -> Optional[_Hit]:
    small_middle = abs(second.close - second.open) < abs(first.close - first.open) * 0.5
    if (
        first.close < first.open
        and small_middle
        and third.close > third.open
        and third.close > (first.open + first.close) / 2
    ):
        tier = "STRONG" if third.close > first.open else "MODERATE"
        return (
            "Morning Star", "BULLISH", tier, 85.0,
            "Three-bar bullish reversal",
        )
    return None


def _evening_star(
    first: CandleData, second: CandleData, third: CandleData,
) -> Optional[_Hit]:
    small_middle = abs(second.close - second.open) < abs(first.close - first.open) * 0.5
    if (
        first.close > first.open
        and small_middle
        and third.close < third.open
        and third.close < (first.open + first.close) / 2
    ):
        tier = "STRONG" if third.close < first.open else "MODERATE"
        return (
            "Evening Star", "BEARISH", tier, 85.0,
            "Three-bar bearish reversal",
        )
    return None


def _pin_bar(c: CandleData) -> Optional[_Hit]:
    body, upper, lower, rng = _parts(c)
    if rng <= 0 or body >= rng * 0.3:
        return None
    if lower > rng * 0.6:
        return (
            "Pin Bar (Bullish)", "BULLISH", "STRONG", 80.0,
            "Bullish pin bar, rejection from lows",
        )
    if upper > rng * 0.6:
        return (
            "Pin Bar (Bearish)", "BEARISH", "STRONG", 80.0,
            "Bearish pin bar, rejection from highs",
        )
    return None


def detect_candlestick_patterns(
    candles: list[CandleData], lookback: int = 10,
) -> list[CandlestickPattern]:
    """Scan the trailing *lookback* bars for candlestick patterns.

    Args:
        candles: Candle history, oldest-first.
        lookback: Number of trailing bars on which a pattern may end.

    Returns:
        ``CandlestickPattern`` objects ordered by the bar they end on.
        At most one observation per pattern type per bar.  Fewer than 3
        candles returns an empty list.
    """
    if len(candles) < 3:
        return []

    patterns: list[CandlestickPattern] = []
    for i in range(max(2, len(candles) - lookback), len(candles)):
        first, prev, curr = candles[i - 2], candles[i - 1], candles[i]
        hits = (
            _bullish_engulfing(prev, curr),
            _bearish_engulfing(prev, curr),
            _hammer(curr),
            _shooting_star(curr),
            _doji(curr),
            _morning_star(first, prev, curr),
            _evening_star(first, prev, curr),
            _pin_bar(curr),
        )
        for hit in hits:
            if hit is None:
                continue
            name, direction, strength, confidence, description = hit
            patterns.append(
                CandlestickPattern(
                    name=name,
                    direction=direction,
                    strength=strength,
                    confidence=confidence,
                    index=i,
                    time=curr.time,
                    description=description,
                )
            )
    return patterns


def analyze_wicks(candle: CandleData) -> WickAnalysis:
    """Measure wick and body proportions of a single bar.

    A rejection is recorded when one wick exceeds half the bar's range
    while the opposite wick stays under 20%.  Without a rejection, a body
    covering more than 60% of the range gives the bar a directional
    sentiment.  A zero-range bar is neutral with zero significance.
    """
    body, upper, lower, rng = _parts(candle)
    upper_ratio = upper / rng if rng > 0 else 0.0
    lower_ratio = lower / rng if rng > 0 else 0.0
    body_ratio = body / rng if rng > 0 else 0.0

    sentiment = "NEUTRAL"
    rejection = "none"
    significance = 0.0

    if lower_ratio > 0.5 and upper_ratio < 0.2:
        sentiment, rejection = "BULLISH", "lower"
        significance = min(100.0, lower_ratio * 150)
    elif upper_ratio > 0.5 and lower_ratio < 0.2:
        sentiment, rejection = "BEARISH", "upper"
        significance = min(100.0, upper_ratio * 150)
    elif candle.close > candle.open and body_ratio > 0.6:
        sentiment = "BULLISH"
        significance = body_ratio * 70
    elif candle.close < candle.open and body_ratio > 0.6:
        sentiment = "BEARISH"
        significance = body_ratio * 70

    return WickAnalysis(
        upper_wick_ratio=upper_ratio,
        lower_wick_ratio=lower_ratio,
        body_ratio=body_ratio,
        sentiment=sentiment,
        rejection_type=rejection,
        significance=significance,
    )
