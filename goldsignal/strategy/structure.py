"""Market structure observations — CHoCH, BOS, long wicks and dojis."""

from typing import Optional

from goldsignal.strategy.models import CandleData, Direction, StructureEvent


def _change_of_character(window: list[CandleData]) -> Optional[Direction]:
    """Direction in which the second half broke the first half's range, if any."""
    if len(window) < 10:
        return None
    mid = len(window) // 2
    first_high = max(c.high for c in window[:mid])
    first_low = min(c.low for c in window[:mid])
    if min(c.low for c in window[mid:]) < first_low:
        return "BEARISH"
    if max(c.high for c in window[mid:]) > first_high:
        return "BULLISH"
    return None


def _break_of_structure(
    window: list[CandleData],
) -> Optional[tuple[Direction, float]]:
    """Last 3 bars breaking the extreme of the 2 bars before them."""
    if len(window) < 5:
        return None
    recent, prior = window[-3:], window[-5:-3]
    recent_high = max(c.high for c in recent)
    recent_low = min(c.low for c in recent)
    if recent_high > max(c.high for c in prior):
        return "BULLISH", recent_high
    if recent_low < min(c.low for c in prior):
        return "BEARISH", recent_low
    return None


def detect_structure_events(
    candles: list[CandleData], lookback: int = 10, keep: int = 5,
) -> list[StructureEvent]:
    """Scan the trailing *lookback* bars for structure observations.

    Returns:
        The last *keep* ``StructureEvent`` objects, oldest-first.
    """
    offset = max(0, len(candles) - lookback)
    recent = candles[offset:]
    events: list[StructureEvent] = []

    for i in range(2, len(recent)):
        curr = recent[i]
        index = offset + i
        window = recent[: i + 1]

        choch = _change_of_character(window)
        if choch is not None:
            events.append(StructureEvent(
                type="CHoCH", direction=choch, confidence=70.0, price=curr.close,
                index=index,
                description="Change of character, market structure shift",
            ))

        bos = _break_of_structure(window)
        if bos is not None:
            direction, price = bos
            events.append(StructureEvent(
                type="BOS", direction=direction, confidence=75.0, price=price,
                index=index,
                description=f"Break of structure to the {direction.lower()}",
            ))

        body = abs(curr.close - curr.open)
        upper = curr.high - max(curr.open, curr.close)
        lower = min(curr.open, curr.close) - curr.low
        if upper > body * 2:
            events.append(StructureEvent(
                type="LONG_WICK", direction="BEARISH", confidence=60.0,
                price=curr.high, index=index,
                description="Long upper wick, potential rejection",
            ))
        if lower > body * 2:
            events.append(StructureEvent(
                type="LONG_WICK", direction="BULLISH", confidence=60.0,
                price=curr.low, index=index,
                description="Long lower wick, potential support",
            ))
        if body < (curr.high - curr.low) * 0.1:
            events.append(StructureEvent(
                type="DOJI", direction="NEUTRAL", confidence=50.0,
                price=curr.close, index=index,
                description="Doji candle, indecision",
            ))

    return events[-keep:]
