"""Fair value gap (three-bar imbalance) detection — pure functions."""

from dataclasses import replace

from goldsignal.strategy.models import CandleData, FairValueGap


def _is_mitigated(gap: FairValueGap, later: list[CandleData]) -> bool:
    """A gap is mitigated once any later wick crosses its midpoint."""
    if gap.type == "BULLISH":
        return any(c.low < gap.midpoint for c in later)
    return any(c.high > gap.midpoint for c in later)


def detect_fair_value_gaps(
    candles: list[CandleData], keep: int = 5,
) -> list[FairValueGap]:
    """Detect unmitigated fair value gaps.

    A bullish gap exists where ``bar1.high < bar3.low`` and spans
    ``[bar1.high, bar3.low]``; a bearish gap exists where
    ``bar1.low > bar3.high`` and spans ``[bar3.high, bar1.low]``.

    Args:
        candles: Candle history, oldest-first.
        keep: Number of most recent gaps retained before dropping
            mitigated ones.

    Returns:
        Unmitigated ``FairValueGap`` objects, oldest-first.  The result
        depends only on *candles*, so repeated calls agree.
    """
    if len(candles) < 3:
        return []

    gaps: list[FairValueGap] = []
    for i in range(1, len(candles) - 1):
        prev, curr, nxt = candles[i - 1], candles[i], candles[i + 1]
        later = candles[i + 2:]

        if prev.high < nxt.low:
            gap = FairValueGap(
                id=f"FVG_BULL_{i}",
                type="BULLISH",
                top=nxt.low,
                bottom=prev.high,
                size=nxt.low - prev.high,
                midpoint=(nxt.low + prev.high) / 2,
                time=curr.time,
            )
        elif prev.low > nxt.high:
            gap = FairValueGap(
                id=f"FVG_BEAR_{i}",
                type="BEARISH",
                top=prev.low,
                bottom=nxt.high,
                size=prev.low - nxt.high,
                midpoint=(prev.low + nxt.high) / 2,
                time=curr.time,
            )
        else:
            continue

        gaps.append(replace(gap, mitigated=_is_mitigated(gap, later)))

    return [g for g in gaps[-keep:] if not g.mitigated]
