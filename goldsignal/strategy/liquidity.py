"""Liquidity pool detection — resting stops beyond recent swing points."""

from goldsignal.strategy.models import CandleData, LiquidityZone
from goldsignal.strategy.sr_zones import find_swing_highs, find_swing_lows


def detect_liquidity_zones(
    candles: list[CandleData],
    keep: int = 6,
    swing_window: int = 5,
    decay: float = 10.0,
) -> list[LiquidityZone]:
    """Detect liquidity pools from the most recent swing points.

    Swing highs hold SELL_STOPS above them, swing lows hold BUY_STOPS
    below them.  The newest pool scores 100 and each older rank loses
    *decay* points.  A pool is swept when the latest bar trades through
    its price; swept pools are kept with ``swept=True``.

    Args:
        candles: Candle history, oldest-first.
        keep: Number of most recent swing points turned into pools.
        swing_window: Half-window size for swing detection.
        decay: Strength lost per rank of age.

    Returns:
        ``LiquidityZone`` objects, oldest-first.
    """
    if len(candles) < 2 * swing_window + 1:
        return []

    swings = [
        (i, price, "SELL_STOPS")
        for i, price in find_swing_highs(candles, window=swing_window)
    ] + [
        (i, price, "BUY_STOPS")
        for i, price in find_swing_lows(candles, window=swing_window)
    ]
    swings.sort(key=lambda s: s[0])
    recent = swings[-keep:]

    latest = candles[-1]
    zones: list[LiquidityZone] = []
    for rank, (index, price, kind) in enumerate(reversed(recent)):
        if kind == "SELL_STOPS":
            swept = latest.high > price
        else:
            swept = latest.low < price
        zones.append(
            LiquidityZone(
                id=f"LIQ_{'SELL' if kind == 'SELL_STOPS' else 'BUY'}_{index}",
                type=kind,
                price=price,
                strength=max(0.0, 100.0 - rank * decay),
                swept=swept,
                time=candles[index].time,
            )
        )

    zones.reverse()
    return zones
