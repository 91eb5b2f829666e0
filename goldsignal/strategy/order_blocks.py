"""Order block detection — pure functions.

An order block is the body range of two same-direction setup bars that
were immediately reversed by an opposite impulse bar.  Two bearish bars
followed by a bullish impulse mark a BULLISH block (and vice versa).
"""

from dataclasses import replace

from goldsignal.strategy.models import CandleData, OrderBlock, ZoneStrength


def _body(candle: CandleData) -> float:
    return abs(candle.close - candle.open)


def _impulse_strength(
    first: CandleData,
    second: CandleData,
    impulse: CandleData,
    strong_ratio: float = 2.5,
    moderate_ratio: float = 1.5,
) -> ZoneStrength:
    """Tier the block by impulse body ÷ combined setup bodies."""
    setup = _body(first) + _body(second)
    if setup <= 0:
        return "WEAK"
    ratio = _body(impulse) / setup
    if ratio > strong_ratio:
        return "STRONG"
    if ratio > moderate_ratio:
        return "MODERATE"
    return "WEAK"


def _make_block(
    kind: str, index: int, first: CandleData, second: CandleData, impulse: CandleData,
) -> OrderBlock:
    bodies = (first.open, first.close, second.open, second.close)
    return OrderBlock(
        id=f"OB_{'BULL' if kind == 'BULLISH' else 'BEAR'}_{index}",
        type=kind,
        top=max(bodies),
        bottom=min(bodies),
        body_top=max(first.open, first.close),
        body_bottom=min(first.open, first.close),
        time=second.time,
        strength=_impulse_strength(first, second, impulse),
    )


def _with_latest_bar(block: OrderBlock, latest: CandleData) -> OrderBlock:
    """Mark touches and breaks caused by the latest bar."""
    touched = block.touched
    broken = block.broken
    if block.type == "BULLISH":
        if latest.low <= block.bottom and latest.close > block.bottom:
            touched = 1
        if latest.close < block.bottom:
            broken = True
    else:
        if latest.high >= block.top and latest.close < block.top:
            touched = 1
        if latest.close > block.top:
            broken = True
    return replace(block, touched=touched, broken=broken)


def detect_order_blocks(
    candles: list[CandleData], keep: int = 8,
) -> list[OrderBlock]:
    """Detect active order blocks.

    Args:
        candles: Candle history, oldest-first.
        keep: Number of most recent blocks retained before dropping
            broken ones.

    Returns:
        Active (unbroken) ``OrderBlock`` objects, oldest-first.  Fewer
        than 3 candles returns an empty list.
    """
    if len(candles) < 3:
        return []

    blocks: list[OrderBlock] = []
    for i in range(1, len(candles) - 1):
        first, second, impulse = candles[i - 1], candles[i], candles[i + 1]

        bearish_setup = first.close < first.open and second.close < second.open
        bullish_setup = first.close > first.open and second.close > second.open

        if bearish_setup and impulse.close > impulse.open:
            blocks.append(_make_block("BULLISH", i, first, second, impulse))
        elif bullish_setup and impulse.close < impulse.open:
            blocks.append(_make_block("BEARISH", i, first, second, impulse))

    latest = candles[-1]
    recent = [_with_latest_bar(b, latest) for b in blocks[-keep:]]
    return [b for b in recent if not b.broken]
