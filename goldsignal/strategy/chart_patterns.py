"""Chart pattern detection — triangles, wedges and flags. Pure functions."""

from typing import Optional

from goldsignal.strategy.models import CandleData, ChartPattern


def _half_ranges(window: list[CandleData]) -> tuple[float, float]:
    """High-low range of the first and second halves of *window*."""
    mid = len(window) // 2
    first, second = window[:mid], window[mid:]
    return (
        max(c.high for c in first) - min(c.low for c in first),
        max(c.high for c in second) - min(c.low for c in second),
    )


def detect_triangle(
    candles: list[CandleData], window: int = 20, contraction: float = 0.7,
) -> Optional[ChartPattern]:
    """Symmetrical triangle: the second half of the window contracts.

    Direction follows the side of the window's midpoint the last close
    sits on; the target projects the full window range past the breakout.
    """
    if len(candles) < window:
        return None

    recent = candles[-window:]
    first_range, second_range = _half_ranges(recent)
    if not second_range < first_range * contraction:
        return None

    highest = max(c.high for c in recent)
    lowest = min(c.low for c in recent)
    size = highest - lowest
    bullish = recent[-1].close > (highest + lowest) / 2

    return ChartPattern(
        name="Symmetrical Triangle",
        type="continuation",
        direction="BULLISH" if bullish else "BEARISH",
        start_index=len(candles) - window,
        end_index=len(candles) - 1,
        breakout_level=highest if bullish else lowest,
        target_level=highest + size if bullish else lowest - size,
        confidence=75.0,
    )


def detect_wedge(
    candles: list[CandleData], window: int = 20, contraction: float = 0.6,
) -> Optional[ChartPattern]:
    """Rising or falling wedge: contraction against the close-to-close drift.

    A rising wedge breaks down (BEARISH), a falling wedge breaks up.
    """
    if len(candles) < window:
        return None

    recent = candles[-window:]
    first_range, second_range = _half_ranges(recent)
    if not second_range < first_range * contraction:
        return None

    highest = max(c.high for c in recent)
    lowest = min(c.low for c in recent)
    size = highest - lowest
    rising = recent[-1].close > recent[0].close

    return ChartPattern(
        name="Rising Wedge" if rising else "Falling Wedge",
        type="reversal",
        direction="BEARISH" if rising else "BULLISH",
        start_index=len(candles) - window,
        end_index=len(candles) - 1,
        breakout_level=lowest if rising else highest,
        target_level=lowest - size if rising else highest + size,
        confidence=72.0,
    )


def detect_flag(
    candles: list[CandleData],
    flag_bars: int = 15,
    pole_bars: int = 10,
    pole_multiple: float = 5.0,
    max_flag_ratio: float = 0.4,
) -> Optional[ChartPattern]:
    """Bull or bear flag: a strong pole followed by a tight consolidation.

    The pole spans bars ``-25..-15``; it must move at least
    *pole_multiple* × its average body.  The flag (last *flag_bars*
    closes) must range less than *max_flag_ratio* × the pole move.
    """
    if len(candles) < flag_bars + pole_bars:
        return None

    pole = candles[-(flag_bars + pole_bars):-flag_bars]
    flag = [c.close for c in candles[-flag_bars:]]

    pole_start = pole[0].close
    pole_end = pole[-1].close
    pole_move = abs(pole_end - pole_start)
    avg_body = sum(abs(c.close - c.open) for c in pole) / len(pole)

    if pole_move <= 0 or pole_move < avg_body * pole_multiple:
        return None

    flag_range = max(flag) - min(flag)
    if not flag_range < pole_move * max_flag_ratio:
        return None

    bullish = pole_end > pole_start
    return ChartPattern(
        name="Bull Flag" if bullish else "Bear Flag",
        type="continuation",
        direction="BULLISH" if bullish else "BEARISH",
        start_index=len(candles) - flag_bars,
        end_index=len(candles) - 1,
        breakout_level=max(flag) if bullish else min(flag),
        target_level=pole_end + pole_move if bullish else pole_end - pole_move,
        confidence=78.0,
    )


def detect_chart_patterns(candles: list[CandleData]) -> list[ChartPattern]:
    """Run every chart-pattern detector, in triangle, wedge, flag order.

    Fewer than 20 candles returns an empty list.
    """
    if len(candles) < 20:
        return []

    found = (detect_triangle(candles), detect_wedge(candles), detect_flag(candles))
    return [p for p in found if p is not None]
