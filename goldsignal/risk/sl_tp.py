"""Stop-loss and take-profit ladder calculation — pure math, no I/O.

The stop sits a fixed ATR multiple from entry; each target is a multiple
of that stop distance in the profit direction.  Distances are also
expressed in gold pips (one pip = $0.10).
"""

from dataclasses import dataclass

from goldsignal.strategy.models import PipDistances


PIPS_PER_DOLLAR = 10.0


@dataclass(frozen=True)
class RiskLadder:
    """Computed stop-loss, three take-profits and their R:R ratios."""
    sl: float
    tp1: float
    tp2: float
    tp3: float
    rr1: float
    rr2: float
    rr3: float
    pips: PipDistances


def risk_reward(entry: float, stop: float, target: float) -> float:
    """``|target − entry| / |entry − stop|``; 0 when the stop distance is 0."""
    risk = abs(entry - stop)
    if risk == 0:
        return 0.0
    return abs(target - entry) / risk


def calculate_risk_ladder(
    entry_price: float,
    direction: str,
    atr: float,
    sl_atr_mult: float = 1.5,
    tp_multiples: tuple[float, float, float] = (2.0, 3.0, 4.0),
) -> RiskLadder:
    """Calculate the SL/TP ladder for a trade.

    - **BUY**:  SL = entry − d, TPn = entry + multiple_n × d
    - **SELL**: SL = entry + d, TPn = entry − multiple_n × d

    where ``d = sl_atr_mult × ATR``.

    Args:
        entry_price: Trade entry price.
        direction: ``"BUY"`` or ``"SELL"``.
        atr: Current ATR(14) value.
        sl_atr_mult: Stop distance as a multiple of ATR (default 1.5).
        tp_multiples: Target distances as multiples of the stop distance.

    Returns:
        ``RiskLadder``.

    Raises:
        ValueError: If *direction* is not ``"BUY"`` or ``"SELL"``.
    """
    if direction == "BUY":
        sign = 1.0
    elif direction == "SELL":
        sign = -1.0
    else:
        raise ValueError(f"direction must be 'BUY' or 'SELL', got '{direction}'")

    sl_dist = sl_atr_mult * atr
    sl = entry_price - sign * sl_dist
    tp1, tp2, tp3 = (entry_price + sign * sl_dist * m for m in tp_multiples)

    return RiskLadder(
        sl=sl,
        tp1=tp1,
        tp2=tp2,
        tp3=tp3,
        rr1=risk_reward(entry_price, sl, tp1),
        rr2=risk_reward(entry_price, sl, tp2),
        rr3=risk_reward(entry_price, sl, tp3),
        pips=PipDistances(
            sl=abs(entry_price - sl) * PIPS_PER_DOLLAR,
            tp1=abs(tp1 - entry_price) * PIPS_PER_DOLLAR,
            tp2=abs(tp2 - entry_price) * PIPS_PER_DOLLAR,
            tp3=abs(tp3 - entry_price) * PIPS_PER_DOLLAR,
        ),
    )
