"""Secondary (price-action) signal builder — pure functions, no I/O.

Scores candlestick patterns ending on the last three bars, wick
rejection of the latest bar and the first detected chart pattern into
bullish and bearish totals.  The winning side becomes the action when
it clears ``min_score``.
"""

from goldsignal.risk.sl_tp import risk_reward
from goldsignal.strategy.candlestick import analyze_wicks, detect_candlestick_patterns
from goldsignal.strategy.chart_patterns import detect_chart_patterns
from goldsignal.strategy.models import CandleData, PriceActionSignal, WickAnalysis


_NO_WICKS = WickAnalysis(
    upper_wick_ratio=0.0,
    lower_wick_ratio=0.0,
    body_ratio=0.0,
    sentiment="NEUTRAL",
    rejection_type="none",
    significance=0.0,
)


def generate_price_action_signal(
    candles: list[CandleData],
    current_price: float,
    atr: float,
    recent_bars: int = 3,
    strong_weight: float = 1.5,
    min_wick_significance: float = 60.0,
    min_score: float = 65.0,
    sl_atr_mult: float = 1.5,
    tp1_atr_mult: float = 2.0,
    tp2_atr_mult: float = 3.5,
) -> PriceActionSignal:
    """Build the price-action signal.

    Args:
        candles: Candle history, oldest-first.
        current_price: Reference price used as entry.
        atr: Current ATR(14) value.
        recent_bars: Candlestick patterns must end on one of these bars.
        strong_weight: Score multiplier for STRONG patterns.
        min_wick_significance: Wick analysis counts above this value.
        min_score: Winning score must exceed this to trade.
        sl_atr_mult: Stop distance as a multiple of ATR.
        tp1_atr_mult: First target as a multiple of ATR.
        tp2_atr_mult: Second target as a multiple of ATR.

    Returns:
        ``PriceActionSignal``.  WAIT signals carry zero confidence and
        levels equal to *current_price*.
    """
    patterns = [
        p for p in detect_candlestick_patterns(candles)
        if p.index >= len(candles) - recent_bars
    ]
    chart_patterns = detect_chart_patterns(candles)
    chart_pattern = chart_patterns[0] if chart_patterns else None
    wicks = analyze_wicks(candles[-1]) if candles else _NO_WICKS

    bullish = 0.0
    bearish = 0.0
    confluences: list[str] = []

    for p in patterns:
        if p.direction == "NEUTRAL":
            continue
        score = p.confidence * (strong_weight if p.strength == "STRONG" else 1.0)
        if p.direction == "BULLISH":
            bullish += score
        else:
            bearish += score
        confluences.append(f"{p.name} ({p.confidence:.0f}%)")

    if wicks.significance > min_wick_significance:
        if wicks.sentiment == "BULLISH":
            bullish += wicks.significance
            confluences.append(f"Bullish wick rejection ({wicks.significance:.0f}%)")
        elif wicks.sentiment == "BEARISH":
            bearish += wicks.significance
            confluences.append(f"Bearish wick rejection ({wicks.significance:.0f}%)")

    if chart_pattern is not None:
        if chart_pattern.direction == "BULLISH":
            bullish += chart_pattern.confidence
            confluences.append(f"{chart_pattern.name} breakout")
        else:
            bearish += chart_pattern.confidence
            confluences.append(f"{chart_pattern.name} breakdown")

    action = "WAIT"
    confidence = 0.0
    stop_loss = tp1 = tp2 = current_price

    if bullish > bearish and bullish > min_score:
        action = "BUY"
        confidence = min(95.0, bullish)
        stop_loss = current_price - atr * sl_atr_mult
        tp1 = current_price + atr * tp1_atr_mult
        tp2 = current_price + atr * tp2_atr_mult
    elif bearish > bullish and bearish > min_score:
        action = "SELL"
        confidence = min(95.0, bearish)
        stop_loss = current_price + atr * sl_atr_mult
        tp1 = current_price - atr * tp1_atr_mult
        tp2 = current_price - atr * tp2_atr_mult

    return PriceActionSignal(
        action=action,
        confidence=confidence,
        entry=current_price,
        stop_loss=stop_loss,
        take_profit1=tp1,
        take_profit2=tp2,
        risk_reward=risk_reward(current_price, stop_loss, tp1),
        patterns=tuple(patterns),
        chart_pattern=chart_pattern,
        wick_analysis=wicks,
        confluences=tuple(confluences),
    )
