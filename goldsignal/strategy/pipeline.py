"""Signal pipeline — the pure entry point tying every detector together.

    candles ─┬─ phase ──────────┐
             ├─ order blocks ───┤
             ├─ FVGs ───────────┼─ primary ─┐
             ├─ S/R levels ─────┘           ├─ fusion ─ modifiers ─ signal
             └─ price action ───────────────┘

No I/O, no clock and no randomness: identical inputs give identical
output.  Missing or unusable inputs degrade to neutral values and never
raise.
"""

import logging
from typing import Optional

from goldsignal.strategy.fusion import combine_signals
from goldsignal.strategy.fvg import detect_fair_value_gaps
from goldsignal.strategy.indicators import IndicatorBundle, compute_indicators
from goldsignal.strategy.liquidity import detect_liquidity_zones
from goldsignal.strategy.models import (
    AnalysisResult,
    CandleData,
    GoldSignal,
    NewsBias,
    NewsRisk,
    PipDistances,
    SpotInsights,
)
from goldsignal.strategy.modifiers import apply_context_modifiers
from goldsignal.strategy.order_blocks import detect_order_blocks
from goldsignal.strategy.phase import detect_market_phase
from goldsignal.strategy.price_action import generate_price_action_signal
from goldsignal.strategy.signals import build_signal
from goldsignal.strategy.sr_zones import detect_sr_levels
from goldsignal.strategy.structure import detect_structure_events

logger = logging.getLogger("goldsignal")


def _no_data_signal(price: float) -> GoldSignal:
    return GoldSignal(
        action="WAIT",
        confidence=0.0,
        entry=price,
        entry_zone=(price, price),
        stop_loss=price,
        tp1=price,
        tp2=price,
        tp3=price,
        rr1=0.0,
        rr2=0.0,
        rr3=0.0,
        pips=PipDistances(sl=0.0, tp1=0.0, tp2=0.0, tp3=0.0),
        confluences=("No candle data available",),
        invalidation="N/A",
        session_bias="NEUTRAL",
    )


def _usable(indicators: Optional[IndicatorBundle], candles: list[CandleData]) -> IndicatorBundle:
    """Return *indicators*, or values computed from *candles* when absent."""
    if indicators is not None:
        return indicators
    logger.debug("No indicators supplied; computing from %d candles", len(candles))
    return compute_indicators(candles)


def analyze_market(
    candles: list[CandleData],
    indicators: Optional[IndicatorBundle] = None,
    news_risk: Optional[NewsRisk] = None,
    news_bias: Optional[NewsBias] = None,
    spot_insights: Optional[SpotInsights] = None,
    interval: str = "1h",
    current_price: Optional[float] = None,
) -> AnalysisResult:
    """Run the full pipeline and return every intermediate output.

    Args:
        candles: Candle history, oldest-first.
        indicators: Latest indicator snapshot; computed from *candles*
            (with neutral fallbacks) when ``None``.
        news_risk: Scheduled-news risk, if known.
        news_bias: Fundamental bias, if known.
        spot_insights: Spread and weekly-range context, if known.
        interval: Candle interval label, used in the phase description.
        current_price: Reference price for the price-action builder;
            defaults to the last close.

    Returns:
        ``AnalysisResult`` whose ``signal`` is the final decision.
    """
    candles = list(candles)
    price = current_price if current_price is not None else (
        candles[-1].close if candles else 0.0
    )
    indicators = _usable(indicators, candles)

    phase = detect_market_phase(candles, interval=interval)
    price_action = generate_price_action_signal(candles, price, indicators.atr)

    if not candles:
        logger.debug("Empty candle list; returning WAIT")
        empty = _no_data_signal(price)
        return AnalysisResult(
            signal=empty, primary=empty, price_action=price_action, phase=phase,
        )

    order_blocks = detect_order_blocks(candles)
    fvgs = detect_fair_value_gaps(candles)
    sr_levels = detect_sr_levels(candles)
    liquidity = detect_liquidity_zones(candles)
    structure = detect_structure_events(candles)
    logger.debug(
        "Detectors: phase=%s/%s obs=%d fvgs=%d sr=%d liq=%d structure=%d",
        phase.phase, phase.bias, len(order_blocks), len(fvgs),
        len(sr_levels), len(liquidity), len(structure),
    )

    primary = build_signal(candles, indicators, phase, order_blocks, fvgs, sr_levels)
    logger.debug(
        "Primary %s %.0f%% · price action %s %.0f%%",
        primary.action, primary.confidence,
        price_action.action, price_action.confidence,
    )

    fused = combine_signals(primary, price_action)
    final = apply_context_modifiers(
        fused,
        spot_insights=spot_insights,
        news_risk=news_risk,
        news_bias=news_bias,
    )
    logger.debug("Final signal %s %.0f%%", final.action, final.confidence)
    if final.action != "WAIT" and final.stop_loss == final.entry:
        logger.warning(
            "%s signal has zero stop distance (ATR %.2f); levels collapse to entry",
            final.action, indicators.atr,
        )

    return AnalysisResult(
        signal=final,
        primary=primary,
        price_action=price_action,
        phase=phase,
        order_blocks=order_blocks,
        fvgs=fvgs,
        sr_levels=sr_levels,
        liquidity_zones=liquidity,
        structure_events=structure,
    )


def compute_signal(
    candles: list[CandleData],
    indicators: Optional[IndicatorBundle] = None,
    news_risk: Optional[NewsRisk] = None,
    news_bias: Optional[NewsBias] = None,
    spot_insights: Optional[SpotInsights] = None,
    interval: str = "1h",
    current_price: Optional[float] = None,
) -> GoldSignal:
    """Compute the final trading signal for *candles*.

    Same arguments as :func:`analyze_market`; returns only the signal.
    """
    return analyze_market(
        candles,
        indicators=indicators,
        news_risk=news_risk,
        news_bias=news_bias,
        spot_insights=spot_insights,
        interval=interval,
        current_price=current_price,
    ).signal
