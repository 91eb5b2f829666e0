"""Narrative context — typed snapshot of one analysis for text generation."""

from dataclasses import dataclass
from typing import Optional

from goldsignal.strategy.indicators import IndicatorBundle
from goldsignal.strategy.models import AnalysisResult, NewsBias, NewsRisk, SpotInsights


@dataclass(frozen=True)
class NarrativeContext:
    """Everything a narrative needs, flattened to plain values."""

    price: float
    action: str
    confidence: float
    entry: float
    stop_loss: float
    tp1: float
    tp2: float
    rr1: float
    rr2: float
    confluences: tuple[str, ...]
    phase: str
    bias: str
    session_high: float
    session_low: float
    rsi: float
    macd_histogram: float
    atr: float
    bb_upper: float
    bb_middle: float
    bb_lower: float
    order_block_count: int
    fvg_count: int
    sr_level_count: int
    major_level: Optional[str] = None  # e.g. "SUPPORT at $2650.00"
    news_risk_level: Optional[str] = None
    news_avoid: bool = False
    news_bias: Optional[str] = None
    spread: Optional[float] = None
    macd_line: float = 0.0
    macd_signal: float = 0.0
    news_summary: Optional[str] = None
    weekly_position: Optional[float] = None
    # Zone and pattern summaries for the deep analysis, most recent last
    order_block_notes: tuple[str, ...] = ()
    fvg_notes: tuple[str, ...] = ()
    sr_notes: tuple[str, ...] = ()
    liquidity_notes: tuple[str, ...] = ()
    pattern_notes: tuple[str, ...] = ()


def build_narrative_context(
    result: AnalysisResult,
    indicators: IndicatorBundle,
    price: float,
    news_risk: Optional[NewsRisk] = None,
    news_bias: Optional[NewsBias] = None,
    spot_insights: Optional[SpotInsights] = None,
) -> NarrativeContext:
    """Flatten an ``AnalysisResult`` plus its inputs into a ``NarrativeContext``."""
    signal = result.signal
    major = result.sr_levels[0] if result.sr_levels else None
    weekly = spot_insights.weekly_range if spot_insights else None

    return NarrativeContext(
        price=price,
        action=signal.action,
        confidence=signal.confidence,
        entry=signal.entry,
        stop_loss=signal.stop_loss,
        tp1=signal.tp1,
        tp2=signal.tp2,
        rr1=signal.rr1,
        rr2=signal.rr2,
        confluences=signal.confluences,
        phase=result.phase.phase,
        bias=result.phase.bias,
        session_high=result.phase.session_high,
        session_low=result.phase.session_low,
        rsi=indicators.rsi,
        macd_histogram=indicators.macd.histogram,
        atr=indicators.atr,
        bb_upper=indicators.bbands.upper,
        bb_middle=indicators.bbands.middle,
        bb_lower=indicators.bbands.lower,
        order_block_count=len(result.order_blocks),
        fvg_count=len(result.fvgs),
        sr_level_count=len(result.sr_levels),
        major_level=f"{major.type} at ${major.price:.2f}" if major else None,
        news_risk_level=news_risk.level if news_risk else None,
        news_avoid=news_risk.avoid if news_risk else False,
        news_bias=news_bias.bias if news_bias else None,
        spread=spot_insights.spread if spot_insights else None,
        macd_line=indicators.macd.macd,
        macd_signal=indicators.macd.signal,
        news_summary=news_bias.summary if news_bias and news_bias.summary else None,
        weekly_position=weekly.position_pct if weekly else None,
        order_block_notes=tuple(
            f"{ob.type} OB: ${ob.bottom:.2f} - ${ob.top:.2f} ({ob.strength})"
            for ob in result.order_blocks[-5:]
        ),
        fvg_notes=tuple(
            f"{g.type} FVG: ${g.bottom:.2f} - ${g.top:.2f} ({g.size:.2f})"
            for g in result.fvgs[-3:]
        ),
        sr_notes=tuple(
            f"{lvl.type}: ${lvl.price:.2f} ({lvl.touches} touches)"
            for lvl in result.sr_levels
        ),
        liquidity_notes=tuple(
            f"{z.type} at ${z.price:.2f}{' (swept)' if z.swept else ''}"
            for z in result.liquidity_zones[-5:]
        ),
        pattern_notes=tuple(
            f"{p.name} ({p.direction.lower()})"
            for p in result.price_action.patterns
        ),
    )
