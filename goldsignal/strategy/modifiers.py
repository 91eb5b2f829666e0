"""Context modifiers — sequential confidence adjustments after fusion.

Applied in a fixed order, each step reading the confidence left by the
previous one:

1. Spread quality (WIDE spread penalises directional signals).
2. Weekly range position (premium/discount adjustments).
3. News risk (``avoid`` forces WAIT, confidence ≤ 25).
4. Fundamental bias (agreement boosts, conflict penalises).

No step turns a WAIT back into a directional action.
"""

import logging
from dataclasses import replace
from typing import Optional

from goldsignal.strategy.models import GoldSignal, NewsBias, NewsRisk, SpotInsights

logger = logging.getLogger("goldsignal")


CONFIDENCE_FLOOR = 20.0
CONFIDENCE_CAP = 95.0
NEWS_BLOCK_CAP = 25.0


def _adjust(signal: GoldSignal, confidence: float, note: str) -> GoldSignal:
    logger.debug("Modifier: %s (confidence %.1f → %.1f)", note, signal.confidence, confidence)
    return replace(
        signal,
        confidence=confidence,
        overall_score=confidence,
        confluences=signal.confluences + (note,),
    )


def apply_spread_quality(
    signal: GoldSignal, spot_insights: Optional[SpotInsights],
) -> GoldSignal:
    """A WIDE spread costs a directional signal 10 points (floor 20)."""
    if spot_insights is None or spot_insights.spread_quality != "WIDE":
        return signal
    if signal.action == "WAIT":
        return signal
    return _adjust(
        signal,
        max(CONFIDENCE_FLOOR, signal.confidence - 10),
        f"Wide bid/ask spread ({spot_insights.spread:.2f}), possible low liquidity",
    )


def apply_weekly_range(
    signal: GoldSignal, spot_insights: Optional[SpotInsights],
) -> GoldSignal:
    """Adjust for where spot sits in the trailing week's range.

    Buying above 80% or selling below 20% of the range costs 8 points
    (floor 20); buying below 30% or selling above 70% earns 5 (cap 95).
    """
    if spot_insights is None or spot_insights.weekly_range is None:
        return signal

    pos = spot_insights.weekly_range.position_pct
    if signal.action == "BUY" and pos > 80:
        signal = _adjust(
            signal,
            max(CONFIDENCE_FLOOR, signal.confidence - 8),
            f"Price at {pos:.0f}% of weekly range, near weekly high, BUY risk elevated",
        )
    if signal.action == "SELL" and pos < 20:
        signal = _adjust(
            signal,
            max(CONFIDENCE_FLOOR, signal.confidence - 8),
            f"Price at {pos:.0f}% of weekly range, near weekly low, SELL risk elevated",
        )
    if signal.action == "BUY" and pos < 30:
        signal = _adjust(
            signal,
            min(CONFIDENCE_CAP, signal.confidence + 5),
            f"Buying near weekly low ({pos:.0f}% of range), discount zone",
        )
    if signal.action == "SELL" and pos > 70:
        signal = _adjust(
            signal,
            min(CONFIDENCE_CAP, signal.confidence + 5),
            f"Selling near weekly high ({pos:.0f}% of range), premium zone",
        )
    return signal


def apply_news_risk(
    signal: GoldSignal, news_risk: Optional[NewsRisk],
) -> GoldSignal:
    """Imminent high-impact news forces WAIT with confidence ≤ 25."""
    if news_risk is None or not news_risk.avoid or signal.action == "WAIT":
        return signal
    blocked = _adjust(
        signal,
        min(signal.confidence, NEWS_BLOCK_CAP),
        "BLOCKED: High-impact news imminent, protect capital",
    )
    return replace(blocked, action="WAIT")


def apply_news_bias(
    signal: GoldSignal, news_bias: Optional[NewsBias],
) -> GoldSignal:
    """Fundamentals agreeing with the action add 10 (cap 95); conflicting cost 15 (floor 20)."""
    if news_bias is None or signal.action == "WAIT" or news_bias.bias == "NEUTRAL":
        return signal

    agrees = (
        (news_bias.bias == "BULLISH_GOLD" and signal.action == "BUY")
        or (news_bias.bias == "BEARISH_GOLD" and signal.action == "SELL")
    )
    if agrees:
        direction = "bullish" if signal.action == "BUY" else "bearish"
        return _adjust(
            signal,
            min(CONFIDENCE_CAP, signal.confidence + 10),
            f"Fundamentals confirm: gold {direction}",
        )
    return _adjust(
        signal,
        max(CONFIDENCE_FLOOR, signal.confidence - 15),
        "WARNING: Fundamentals conflict with technical signal",
    )


def apply_context_modifiers(
    signal: GoldSignal,
    spot_insights: Optional[SpotInsights] = None,
    news_risk: Optional[NewsRisk] = None,
    news_bias: Optional[NewsBias] = None,
) -> GoldSignal:
    """Apply every context modifier in order and clamp to [0, 95].

    Args:
        signal: The fused signal.
        spot_insights: Spread and weekly-range context, if available.
        news_risk: Scheduled-news risk assessment, if available.
        news_bias: Fundamental bias, if available.

    Returns:
        A new ``GoldSignal``.
    """
    signal = apply_spread_quality(signal, spot_insights)
    signal = apply_weekly_range(signal, spot_insights)
    signal = apply_news_risk(signal, news_risk)
    signal = apply_news_bias(signal, news_bias)

    clamped = max(0.0, min(CONFIDENCE_CAP, signal.confidence))
    if clamped != signal.confidence:
        signal = replace(signal, confidence=clamped, overall_score=clamped)
    return signal
