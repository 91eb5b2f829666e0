"""Signal fusion — merges the primary and price-action signals.

Decision table:

* Same directional action: confidence ``min(95, 0.6·P + 0.4·S)``; entry,
  first target and stop are the means of both builders' levels.
* Opposite directional actions: WAIT at ``0.5 × min(P, S)``.
* One side WAIT: the directional side is adopted at ``0.8 ×`` its
  confidence.
* Both WAIT: the primary signal is kept with an agreement note.
"""

from dataclasses import replace

from goldsignal.risk.sl_tp import PIPS_PER_DOLLAR, risk_reward
from goldsignal.strategy.models import GoldSignal, PipDistances, PriceActionSignal


PRIMARY_WEIGHT = 0.6
SECONDARY_WEIGHT = 0.4
CONFLICT_DISCOUNT = 0.5
ABSTAIN_DISCOUNT = 0.8
MAX_CONFIDENCE = 95.0


def _relevel(
    signal: GoldSignal,
    entry: float,
    stop_loss: float,
    tp1: float,
    tp2: float,
    tp3: float,
) -> GoldSignal:
    """Return *signal* with new levels and R:R/pip values derived from them."""
    return replace(
        signal,
        entry=entry,
        stop_loss=stop_loss,
        tp1=tp1,
        tp2=tp2,
        tp3=tp3,
        rr1=risk_reward(entry, stop_loss, tp1),
        rr2=risk_reward(entry, stop_loss, tp2),
        rr3=risk_reward(entry, stop_loss, tp3),
        pips=PipDistances(
            sl=abs(entry - stop_loss) * PIPS_PER_DOLLAR,
            tp1=abs(tp1 - entry) * PIPS_PER_DOLLAR,
            tp2=abs(tp2 - entry) * PIPS_PER_DOLLAR,
            tp3=abs(tp3 - entry) * PIPS_PER_DOLLAR,
        ),
    )


def combine_signals(
    primary: GoldSignal, secondary: PriceActionSignal,
) -> GoldSignal:
    """Fuse the primary signal with the price-action signal.

    Args:
        primary: Output of the primary builder.
        secondary: Output of the price-action builder.

    Returns:
        A new ``GoldSignal``; neither input is modified.
    """
    p_action = primary.action
    s_action = secondary.action
    pattern_names = tuple(p.name for p in secondary.patterns)

    if p_action == s_action and p_action != "WAIT":
        confidence = min(
            MAX_CONFIDENCE,
            PRIMARY_WEIGHT * primary.confidence + SECONDARY_WEIGHT * secondary.confidence,
        )
        fused = _relevel(
            primary,
            entry=(primary.entry + secondary.entry) / 2,
            stop_loss=(primary.stop_loss + secondary.stop_loss) / 2,
            tp1=(primary.tp1 + secondary.take_profit1) / 2,
            tp2=primary.tp2,
            tp3=primary.tp3,
        )
        confirmation = ", ".join(pattern_names) or "wick/chart structure"
        return replace(
            fused,
            confidence=confidence,
            overall_score=confidence,
            confluences=primary.confluences + (
                f"Price action confirmation: {confirmation}",
                f"Combined primary + price action confidence: {confidence:.0f}%",
            ),
            price_action_patterns=pattern_names,
        )

    if p_action != s_action and p_action != "WAIT" and s_action != "WAIT":
        confidence = CONFLICT_DISCOUNT * min(primary.confidence, secondary.confidence)
        return replace(
            primary,
            action="WAIT",
            confidence=confidence,
            overall_score=confidence,
            confluences=primary.confluences + (
                f"Signal conflict: primary {p_action} vs price action {s_action}, "
                "waiting for clarity",
            ),
            price_action_patterns=pattern_names,
        )

    if p_action == "WAIT" and s_action != "WAIT":
        confidence = ABSTAIN_DISCOUNT * secondary.confidence
        entry = secondary.entry
        stop_distance = abs(entry - secondary.stop_loss)
        sign = 1.0 if s_action == "BUY" else -1.0
        adopted = _relevel(
            primary,
            entry=entry,
            stop_loss=secondary.stop_loss,
            tp1=secondary.take_profit1,
            tp2=secondary.take_profit2,
            tp3=entry + sign * stop_distance * 4,
        )
        word = "below" if s_action == "BUY" else "above"
        return replace(
            adopted,
            action=s_action,
            confidence=confidence,
            overall_score=confidence,
            invalidation=f"Price {word} ${secondary.stop_loss:.2f}",
            confluences=primary.confluences + (
                f"Price action signal: {s_action} ({secondary.confidence:.0f}%)",
                *secondary.confluences,
                "Primary builder showing consolidation/neutral",
            ),
            price_action_patterns=pattern_names,
        )

    if s_action == "WAIT" and p_action != "WAIT":
        confidence = ABSTAIN_DISCOUNT * primary.confidence
        return replace(
            primary,
            confidence=confidence,
            overall_score=confidence,
            confluences=primary.confluences + (
                f"Price action showing consolidation, primary {p_action} "
                f"at {primary.confidence:.0f}%",
            ),
            price_action_patterns=pattern_names,
        )

    return replace(
        primary,
        confluences=primary.confluences + (
            "Primary and price action agree: sideways/consolidation",
        ),
        price_action_patterns=pattern_names,
    )
