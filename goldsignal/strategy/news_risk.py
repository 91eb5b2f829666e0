"""News risk — scheduled-event risk, fundamental bias and event impact ratings.

All functions are pure: the caller supplies the events and the current
time, so results are reproducible.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional, Sequence

from goldsignal.data.models import NewsEvent
from goldsignal.strategy.models import NewsBias, NewsRisk

RISK_WINDOW_HOURS = 4.0


@dataclass(frozen=True)
class MacroCorrelation:
    """Typical correlation between gold and another asset."""

    asset: str
    correlation: float  # -1 to 1
    description: str


@dataclass(frozen=True)
class EventImpact:
    """Historical gold reaction to a recurring macro release."""

    event: str
    impact: Literal["HIGH", "MEDIUM", "LOW"]
    historical_gold_move: float  # average move in pips
    direction: Literal["BULLISH", "BEARISH", "MIXED"]
    reliability: float  # 0-100


MACRO_CORRELATIONS: tuple[MacroCorrelation, ...] = (
    MacroCorrelation(
        "US Dollar Index (DXY)", -0.75,
        "Strong inverse relationship, USD strength typically pressures gold",
    ),
    MacroCorrelation(
        "US 10-Year Yields", -0.65,
        "Higher yields increase the opportunity cost of holding gold",
    ),
    MacroCorrelation(
        "S&P 500", 0.15, "Weak positive correlation, mixed safe-haven dynamics",
    ),
    MacroCorrelation(
        "Silver (XAG/USD)", 0.85, "Strong positive correlation, often move together",
    ),
    MacroCorrelation("USD/JPY", -0.45, "Negative correlation via the USD component"),
)

# Keyed by the substring matched (case-insensitively) against event names
KNOWN_EVENT_IMPACTS: dict[str, EventImpact] = {
    "Non-Farm Payrolls": EventImpact("Non-Farm Payrolls", "HIGH", 25, "MIXED", 85),
    "Federal Funds Rate": EventImpact("Federal Funds Rate", "HIGH", 30, "MIXED", 90),
    "CPI": EventImpact("Consumer Price Index", "HIGH", 20, "MIXED", 80),
    "GDP": EventImpact("Gross Domestic Product", "HIGH", 18, "MIXED", 75),
    "FOMC Minutes": EventImpact("FOMC Minutes", "HIGH", 15, "MIXED", 70),
    "Unemployment": EventImpact("Unemployment Rate", "HIGH", 15, "MIXED", 75),
    "Retail Sales": EventImpact("Retail Sales", "HIGH", 12, "MIXED", 65),
    "ISM Manufacturing": EventImpact("ISM Manufacturing PMI", "HIGH", 10, "MIXED", 60),
}


def parse_event_time(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 event date as an aware UTC datetime, ``None`` if invalid."""
    text = (value or "").strip().replace("Z", "+00:00")
    text = re.sub(r"([+-]\d{2})(\d{2})$", r"\1:\2", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _high_impact(events: Sequence[NewsEvent], currency: str) -> list[NewsEvent]:
    return [e for e in events if e.currency == currency and e.impact == "High"]


# ── Risk ─────────────────────────────────────────────────────────────────


def assess_news_risk(
    events: Sequence[NewsEvent],
    now: Optional[datetime] = None,
    window_hours: float = RISK_WINDOW_HOURS,
) -> NewsRisk:
    """Grade the risk from high-impact USD events.

    RED (``avoid``) for more than one event inside the next *window_hours*,
    ORANGE for exactly one, YELLOW when any falls later today (UTC), GREEN
    otherwise.

    Args:
        events: Calendar events.
        now: Reference time; defaults to the current UTC time.
        window_hours: Look-ahead window for imminent events.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    timed = [
        (e, t) for e in _high_impact(events, "USD")
        if (t := parse_event_time(e.date)) is not None
    ]
    soon = [
        (e, t) for e, t in timed
        if 0 < (t - now).total_seconds() / 3600 <= window_hours
    ]
    today = [(e, t) for e, t in timed if t.date() == now.astimezone(timezone.utc).date()]

    if len(soon) > 1:
        return NewsRisk(
            level="RED",
            label="HIGH RISK",
            reason=f"{len(soon)} high-impact USD events within {window_hours:g} hours",
            avoid=True,
            upcoming_count=len(soon),
            events=tuple(e.event for e, _ in soon),
        )
    if len(soon) == 1:
        event, at = soon[0]
        return NewsRisk(
            level="ORANGE",
            label="MODERATE RISK",
            reason=f"{event.event} at {at:%H:%M} UTC",
            avoid=False,
            upcoming_count=1,
            events=(event.event,),
        )
    if today:
        return NewsRisk(
            level="YELLOW",
            label="LOW-MODERATE RISK",
            reason=f"{len(today)} high-impact USD event(s) today",
            avoid=False,
            upcoming_count=len(today),
            events=tuple(e.event for e, _ in today),
        )
    return NewsRisk(
        level="GREEN",
        label="LOW RISK",
        reason="No major news events imminent",
        avoid=False,
    )


# ── Bias ─────────────────────────────────────────────────────────────────


def compute_news_bias(events: Sequence[NewsEvent]) -> NewsBias:
    """Score released high-impact USD and EUR data against forecasts.

    A USD beat is bearish for gold (−min(2×surprise, 3)); a EUR beat is
    bullish (+min(1.5×surprise, 2)).  Score > 1 is BULLISH_GOLD, < −1
    BEARISH_GOLD.
    """
    usd = _high_impact(events, "USD")
    eur = _high_impact(events, "EUR")
    if not usd and not eur:
        return NewsBias(
            bias="NEUTRAL",
            score=0.0,
            summary="No major USD/EUR catalysts, neutral fundamental backdrop",
        )

    score = 0.0
    factors: list[str] = []

    for e in usd:
        if e.actual is None or e.forecast is None:
            continue
        surprise = e.actual - e.forecast
        if surprise > 0:
            score -= min(abs(surprise) * 2, 3)
            factors.append(f"{e.event}: USD stronger than expected")
        elif surprise < 0:
            score += min(abs(surprise) * 2, 3)
            factors.append(f"{e.event}: USD weaker than expected")

    for e in eur:
        if e.actual is None or e.forecast is None:
            continue
        surprise = e.actual - e.forecast
        if surprise > 0:
            score += min(abs(surprise) * 1.5, 2)
            factors.append(f"{e.event}: EUR stronger than expected")
        elif surprise < 0:
            score -= min(abs(surprise) * 1.5, 2)
            factors.append(f"{e.event}: EUR weaker than expected")

    if score > 1:
        return NewsBias(
            bias="BULLISH_GOLD",
            score=score,
            summary=f"Gold bullish fundamentals: USD weakness detected (score: {score:.1f})",
            factors=tuple(factors),
        )
    if score < -1:
        return NewsBias(
            bias="BEARISH_GOLD",
            score=score,
            summary=f"Gold bearish fundamentals: USD strength detected (score: {score:.1f})",
            factors=tuple(factors),
        )
    return NewsBias(
        bias="NEUTRAL",
        score=score,
        summary="Mixed fundamentals, no clear directional bias",
        factors=tuple(factors),
    )


# ── Impact ratings ───────────────────────────────────────────────────────


def get_event_impact(event_name: str) -> Optional[EventImpact]:
    """Known impact profile for an event name, matched by substring."""
    lowered = event_name.lower()
    for key, impact in KNOWN_EVENT_IMPACTS.items():
        if key.lower() in lowered:
            return impact
    return None


def rate_events_by_impact(events: Sequence[NewsEvent]) -> list[EventImpact]:
    """Impact profiles for recognised events, most reliable first."""
    impacts = [
        impact for e in events
        if (impact := get_event_impact(e.event)) is not None
    ]
    return sorted(impacts, key=lambda i: i.reliability, reverse=True)


def upcoming_high_impact(
    events: Sequence[NewsEvent], now: datetime, limit: int = 8,
) -> list[NewsEvent]:
    """High-impact USD events scheduled after *now*, in calendar order."""
    upcoming = []
    for e in _high_impact(events, "USD"):
        when = parse_event_time(e.date)
        if when is not None and when > now:
            upcoming.append((when, e))
    upcoming.sort(key=lambda pair: pair[0])
    return [e for _, e in upcoming[:limit]]
