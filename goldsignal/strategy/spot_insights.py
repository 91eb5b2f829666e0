"""Spot insights — spread quality and weekly-range context from the live quote.

XAU/USD spreads are typically $0.10–$0.50; quality is judged as a
percentage of the mid price so it scales with the gold price.
"""

from typing import Optional, Sequence

from goldsignal.data.models import GoldHistorical, GoldSpot
from goldsignal.strategy.models import SpotInsights, WeeklyRange

TIGHT_SPREAD_PCT = 0.02
NORMAL_SPREAD_PCT = 0.05
MIN_HISTORY_DAYS = 3


def classify_spread(spread_pct: float) -> str:
    """Return ``TIGHT`` (< 0.02%), ``NORMAL`` (< 0.05%) or ``WIDE``."""
    if spread_pct < TIGHT_SPREAD_PCT:
        return "TIGHT"
    if spread_pct < NORMAL_SPREAD_PCT:
        return "NORMAL"
    return "WIDE"


def _spread_note(spot: GoldSpot, quality: str) -> str:
    detail = {
        "TIGHT": "excellent liquidity, ideal entry conditions",
        "NORMAL": "normal conditions",
        "WIDE": "wide spread, possible low liquidity or news event",
    }[quality]
    return f"Spread {spot.spread:.2f} ({spot.spread_pct}%): {detail}"


def weekly_range(
    spot: GoldSpot, history: Sequence[GoldHistorical],
) -> Optional[WeeklyRange]:
    """Range of the trailing week (history plus current spot).

    Returns ``None`` with fewer than three days of history.  A flat week
    puts spot at the 50% position.
    """
    if len(history) < MIN_HISTORY_DAYS:
        return None

    prices = [h.price for h in history] + [spot.price]
    high, low = max(prices), min(prices)
    span = high - low
    position = (spot.price - low) / span * 100 if span > 0 else 50.0
    return WeeklyRange(
        high=high,
        low=low,
        midpoint=(high + low) / 2,
        position_pct=round(position, 1),
    )


def weekly_trend(
    history: Sequence[GoldHistorical], range_: WeeklyRange,
) -> str:
    """``SIDEWAYS`` when the week's net move is under 20% of its range."""
    diff = history[-1].price - history[0].price
    if abs(diff) < (range_.high - range_.low) * 0.2:
        return "SIDEWAYS"
    return "UPTREND" if diff > 0 else "DOWNTREND"


def compute_spot_insights(
    spot: GoldSpot,
    history: Optional[Sequence[GoldHistorical]] = None,
) -> SpotInsights:
    """Derive spread quality, entry note and weekly context.

    Args:
        spot: Live spot quote with bid/ask.
        history: Daily reference prices, oldest first.

    Returns:
        A ``SpotInsights``; weekly fields are ``None`` without enough history.
    """
    quality = classify_spread(spot.spread_pct)
    history = list(history or [])
    range_ = weekly_range(spot, history)

    return SpotInsights(
        spread_quality=quality,
        spread=spot.spread,
        spread_note=_spread_note(spot, quality),
        entry_note=(
            f"BUY at ask {spot.ask:.2f} · SELL at bid {spot.bid:.2f} · "
            f"Mid {spot.price:.2f}"
        ),
        weekly_range=range_,
        weekly_trend=weekly_trend(history, range_) if range_ else None,
    )
