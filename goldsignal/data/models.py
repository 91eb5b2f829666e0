"""Market data models — typed representations of upstream provider payloads."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class Quote:
    """Latest quote for a symbol."""

    symbol: str
    close: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    previous_close: float = 0.0
    change: float = 0.0
    percent_change: float = 0.0
    timestamp: int = 0  # epoch seconds


@dataclass(frozen=True)
class GoldSpot:
    """Live XAU/USD spot bid/ask from GoldAPI."""

    timestamp: int
    ask: float
    bid: float
    price: float  # mid
    ch: float = 0.0
    chp: float = 0.0
    prev_close_price: float = 0.0
    price_gram_24k: float = 0.0

    @property
    def spread(self) -> float:
        """Ask minus bid, in dollars."""
        return round(self.ask - self.bid, 2)

    @property
    def spread_pct(self) -> float:
        """Spread as a percentage of the mid price."""
        if self.price <= 0:
            return 0.0
        return round((self.ask - self.bid) / self.price * 100, 4)


@dataclass(frozen=True)
class GoldHistorical:
    """One day's spot reference price."""

    date: str  # YYYYMMDD
    price: float
    ask: Optional[float] = None
    bid: Optional[float] = None
    ch: float = 0.0
    chp: float = 0.0


@dataclass(frozen=True)
class NewsEvent:
    """An economic calendar event."""

    id: str
    country: str
    currency: str
    event: str
    date: str  # ISO-8601, UTC
    impact: Literal["High", "Medium", "Low", "None"]
    category: str = ""
    actual: Optional[float] = None
    forecast: Optional[float] = None
    previous: Optional[float] = None
    period: str = ""
    unit: Optional[str] = None
