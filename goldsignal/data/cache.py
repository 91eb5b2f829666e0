"""Short-lived read-through cache for fetched candle series.

The cache is an explicit object handed to the market data client; the
analysis pipeline never reads or writes it.
"""

import time
from collections import OrderedDict
from typing import Callable, Optional

from goldsignal.strategy.models import CandleData


INTRADAY_TTL_SECONDS = 45.0
DAILY_TTL_SECONDS = 300.0


def default_ttl(interval: str) -> float:
    """45 s for intraday series, 5 min for daily."""
    return DAILY_TTL_SECONDS if interval == "1day" else INTRADAY_TTL_SECONDS


class CandleCache:
    """TTL + capacity bounded cache keyed by ``(symbol, interval, count)``.

    Args:
        capacity: Maximum number of entries; the least recently used
            entry is evicted first.
        ttl: Maps an interval label to a time-to-live in seconds.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        capacity: int = 32,
        ttl: Callable[[str], float] = default_ttl,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[
            tuple[str, str, int], tuple[float, tuple[CandleData, ...]]
        ] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(
        self, symbol: str, interval: str, count: int,
    ) -> Optional[list[CandleData]]:
        """Return a fresh cached series, or ``None`` when absent or expired."""
        key = (symbol, interval, count)
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, candles = entry
        if self._clock() - stored_at > self._ttl(interval):
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return list(candles)

    def put(
        self, symbol: str, interval: str, count: int, candles: list[CandleData],
    ) -> None:
        """Store *candles*, evicting the least recently used entry when full."""
        key = (symbol, interval, count)
        self._entries[key] = (self._clock(), tuple(candles))
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
