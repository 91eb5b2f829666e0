"""Tests for goldsignal.data.cache — TTL and capacity bounded candle cache."""

import pytest

from goldsignal.data.cache import CandleCache, default_ttl
from goldsignal.strategy.models import CandleData


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _series(n: int = 3) -> list[CandleData]:
    return [CandleData(time=i * 3600, open=2000, high=2001, low=1999, close=2000) for i in range(n)]


def test_default_ttl():
    assert default_ttl("1day") == 300
    assert default_ttl("1h") == 45
    assert default_ttl("15min") == 45


def test_hit_returns_a_copy():
    cache = CandleCache()
    cache.put("XAU/USD", "1h", 3, _series())
    hit = cache.get("XAU/USD", "1h", 3)
    assert hit == _series()
    hit.clear()
    assert len(cache.get("XAU/USD", "1h", 3)) == 3


def test_miss_on_different_key():
    cache = CandleCache()
    cache.put("XAU/USD", "1h", 3, _series())
    assert cache.get("XAU/USD", "4h", 3) is None
    assert cache.get("XAU/USD", "1h", 50) is None


def test_intraday_entry_expires_after_45s():
    clock = _FakeClock()
    cache = CandleCache(clock=clock)
    cache.put("XAU/USD", "1h", 3, _series())
    clock.now += 44
    assert cache.get("XAU/USD", "1h", 3) is not None
    clock.now += 2
    assert cache.get("XAU/USD", "1h", 3) is None
    assert len(cache) == 0


def test_daily_entry_lives_longer():
    clock = _FakeClock()
    cache = CandleCache(clock=clock)
    cache.put("XAU/USD", "1day", 3, _series())
    clock.now += 120
    assert cache.get("XAU/USD", "1day", 3) is not None


def test_capacity_evicts_least_recently_used():
    cache = CandleCache(capacity=2)
    cache.put("A", "1h", 1, _series(1))
    cache.put("B", "1h", 1, _series(1))
    cache.get("A", "1h", 1)  # A is now most recent
    cache.put("C", "1h", 1, _series(1))
    assert cache.get("B", "1h", 1) is None
    assert cache.get("A", "1h", 1) is not None
    assert cache.get("C", "1h", 1) is not None


def test_clear():
    cache = CandleCache()
    cache.put("XAU/USD", "1h", 3, _series())
    cache.clear()
    assert len(cache) == 0


def test_invalid_capacity():
    with pytest.raises(ValueError):
        CandleCache(capacity=0)
