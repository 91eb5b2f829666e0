"""Market data async client — candles, quotes and indicators for a symbol.

Providers are tried in order Finnhub → Alpha Vantage → Marketstack; a
provider is skipped when its key is not configured.  When every provider
fails the client returns synthetic candles instead of raising, so
callers always receive a usable series.
"""

import logging
import random
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from goldsignal.config import Config
from goldsignal.data.cache import CandleCache
from goldsignal.data.http import request_with_retry
from goldsignal.data.models import Quote
from goldsignal.strategy.indicators import IndicatorBundle, compute_indicators
from goldsignal.strategy.models import CandleData

logger = logging.getLogger("goldsignal")

FINNHUB_BASE = "https://finnhub.io/api/v1"
ALPHA_BASE = "https://www.alphavantage.co/query"
MARKETSTACK_BASE = "https://api.marketstack.com/v1"

DEFAULT_SYMBOL = "XAU/USD"
GOLD_FALLBACK_PRICE = 5180.0
OTHER_FALLBACK_PRICE = 2650.0
FOUR_HOURS = 4 * 3600

# Errors a provider can raise while fetching or parsing a payload
_PROVIDER_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError)


# ── Symbols and intervals ────────────────────────────────────────────────


def normalize_symbol(symbol: Optional[str]) -> str:
    """Canonicalise gold aliases (``GOLD``, ``XAUUSD``, ``xau-usd``) to ``XAU/USD``."""
    if not symbol or not symbol.strip():
        return DEFAULT_SYMBOL
    cleaned = re.sub(r"[-_\s/]", "", symbol.strip().upper())
    if cleaned in ("GOLD", "XAUUSD", "XAUUS$"):
        return DEFAULT_SYMBOL
    return symbol.strip().upper()


def is_gold(symbol: str) -> bool:
    return normalize_symbol(symbol) == DEFAULT_SYMBOL


def _split_pair(symbol: str) -> tuple[str, str]:
    base, _, quote = normalize_symbol(symbol).partition("/")
    return base or "XAU", quote or "USD"


def _interval_seconds(interval: str) -> int:
    return {"15min": 900, "1h": 3600, "4h": FOUR_HOURS}.get(interval, 86400)


def _parse_timestamp(value: str) -> int:
    """Epoch seconds for an ISO-8601 or ``YYYY-MM-DD[ HH:MM:SS]`` string (UTC if naive)."""
    text = value.strip().replace("Z", "+00:00")
    text = re.sub(r"([+-]\d{2})(\d{2})$", r"\1:\2", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


# ── Candle transforms ────────────────────────────────────────────────────


def resample_to_4h(candles: list[CandleData]) -> list[CandleData]:
    """Aggregate hourly bars into UTC-aligned 4-hour bars."""
    buckets: dict[int, list[CandleData]] = {}
    for c in candles:
        buckets.setdefault(c.time // FOUR_HOURS * FOUR_HOURS, []).append(c)

    return [
        CandleData(
            time=start,
            open=group[0].open,
            high=max(g.high for g in group),
            low=min(g.low for g in group),
            close=group[-1].close,
            volume=sum(g.volume for g in group),
        )
        for start, group in sorted(buckets.items())
    ]


def generate_synthetic_candles(
    count: int,
    base_price: float,
    interval_seconds: int = 3600,
    now: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> list[CandleData]:
    """Random-walk-free synthetic bars scattered around *base_price*.

    Used only when every provider fails.  Pass a seeded *rng* for
    reproducible output.
    """
    rng = rng or random.Random()
    now = int(time.time()) if now is None else now
    volatility = 20.0

    candles: list[CandleData] = []
    for i in range(count - 1, -1, -1):
        open_ = base_price + (rng.random() - 0.5) * volatility
        close = open_ + (rng.random() - 0.5) * volatility / 2
        high = max(open_, close) + rng.random() * volatility / 3
        low = min(open_, close) - rng.random() * volatility / 3
        candles.append(
            CandleData(
                time=now - i * interval_seconds,
                open=open_,
                high=high,
                low=low,
                close=close,
                volume=rng.random() * 1000,
            )
        )
    return candles


def quote_from_candles(symbol: str, candles: list[CandleData]) -> Quote:
    """Derive a quote from the last two bars of a series."""
    if not candles:
        price = GOLD_FALLBACK_PRICE if is_gold(symbol) else OTHER_FALLBACK_PRICE
        return Quote(symbol=symbol, close=price, open=price, high=price, low=price)

    last = candles[-1]
    prev = candles[-2] if len(candles) > 1 else last
    change = last.close - prev.close
    return Quote(
        symbol=symbol,
        close=last.close,
        open=last.open,
        high=last.high,
        low=last.low,
        previous_close=prev.close,
        change=change,
        percent_change=(change / prev.close * 100) if prev.close else 0.0,
        timestamp=last.time,
    )


def indicators_for(
    candles: list[CandleData], provider: str, price: Optional[float] = None,
) -> IndicatorBundle:
    """Indicators for a fetched series.

    Synthetic candles carry no market information, so they yield the
    neutral bundle centred on *price* (default: the last close) instead
    of values computed from noise.
    """
    if provider == "synthetic":
        if price is None:
            price = candles[-1].close if candles else GOLD_FALLBACK_PRICE
        return IndicatorBundle.neutral(price)
    return compute_indicators(candles)


# ── Payload parsers ──────────────────────────────────────────────────────


def _valid(c: CandleData) -> bool:
    return all(
        v == v and v not in (float("inf"), float("-inf"))
        for v in (c.open, c.high, c.low, c.close)
    )


def parse_finnhub_candles(data: dict[str, Any]) -> list[CandleData]:
    """Parse a Finnhub ``forex/candle`` payload (parallel t/o/h/l/c/v arrays)."""
    if not data or data.get("s") != "ok":
        return []
    t, o, h, l, c = (data.get(k) or [] for k in ("t", "o", "h", "l", "c"))
    v = data.get("v") or []
    size = min(len(t), len(o), len(h), len(l), len(c))
    candles = [
        CandleData(
            time=int(t[i]),
            open=float(o[i]),
            high=float(h[i]),
            low=float(l[i]),
            close=float(c[i]),
            volume=float(v[i]) if i < len(v) else 0.0,
        )
        for i in range(size)
    ]
    return sorted((c for c in candles if _valid(c)), key=lambda c: c.time)


def parse_alpha_series(data: dict[str, Any], alpha_interval: str) -> list[CandleData]:
    """Parse an Alpha Vantage ``FX_INTRADAY`` / ``FX_DAILY`` payload."""
    key = (
        "Time Series FX (Daily)"
        if alpha_interval == "1day"
        else f"Time Series FX ({alpha_interval})"
    )
    series = data.get(key)
    if not isinstance(series, dict):
        return []
    candles = [
        CandleData(
            time=_parse_timestamp(stamp),
            open=float(values["1. open"]),
            high=float(values["2. high"]),
            low=float(values["3. low"]),
            close=float(values["4. close"]),
        )
        for stamp, values in series.items()
    ]
    return sorted(candles, key=lambda c: c.time)


def parse_marketstack_rows(rows: list[dict[str, Any]]) -> list[CandleData]:
    """Parse Marketstack ``eod`` / ``intraday`` rows."""
    candles = [
        CandleData(
            time=_parse_timestamp(row["date"]),
            open=float(row["open"]),
            high=float(row["high"]),
            low=float(row["low"]),
            close=float(row["close"]),
            volume=float(row.get("volume") or 0.0),
        )
        for row in rows
    ]
    return sorted((c for c in candles if _valid(c)), key=lambda c: c.time)


# ── Client ───────────────────────────────────────────────────────────────


class MarketDataClient:
    """Async market data client with a provider fallback chain.

    Args:
        config: Application config (provider keys, timeout, retries).
        cache: Optional candle cache; ``None`` disables caching.
        retry_base_delay: First backoff delay in seconds.
        rng: Random source for synthetic candles.
    """

    def __init__(
        self,
        config: Config,
        cache: Optional[CandleCache] = None,
        retry_base_delay: float = 0.5,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._retry_base_delay = retry_base_delay
        self._rng = rng

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        resp = await request_with_retry(
            "get",
            url,
            params=params,
            timeout=self._config.provider_timeout,
            max_retries=self._config.provider_max_retries,
            base_delay=self._retry_base_delay,
        )
        return resp.json()

    # ── Providers ────────────────────────────────────────────────────────

    async def _finnhub_candles(
        self, symbol: str, interval: str, count: int,
    ) -> list[CandleData]:
        base, quote = _split_pair(symbol)
        resolution = {"15min": "15", "1h": "60", "4h": "60"}.get(interval, "D")
        step = 86400 if resolution == "D" else int(resolution) * 60
        multiplier = 4 if interval == "4h" else 1
        now = int(time.time())
        lookback = max(count * step * multiplier * 3, 14 * 86400)

        data = await self._get_json(
            f"{FINNHUB_BASE}/forex/candle",
            {
                "symbol": f"OANDA:{base}_{quote}",
                "resolution": resolution,
                "from": now - lookback,
                "to": now,
                "token": self._config.finnhub_api_key,
            },
        )
        if isinstance(data, dict) and data.get("error"):
            raise ValueError(f"Finnhub API error: {data['error']}")
        candles = parse_finnhub_candles(data)
        if interval == "4h":
            candles = resample_to_4h(candles)
        return candles[-count:]

    async def _alpha_candles(
        self, symbol: str, interval: str, count: int,
    ) -> list[CandleData]:
        base, quote = _split_pair(symbol)
        alpha_interval = {"15min": "15min", "1h": "60min", "4h": "60min"}.get(
            interval, "1day"
        )
        params: dict[str, Any] = {
            "from_symbol": base,
            "to_symbol": quote,
            "outputsize": "full",
            "apikey": self._config.alphavantage_api_key,
        }
        if alpha_interval == "1day":
            params["function"] = "FX_DAILY"
        else:
            params["function"] = "FX_INTRADAY"
            params["interval"] = alpha_interval

        data = await self._get_json(ALPHA_BASE, params)
        for key in ("Error Message", "Information", "Note"):
            if data.get(key):
                raise ValueError(f"Alpha Vantage API error: {data[key]}")
        candles = parse_alpha_series(data, alpha_interval)
        if interval == "4h":
            candles = resample_to_4h(candles)
        return candles[-count:]

    async def _marketstack_candles(
        self, symbol: str, interval: str, count: int,
    ) -> list[CandleData]:
        endpoint = "eod" if interval == "1day" else "intraday"
        params: dict[str, Any] = {
            "access_key": self._config.marketstack_api_key,
            "symbols": normalize_symbol(symbol).replace("/", ""),
            "limit": count * 3,
        }
        if endpoint == "intraday":
            params["interval"] = "15min" if interval == "15min" else "1hour"

        data = await self._get_json(f"{MARKETSTACK_BASE}/{endpoint}", params)
        if data.get("error"):
            error = data["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ValueError(f"Marketstack API error: {message}")
        candles = parse_marketstack_rows(data.get("data") or [])
        if interval == "4h":
            candles = resample_to_4h(candles)
        return candles[-count:]

    def _providers(self):
        """Configured ``(name, fetcher)`` pairs in fallback order."""
        chain = []
        if self._config.finnhub_api_key:
            chain.append(("finnhub", self._finnhub_candles))
        if self._config.alphavantage_api_key:
            chain.append(("alpha_vantage", self._alpha_candles))
        if self._config.marketstack_api_key:
            chain.append(("marketstack", self._marketstack_candles))
        return chain

    # ── Public API ───────────────────────────────────────────────────────

    async def fetch_candles_with_provider(
        self, symbol: str, interval: str, count: int = 150,
    ) -> tuple[list[CandleData], str]:
        """Fetch candles from the first provider that returns data.

        Args:
            symbol: Symbol or gold alias.
            interval: ``"15min"``, ``"1h"``, ``"4h"`` or ``"1day"``.
            count: Number of bars wanted.

        Returns:
            ``(candles, provider)``; provider is ``"synthetic"`` when every
            configured provider failed.
        """
        canonical = normalize_symbol(symbol)

        if self._cache is not None:
            cached = self._cache.get(canonical, interval, count)
            if cached is not None:
                return cached, "cache"

        for name, fetcher in self._providers():
            try:
                candles = await fetcher(canonical, interval, count)
            except _PROVIDER_ERRORS as exc:
                logger.warning("%s candles failed for %s %s: %s", name, canonical, interval, exc)
                continue
            if candles:
                logger.debug("Fetched %d %s candles from %s", len(candles), interval, name)
                if self._cache is not None:
                    self._cache.put(canonical, interval, count, candles)
                return candles, name
            logger.warning("%s returned no candles for %s %s", name, canonical, interval)

        logger.warning("All candle providers failed for %s %s — using synthetic data", canonical, interval)
        base_price = GOLD_FALLBACK_PRICE if is_gold(canonical) else OTHER_FALLBACK_PRICE
        synthetic = generate_synthetic_candles(
            count, base_price, _interval_seconds(interval), rng=self._rng,
        )
        return synthetic, "synthetic"

    async def fetch_quote_with_provider(self, symbol: str) -> tuple[Quote, str]:
        """Fetch the latest quote.

        Finnhub's realtime quote endpoint is tried first; otherwise the
        quote is derived from the freshest candle series available.
        """
        canonical = normalize_symbol(symbol)

        if self._config.finnhub_api_key:
            base, quote_ccy = _split_pair(canonical)
            try:
                data = await self._get_json(
                    f"{FINNHUB_BASE}/quote",
                    {"symbol": f"OANDA:{base}_{quote_ccy}", "token": self._config.finnhub_api_key},
                )
                close = float(data["c"])
                if close <= 0:
                    raise ValueError("Finnhub quote error: invalid quote payload")
                prev_close = float(data.get("pc") or 0.0)
                change = float(data.get("d") or (close - prev_close))
                return Quote(
                    symbol=canonical,
                    close=close,
                    open=float(data.get("o") or close),
                    high=float(data.get("h") or close),
                    low=float(data.get("l") or close),
                    previous_close=prev_close,
                    change=change,
                    percent_change=float(data.get("dp") or (change / prev_close * 100 if prev_close else 0.0)),
                    timestamp=int(data.get("t") or 0),
                ), "finnhub"
            except _PROVIDER_ERRORS as exc:
                logger.warning("finnhub quote failed for %s: %s", canonical, exc)

        candles, provider = await self.fetch_candles_with_provider(canonical, "1h", 50)
        return quote_from_candles(canonical, candles), provider

    async def fetch_indicators(
        self, symbol: str, interval: str, count: int = 200,
    ) -> IndicatorBundle:
        """Latest RSI/MACD/Bollinger/ATR for *symbol*, neutral where unavailable."""
        candles, provider = await self.fetch_candles_with_provider(symbol, interval, count)
        return indicators_for(candles, provider)
