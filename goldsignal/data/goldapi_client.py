"""GoldAPI.io async client — live XAU/USD bid/ask and daily history.

Failures never raise: the spot call returns ``None`` and history skips
missing days, so spot insights simply degrade to unavailable.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from goldsignal.config import Config
from goldsignal.data.http import request_with_retry
from goldsignal.data.models import GoldHistorical, GoldSpot

logger = logging.getLogger("goldsignal")

GOLDAPI_BASE = "https://www.goldapi.io/api"
TROY_OUNCE_GRAMS = 31.1035


class GoldApiClient:
    """Async client for the GoldAPI.io spot and historical endpoints."""

    def __init__(self, config: Config, retry_base_delay: float = 0.5) -> None:
        self._config = config
        self._retry_base_delay = retry_base_delay
        self._headers = {
            "x-access-token": config.goldapi_key or "",
            "Content-Type": "application/json",
        }

    async def _get(self, path: str) -> dict[str, Any]:
        resp = await request_with_retry(
            "get",
            f"{GOLDAPI_BASE}/{path}",
            headers=self._headers,
            timeout=self._config.provider_timeout,
            max_retries=self._config.provider_max_retries,
            base_delay=self._retry_base_delay,
        )
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("GoldAPI returned a non-object payload")
        if data.get("error"):
            raise ValueError(f"GoldAPI error: {data['error']}")
        return data

    async def fetch_spot(self) -> Optional[GoldSpot]:
        """Live spot quote, or ``None`` when unconfigured or unavailable."""
        if not self._config.goldapi_key:
            return None
        try:
            d = await self._get("XAU/USD")
            mid = d.get("price")
            if mid is None:
                mid = (float(d["ask"]) + float(d["bid"])) / 2
            mid = float(mid)
            ch = float(d.get("ch") or 0.0)
            return GoldSpot(
                timestamp=int(d.get("timestamp") or 0),
                ask=float(d.get("ask") or mid),
                bid=float(d.get("bid") or mid),
                price=mid,
                ch=ch,
                chp=float(d.get("chp") or 0.0),
                prev_close_price=float(d.get("prev_close_price") or (mid - ch)),
                price_gram_24k=float(d.get("price_gram_24k") or mid / TROY_OUNCE_GRAMS),
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("GoldAPI spot fetch failed: %s", exc)
            return None

    async def fetch_historical(self, day: date) -> Optional[GoldHistorical]:
        """Reference price for one calendar day, or ``None``."""
        stamp = day.strftime("%Y%m%d")
        try:
            d = await self._get(f"XAU/USD/{stamp}")
            return GoldHistorical(
                date=stamp,
                price=float(d["price"]),
                ask=float(d["ask"]) if d.get("ask") is not None else None,
                bid=float(d["bid"]) if d.get("bid") is not None else None,
                ch=float(d.get("ch") or 0.0),
                chp=float(d.get("chp") or 0.0),
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("GoldAPI history fetch failed for %s: %s", stamp, exc)
            return None

    async def fetch_week_history(
        self, today: Optional[date] = None,
    ) -> list[GoldHistorical]:
        """Weekday prices for the seven days before *today*, oldest first.

        Requests run sequentially to conserve the provider's monthly quota.
        """
        if not self._config.goldapi_key:
            return []
        today = today or datetime.now(timezone.utc).date()

        results: list[GoldHistorical] = []
        for offset in range(1, 8):
            day = today - timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            hist = await self.fetch_historical(day)
            if hist is not None:
                results.append(hist)

        results.reverse()
        return results
