"""Economic calendar async client (Trading Economics).

Keeps gold-relevant events only: USD, XAU, EUR and GBP currencies with
High or Medium impact, at most 30.  Any failure, or an empty result,
falls back to a built-in calendar of the major scheduled USD releases.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from goldsignal.config import Config
from goldsignal.data.http import request_with_retry
from goldsignal.data.models import NewsEvent

logger = logging.getLogger("goldsignal")

CALENDAR_URL = "https://api.tradingeconomics.com/calendar"
RELEVANT_CURRENCIES = {"USD", "XAU", "EUR", "GBP"}
RELEVANT_IMPACTS = {"High", "Medium"}
MAX_EVENTS = 30


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(str(value).rstrip("%KMB").replace(",", ""))
    except ValueError:
        return None


def parse_calendar(rows: list[dict[str, Any]]) -> list[NewsEvent]:
    """Filter and convert raw calendar rows to ``NewsEvent`` objects."""
    events: list[NewsEvent] = []
    for i, row in enumerate(rows):
        currency = row.get("Currency") or ""
        impact = row.get("Impact") or ""
        if currency not in RELEVANT_CURRENCIES or impact not in RELEVANT_IMPACTS:
            continue
        events.append(
            NewsEvent(
                id=str(row.get("ID") or row.get("CalendarId") or i),
                country=row.get("Country") or "",
                currency=currency,
                event=row.get("Event") or "",
                date=row.get("Date") or "",
                impact=impact,
                category=row.get("Category") or "",
                actual=_to_float(row.get("Actual")),
                forecast=_to_float(row.get("Forecast")),
                previous=_to_float(row.get("Previous")),
                period=row.get("Period") or "",
                unit=row.get("Unit") or None,
            )
        )
        if len(events) >= MAX_EVENTS:
            break
    return events


def mock_calendar(now: Optional[datetime] = None) -> list[NewsEvent]:
    """Placeholder calendar: NFP, CPI, GDP and the Fed decision in the coming days."""
    now = now or datetime.now(timezone.utc)

    def _at(days: int) -> str:
        return (now + timedelta(days=days)).isoformat()

    return [
        NewsEvent(
            id="1", country="United States", currency="USD",
            event="Non-Farm Payrolls", date=_at(2), impact="High",
            category="Employment", forecast=180000, previous=175000, unit="K",
        ),
        NewsEvent(
            id="2", country="United States", currency="USD",
            event="Federal Funds Rate", date=_at(5), impact="High",
            category="Central Bank", forecast=5.25, previous=5.25, unit="%",
        ),
        NewsEvent(
            id="3", country="United States", currency="USD",
            event="CPI (YoY)", date=_at(3), impact="High",
            category="Inflation", forecast=2.9, previous=2.8, unit="%",
        ),
        NewsEvent(
            id="4", country="United States", currency="USD",
            event="GDP (QoQ)", date=_at(4), impact="High",
            category="GDP", forecast=2.3, previous=2.5, unit="%",
        ),
    ]


class NewsClient:
    """Async economic calendar client with a mock fallback."""

    def __init__(self, config: Config, retry_base_delay: float = 0.5) -> None:
        self._config = config
        self._retry_base_delay = retry_base_delay

    async def _fetch(self, days: int, now: datetime) -> list[NewsEvent]:
        resp = await request_with_retry(
            "get",
            CALENDAR_URL,
            headers={"Accept": "application/json"},
            params={
                "c": self._config.news_api_key,
                "d1": (now - timedelta(days=days)).date().isoformat(),
                "d2": (now + timedelta(days=7)).date().isoformat(),
                "f": "json",
            },
            timeout=self._config.provider_timeout,
            max_retries=self._config.provider_max_retries,
            base_delay=self._retry_base_delay,
        )
        data = resp.json()
        if not isinstance(data, list):
            raise ValueError("calendar payload is not a list")
        return parse_calendar(data)

    async def fetch_events(
        self, week: bool = False, now: Optional[datetime] = None,
    ) -> list[NewsEvent]:
        """Fetch today's (or, with *week*, the past week's) calendar events.

        Returns:
            Gold-relevant events; the mock calendar when the key is missing,
            the request fails, or nothing relevant came back.
        """
        now = now or datetime.now(timezone.utc)
        if not self._config.news_api_key:
            return mock_calendar(now)

        try:
            events = await self._fetch(7 if week else 1, now)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Economic calendar fetch failed, using mock data: %s", exc)
            return mock_calendar(now)

        if not events:
            logger.warning("Economic calendar returned no relevant events, using mock data")
            return mock_calendar(now)
        return events
