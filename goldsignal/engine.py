"""GoldSignal — analysis engine (orchestration).

Connects the data collaborators, the pure signal pipeline and the
narrative generator.  Collaborators → pipeline → narrative → JSON-ready
dict.  Every collaborator degrades to a fallback on failure, so
``analyze`` always produces a result.
"""

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Optional

from goldsignal.config import Config
from goldsignal.data.cache import CandleCache
from goldsignal.data.goldapi_client import GoldApiClient
from goldsignal.data.market_client import MarketDataClient, indicators_for, normalize_symbol
from goldsignal.data.news_client import NewsClient
from goldsignal.narrative.context import build_narrative_context
from goldsignal.narrative.generator import NarrativeGenerator
from goldsignal.strategy.news_risk import (
    MACRO_CORRELATIONS,
    assess_news_risk,
    compute_news_bias,
    rate_events_by_impact,
    upcoming_high_impact,
)
from goldsignal.strategy.pipeline import analyze_market
from goldsignal.strategy.session_filter import get_current_session, session_name
from goldsignal.strategy.spot_insights import compute_spot_insights

logger = logging.getLogger("goldsignal")

VALID_INTERVALS = ("15min", "1h", "4h", "1day")
CANDLE_COUNT = 150
TODAY_NEWS_LIMIT = 20


class AnalysisEngine:
    """Runs one full market analysis per call.

    Args:
        config: Application configuration.
        market: Market data client (built from *config* when omitted).
        goldapi: GoldAPI spot client.
        news: Economic calendar client.
        narrator: Narrative generator.
        clock: Returns the current UTC time (injectable for tests).
    """

    def __init__(
        self,
        config: Config,
        market: Optional[MarketDataClient] = None,
        goldapi: Optional[GoldApiClient] = None,
        news: Optional[NewsClient] = None,
        narrator: Optional[NarrativeGenerator] = None,
        clock=None,
    ) -> None:
        self._config = config
        self._market = market or MarketDataClient(config, cache=CandleCache())
        self._goldapi = goldapi or GoldApiClient(config)
        self._news = news or NewsClient(config)
        self._narrator = narrator or NarrativeGenerator(config)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def analyze(
        self, symbol: Optional[str] = None, interval: str = "1h",
    ) -> dict[str, Any]:
        """Analyse *symbol* on *interval* and return a JSON-ready dict.

        Raises:
            ValueError: If *interval* is not one of ``VALID_INTERVALS``.
        """
        if interval not in VALID_INTERVALS:
            raise ValueError(
                f"interval must be one of {', '.join(VALID_INTERVALS)}, got '{interval}'"
            )
        symbol = normalize_symbol(symbol or self._config.default_symbol)
        now = self._clock()
        logger.info("Analysing %s %s", symbol, interval)

        (quote, quote_provider), (candles, provider), events, week_events, spot = (
            await asyncio.gather(
                self._market.fetch_quote_with_provider(symbol),
                self._market.fetch_candles_with_provider(symbol, interval, CANDLE_COUNT),
                self._news.fetch_events(now=now),
                self._news.fetch_events(week=True, now=now),
                self._goldapi.fetch_spot(),
            )
        )

        spot_insights = None
        if spot is not None:
            history = await self._goldapi.fetch_week_history(now.date())
            spot_insights = compute_spot_insights(spot, history)

        news_risk = assess_news_risk(events, now)
        news_bias = compute_news_bias(events)
        price = spot.price if spot is not None else quote.close
        indicators = indicators_for(candles, provider, price)

        result = analyze_market(
            candles,
            indicators=indicators,
            news_risk=news_risk,
            news_bias=news_bias,
            spot_insights=spot_insights,
            interval=interval,
            current_price=price,
        )
        logger.info(
            "%s %s → %s %.0f%% (%s, %d candles from %s)",
            symbol, interval, result.signal.action, result.signal.confidence,
            result.phase.phase, len(candles), provider,
        )

        ctx = build_narrative_context(
            result, indicators, price,
            news_risk=news_risk, news_bias=news_bias, spot_insights=spot_insights,
        )
        (narrative, narrative_source), (deep_analysis, deep_source) = await asyncio.gather(
            self._narrator.generate(ctx),
            self._narrator.deep_analysis(ctx),
        )
        session = get_current_session(now.hour)

        return {
            "symbol": symbol,
            "interval": interval,
            "timestamp": now.isoformat(),
            "price": price,
            "provider": provider,
            "quote_provider": quote_provider,
            "quote": asdict(quote),
            "signal": asdict(result.signal),
            "primary": asdict(result.primary),
            "price_action": asdict(result.price_action),
            "phase": asdict(result.phase),
            "order_blocks": [asdict(ob) for ob in result.order_blocks],
            "fvgs": [asdict(g) for g in result.fvgs],
            "sr_levels": [asdict(lvl) for lvl in result.sr_levels],
            "liquidity_zones": [asdict(z) for z in result.liquidity_zones],
            "structure_events": [asdict(e) for e in result.structure_events],
            "candles": [asdict(c) for c in candles],
            "indicators": asdict(indicators),
            "news_risk": asdict(news_risk),
            "news_bias": asdict(news_bias),
            "news": {
                "today": [asdict(e) for e in events[:TODAY_NEWS_LIMIT]],
                "upcoming": [asdict(e) for e in upcoming_high_impact(week_events, now)],
            },
            "event_impacts": [asdict(i) for i in rate_events_by_impact(week_events)],
            "macro_correlations": [asdict(m) for m in MACRO_CORRELATIONS],
            "spot": asdict(spot) if spot is not None else None,
            "spot_insights": asdict(spot_insights) if spot_insights is not None else None,
            "session": {"code": session, "name": session_name(session)},
            "narrative": narrative,
            "narrative_source": narrative_source,
            "deep_analysis": deep_analysis,
            "deep_analysis_source": deep_source,
        }
