"""Narrative generator — short commentary and a long-form deep analysis.

Both texts use the OpenAI chat completions API when an OpenAI key is configured,
otherwise the Anthropic messages API when that key is configured.  Any
failure, or no key at all, yields the deterministic fallback text.
"""

import logging

import httpx

from goldsignal.config import Config
from goldsignal.data.http import request_with_retry
from goldsignal.narrative.context import NarrativeContext

logger = logging.getLogger("goldsignal")

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

SYSTEM_PROMPT = (
    "You are an expert XAU/USD (gold) trader using ICT methodology. "
    "Give clear, concise trading narratives based on the technical analysis "
    "provided. Mention the AMD phase, order blocks, FVGs and S/R levels when "
    "relevant and always mention risk/reward. This is analytical content, "
    "not financial advice."
)


def build_prompt(ctx: NarrativeContext) -> str:
    """User prompt describing the setup."""
    lines = [
        "Analyze this XAU/USD gold trading setup and provide a 2-3 sentence "
        "trading narrative.",
        "",
        "## Market data",
        f"- Price: ${ctx.price:.2f}",
        f"- RSI (14): {ctx.rsi:.1f}",
        f"- MACD histogram: {ctx.macd_histogram:.3f}",
        f"- ATR: {ctx.atr:.2f}",
        f"- Bollinger: upper ${ctx.bb_upper:.2f} | middle ${ctx.bb_middle:.2f}"
        f" | lower ${ctx.bb_lower:.2f}",
        "",
        "## Signal",
        f"- Action: {ctx.action} ({ctx.confidence:.0f}% confidence)",
        f"- Entry: ${ctx.entry:.2f}  Stop: ${ctx.stop_loss:.2f}",
        f"- TP1: ${ctx.tp1:.2f} ({ctx.rr1:.1f}R)  TP2: ${ctx.tp2:.2f} ({ctx.rr2:.1f}R)",
        "",
        "## AMD",
        f"- Phase: {ctx.phase} ({ctx.bias})",
        f"- Session range: ${ctx.session_low:.2f} to ${ctx.session_high:.2f}",
        "",
        "## ICT elements",
        f"- Order blocks: {ctx.order_block_count}",
        f"- FVGs: {ctx.fvg_count}",
        f"- S/R levels: {ctx.sr_level_count}",
    ]
    if ctx.major_level:
        lines.append(f"- Major level: {ctx.major_level}")
    lines += [
        "",
        "## Fundamentals",
        f"- News risk: {ctx.news_risk_level or 'unknown'}",
        f"- Gold bias: {ctx.news_bias or 'unknown'}",
    ]
    if ctx.spread is not None:
        lines.append(f"- Bid/ask spread: {ctx.spread:.2f}")
    lines += ["", "## Key confluences"]
    lines += [f"- {c}" for c in ctx.confluences] or ["- None"]
    return "\n".join(lines)


def fallback_narrative(ctx: NarrativeContext) -> str:
    """Deterministic narrative built from the context alone."""
    if ctx.action == "WAIT":
        reasons = []
        if ctx.news_avoid:
            reasons.append("high-impact news")
        if ctx.rsi > 70 or ctx.rsi < 30:
            reasons.append("RSI at extreme")
        if not reasons:
            reasons.append("no clear confluence")
        return (
            f"XAU/USD consolidating. AMD shows {ctx.phase} phase with "
            f"{ctx.bias.lower()} bias. RSI at {ctx.rsi:.1f}, waiting for "
            f"{' & '.join(reasons)} to resolve."
        )

    side = "long" if ctx.action == "BUY" else "short"
    tone = "bullish" if ctx.action == "BUY" else "bearish"

    if ctx.rsi < 40:
        rsi_note = f"RSI oversold ({ctx.rsi:.1f})"
    elif ctx.rsi > 60:
        rsi_note = f"RSI overbought ({ctx.rsi:.1f})"
    else:
        rsi_note = f"RSI neutral ({ctx.rsi:.1f})"

    if ctx.macd_histogram > 0:
        macd_note = "MACD bullish"
    elif ctx.macd_histogram < 0:
        macd_note = "MACD bearish"
    else:
        macd_note = "MACD neutral"

    text = (
        f"{ctx.confidence:.0f}% confidence {side} setup. "
        f"AMD in {ctx.phase.lower()} with {tone} bias. "
        f"{rsi_note}, {macd_note}. "
        f"Entry at ${ctx.entry:.2f} targeting ${ctx.tp1:.2f} for {ctx.rr1:.1f}R."
    )
    if ctx.confluences:
        text += f" {ctx.confluences[0]}."
    return text


DEEP_SYSTEM_PROMPT = (
    "You are a senior XAU/USD gold trader with expertise in ICT methodology, "
    "Smart Money Concepts and multi-timeframe analysis. Identify market "
    "structure, liquidity pools and likely stop hunts, order block "
    "interactions, macro factors and risk/reward scenarios. Be analytical, "
    "not promotional, and always weigh both the bull and the bear case."
)


def build_deep_prompt(ctx: NarrativeContext) -> str:
    """User prompt for the long-form structural analysis."""
    lines = [
        "# Deep XAU/USD market analysis",
        "",
        "## Price",
        f"Current price: ${ctx.price:.2f}",
        f"ATR (14): {ctx.atr:.2f}",
        "",
        "## Indicators",
        f"- RSI (14): {ctx.rsi:.1f}",
        f"- MACD: line {ctx.macd_line:.3f} | signal {ctx.macd_signal:.3f}"
        f" | hist {ctx.macd_histogram:.3f}",
        f"- Bollinger: {ctx.bb_lower:.2f} | {ctx.bb_middle:.2f} | {ctx.bb_upper:.2f}",
        "",
        "## Market structure (AMD)",
        f"- Phase: {ctx.phase}",
        f"- Bias: {ctx.bias}",
        f"- Session range: ${ctx.session_low:.2f} - ${ctx.session_high:.2f}",
        "",
        "## Order blocks (last 5)",
        *([f"- {n}" for n in ctx.order_block_notes] or ["None detected"]),
        "",
        "## Fair value gaps (last 3)",
        *([f"- {n}" for n in ctx.fvg_notes] or ["None detected"]),
        "",
        "## Support & resistance",
        *([f"- {n}" for n in ctx.sr_notes] or ["None identified"]),
        "",
        "## Liquidity pools",
        *([f"- {n}" for n in ctx.liquidity_notes] or ["None identified"]),
        "",
        "## Current signal",
        f"- Action: {ctx.action}",
        f"- Entry: ${ctx.entry:.2f}",
        f"- SL: ${ctx.stop_loss:.2f}",
        f"- TP1: ${ctx.tp1:.2f} ({ctx.rr1:.1f}R)",
        f"- TP2: ${ctx.tp2:.2f} ({ctx.rr2:.1f}R)",
        f"- Confidence: {ctx.confidence:.0f}%",
        "",
        "## News & fundamentals",
        f"- Risk level: {ctx.news_risk_level or 'UNKNOWN'}",
        f"- Gold bias: {ctx.news_bias or 'NEUTRAL'}",
        f"- Summary: {ctx.news_summary or 'No clear fundamental bias'}",
    ]
    if ctx.spread is not None:
        lines += ["", "## Spot market", f"- Spread: {ctx.spread:.2f}"]
        if ctx.weekly_position is not None:
            lines.append(f"- Weekly range position: {ctx.weekly_position:.0f}%")
    if ctx.pattern_notes:
        lines += ["", "## Candlestick patterns"]
        lines += [f"- {n}" for n in ctx.pattern_notes]
    lines += [
        "",
        "Provide a comprehensive market analysis covering:",
        "1. Current market structure and likely phase",
        "2. Liquidity analysis (where might stop hunts occur?)",
        "3. Order block and FVG confluence zones",
        "4. Bull and bear case scenarios",
        "5. Risk assessment and optimal entry zones",
    ]
    return "\n".join(lines)


def fallback_deep_analysis(ctx: NarrativeContext) -> str:
    """Deterministic long-form analysis: the short narrative plus structure."""
    parts = [fallback_narrative(ctx)]
    parts.append(
        f"Structure: {ctx.order_block_count} order blocks, {ctx.fvg_count} FVGs "
        f"and {ctx.sr_level_count} S/R levels inside a session range of "
        f"${ctx.session_low:.2f} - ${ctx.session_high:.2f}."
    )
    if ctx.major_level:
        parts.append(f"Key level: {ctx.major_level}.")
    if ctx.liquidity_notes:
        parts.append(f"Liquidity: {'; '.join(ctx.liquidity_notes)}.")
    parts.append(
        f"Bull case: hold above ${ctx.session_low:.2f}. "
        f"Bear case: rejection below ${ctx.session_high:.2f}."
    )
    return " ".join(parts)


class NarrativeGenerator:
    """Generates narratives through whichever LLM provider is configured."""

    def __init__(self, config: Config, retry_base_delay: float = 0.5) -> None:
        self._config = config
        self._retry_base_delay = retry_base_delay

    @property
    def provider(self) -> str:
        """``"openai"``, ``"anthropic"`` or ``"fallback"``."""
        if self._config.openai_api_key:
            return "openai"
        if self._config.anthropic_api_key:
            return "anthropic"
        return "fallback"

    async def _post(self, url: str, headers: dict[str, str], body: dict) -> dict:
        resp = await request_with_retry(
            "post",
            url,
            headers=headers,
            json=body,
            timeout=self._config.provider_timeout,
            max_retries=self._config.provider_max_retries,
            base_delay=self._retry_base_delay,
        )
        return resp.json()

    async def _openai(self, system: str, prompt: str, max_tokens: int, temperature: float) -> str:
        data = await self._post(
            OPENAI_URL,
            {
                "Authorization": f"Bearer {self._config.openai_api_key}",
                "Content-Type": "application/json",
            },
            {
                "model": self._config.openai_model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                "max_tokens": max_tokens,
                "temperature": temperature,
            },
        )
        return data["choices"][0]["message"]["content"]

    async def _anthropic(self, system: str, prompt: str, max_tokens: int, temperature: float) -> str:
        data = await self._post(
            ANTHROPIC_URL,
            {
                "x-api-key": self._config.anthropic_api_key or "",
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            },
            {
                "model": self._config.anthropic_model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "system": system,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        return data["content"][0]["text"]

    async def _complete(
        self,
        kind: str,
        system: str,
        prompt: str,
        fallback: str,
        max_tokens: int,
        temperature: float,
    ) -> tuple[str, str]:
        provider = self.provider
        if provider == "fallback":
            return fallback, "fallback"

        call = self._openai if provider == "openai" else self._anthropic
        try:
            text = await call(system, prompt, max_tokens, temperature)
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("%s %s failed, using fallback: %s", provider, kind, exc)
            return fallback, "fallback"

        text = (text or "").strip()
        if not text:
            logger.warning("%s returned an empty %s, using fallback", provider, kind)
            return fallback, "fallback"
        return text, provider

    async def generate(self, ctx: NarrativeContext) -> tuple[str, str]:
        """Return ``(narrative, source)`` where source names the provider used."""
        max_tokens = 300 if self.provider == "openai" else 400
        return await self._complete(
            "narrative", SYSTEM_PROMPT, build_prompt(ctx),
            fallback_narrative(ctx), max_tokens, 0.7,
        )

    async def deep_analysis(self, ctx: NarrativeContext) -> tuple[str, str]:
        """Return ``(analysis, source)``: the long-form structural read."""
        return await self._complete(
            "deep analysis", DEEP_SYSTEM_PROMPT, build_deep_prompt(ctx),
            fallback_deep_analysis(ctx), 800, 0.5,
        )
