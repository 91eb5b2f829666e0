"""GoldSignal — application configuration.

Loads .env variables into a typed config object.  Every provider key is
optional: a missing key routes that collaborator to its fallback.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _optional(name: str) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    return value or None


def _clamped_int(name: str, default: int, low: int, high: int) -> int:
    """Read an integer variable and clamp it to ``[low, high]``.

    Raises ``ValueError`` naming the variable when it is not an integer.
    """
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None
    return max(low, min(high, value))


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    finnhub_api_key: Optional[str]
    alphavantage_api_key: Optional[str]
    marketstack_api_key: Optional[str]
    goldapi_key: Optional[str]
    news_api_key: Optional[str]
    openai_api_key: Optional[str]
    anthropic_api_key: Optional[str]
    openai_model: str
    anthropic_model: str
    default_symbol: str
    provider_timeout_ms: int
    provider_max_retries: int
    log_level: str
    host: str
    port: int

    @property
    def provider_timeout(self) -> float:
        """Per-request timeout in seconds for httpx."""
        return self.provider_timeout_ms / 1000.0

    @property
    def log_level_value(self) -> int:
        """The ``logging`` module constant for ``log_level``."""
        return getattr(logging, self.log_level)


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the variable when ``LOG_LEVEL`` is not a
    known level or a numeric variable cannot be parsed.
    """
    load_dotenv(dotenv_path=env_path)

    log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"LOG_LEVEL must be one of {', '.join(_VALID_LOG_LEVELS)}, "
            f"got '{log_level}'"
        )

    return Config(
        finnhub_api_key=_optional("FINNHUB_API_KEY"),
        alphavantage_api_key=_optional("ALPHAVANTAGE_API_KEY"),
        marketstack_api_key=_optional("MARKETSTACK_API_KEY"),
        goldapi_key=_optional("GOLDAPI_KEY"),
        news_api_key=_optional("NEWS_API_KEY"),
        openai_api_key=_optional("OPENAI_API_KEY"),
        anthropic_api_key=_optional("ANTHROPIC_API_KEY"),
        openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
        anthropic_model=os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
        default_symbol=os.environ.get("DEFAULT_SYMBOL", "XAU/USD"),
        provider_timeout_ms=_clamped_int("PROVIDER_TIMEOUT_MS", 8000, 1000, 60000),
        provider_max_retries=_clamped_int("PROVIDER_MAX_RETRIES", 3, 1, 5),
        log_level=log_level,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=_clamped_int("PORT", 8080, 1, 65535),
    )
