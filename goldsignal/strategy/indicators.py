"""Technical indicators — ATR, EMA, RSI, MACD, Bollinger Bands. Pure functions, no I/O.

``compute_indicators`` bundles the latest value of each indicator and
substitutes a neutral value for any indicator that lacks data, so the
signal pipeline never fails on a short or missing series.
"""

import math
from dataclasses import dataclass

from goldsignal.strategy.models import CandleData


# Neutral fallbacks used when an indicator cannot be computed
NEUTRAL_RSI = 50.0
NEUTRAL_ATR = 15.0
NEUTRAL_BAND_WIDTH = 50.0


@dataclass(frozen=True)
class MACDValues:
    """Latest MACD line, signal line and histogram."""

    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class BollingerValues:
    """Latest Bollinger band values."""

    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class IndicatorBundle:
    """Indicator snapshot consumed by the primary signal builder."""

    rsi: float
    macd: MACDValues
    bbands: BollingerValues
    atr: float

    @classmethod
    def neutral(cls, price: float) -> "IndicatorBundle":
        """Indicator values that carry no directional information."""
        return cls(
            rsi=NEUTRAL_RSI,
            macd=MACDValues(),
            bbands=BollingerValues(
                upper=price + NEUTRAL_BAND_WIDTH,
                middle=price,
                lower=price - NEUTRAL_BAND_WIDTH,
            ),
            atr=NEUTRAL_ATR,
        )


def calculate_atr(candles: list[CandleData], period: int = 14) -> float:
    """Calculate the Average True Range over *period* candles.

    Uses the standard True Range definition:
        TR = max(high - low, |high - prev_close|, |low - prev_close|)

    Requires at least ``period + 1`` candles (need a previous close for TR).
    Returns the simple average of the last *period* true ranges.

    Raises ``ValueError`` if insufficient data.
    """
    if len(candles) < period + 1:
        raise ValueError(
            f"Need at least {period + 1} candles for ATR({period}), "
            f"got {len(candles)}"
        )

    true_ranges: list[float] = []
    for i in range(1, len(candles)):
        high = candles[i].high
        low = candles[i].low
        prev_close = candles[i - 1].close
        tr = max(
            high - low,
            abs(high - prev_close),
            abs(low - prev_close),
        )
        true_ranges.append(tr)

    recent = true_ranges[-period:]
    return sum(recent) / len(recent)


def _ema_series(values: list[float], period: int) -> list[float]:
    """EMA over raw values, seeded with the SMA of the first *period* values."""
    k = 2.0 / (period + 1)
    ema: list[float] = [float("nan")] * len(values)
    ema[period - 1] = sum(values[:period]) / period
    for i in range(period, len(values)):
        ema[i] = values[i] * k + ema[i - 1] * (1 - k)
    return ema


def calculate_ema(candles: list[CandleData], period: int) -> list[float]:
    """Calculate an Exponential Moving Average series.

    Uses the standard EMA formula:
        ``EMA_today = close × k + EMA_yesterday × (1 - k)``
    where ``k = 2 / (period + 1)``.

    Requires at least *period* candles. The first EMA value is seeded
    with the SMA of the first *period* closes.

    Returns the full EMA series (same length as *candles*). Entries
    before the seed period are set to ``float('nan')``.

    Raises ``ValueError`` if fewer than *period* candles are provided.
    """
    if len(candles) < period:
        raise ValueError(
            f"Need at least {period} candles for EMA({period}), "
            f"got {len(candles)}"
        )
    return _ema_series([c.close for c in candles], period)


# ── RSI ──────────────────────────────────────────────────────────────────


def calculate_rsi(candles: list[CandleData], period: int = 14) -> list[float]:
    """Calculate Wilder's Relative Strength Index.

    Algorithm (Wilder-smoothed):
        1. delta = close[i] - close[i-1]
        2. Separate gains (positive) and losses (|negative|).
        3. Seed average gain/loss = SMA of first *period* deltas.
        4. Subsequent: avg = (prev_avg × (period-1) + current) / period
        5. RS = avg_gain / avg_loss
        6. RSI = 100 - 100 / (1 + RS)

    A completely flat series has no gains and no losses and reads 50.

    Requires at least ``period + 1`` candles.

    Returns a list the same length as *candles*.  Entries before the
    seed period are ``float('nan')``.
    """
    if len(candles) < period + 1:
        raise ValueError(
            f"Need at least {period + 1} candles for RSI({period}), "
            f"got {len(candles)}"
        )

    closes = [c.close for c in candles]
    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]

    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    rsi: list[float] = [float("nan")] * len(candles)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    def _rsi_from_avgs(ag: float, al: float) -> float:
        if al == 0:
            return NEUTRAL_RSI if ag == 0 else 100.0
        rs = ag / al
        return 100.0 - 100.0 / (1.0 + rs)

    rsi[period] = _rsi_from_avgs(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        # Index in rsi is i+1 because deltas are offset by 1
        rsi[i + 1] = _rsi_from_avgs(avg_gain, avg_loss)

    return rsi


# ── MACD ─────────────────────────────────────────────────────────────────


def calculate_macd(
    candles: list[CandleData],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDValues:
    """Calculate the latest MACD(12, 26, 9) values.

    MACD line = EMA(fast) − EMA(slow); signal = EMA(signal) of the MACD
    line; histogram = MACD − signal.

    Requires at least ``slow + signal`` candles.
    """
    min_candles = slow + signal
    if len(candles) < min_candles:
        raise ValueError(
            f"Need at least {min_candles} candles for MACD({fast},{slow},{signal}), "
            f"got {len(candles)}"
        )

    closes = [c.close for c in candles]
    ema_fast = _ema_series(closes, fast)
    ema_slow = _ema_series(closes, slow)
    macd_line = [f - s for f, s in zip(ema_fast[slow - 1:], ema_slow[slow - 1:])]
    signal_line = _ema_series(macd_line, signal)

    macd = macd_line[-1]
    sig = signal_line[-1]
    return MACDValues(macd=macd, signal=sig, histogram=macd - sig)


# ── Bollinger Bands ──────────────────────────────────────────────────────


def calculate_bollinger(
    candles: list[CandleData],
    period: int = 20,
    std_dev: float = 2.0,
) -> tuple[list[float], list[float], list[float]]:
    """Calculate Bollinger Bands.

    Middle = SMA(close, *period*)
    Upper  = middle + *std_dev* × σ
    Lower  = middle − *std_dev* × σ

    Requires at least *period* candles.

    Returns ``(upper, middle, lower)`` — each list has the same length
    as *candles*.  Entries before the seed period are ``float('nan')``.
    """
    if len(candles) < period:
        raise ValueError(
            f"Need at least {period} candles for Bollinger({period}), "
            f"got {len(candles)}"
        )

    closes = [c.close for c in candles]
    n = len(closes)

    upper: list[float] = [float("nan")] * n
    middle: list[float] = [float("nan")] * n
    lower: list[float] = [float("nan")] * n

    for i in range(period - 1, n):
        window = closes[i - period + 1 : i + 1]
        sma = sum(window) / period
        variance = sum((x - sma) ** 2 for x in window) / period
        sigma = math.sqrt(variance)

        middle[i] = sma
        upper[i] = sma + std_dev * sigma
        lower[i] = sma - std_dev * sigma

    return upper, middle, lower


# ── Snapshot ─────────────────────────────────────────────────────────────


def compute_indicators(candles: list[CandleData]) -> IndicatorBundle:
    """Latest RSI(14), MACD, Bollinger(20) and ATR(14) for *candles*.

    Each indicator falls back to its neutral value independently when
    the series is too short.
    """
    price = candles[-1].close if candles else 0.0
    neutral = IndicatorBundle.neutral(price)

    try:
        rsi = calculate_rsi(candles)[-1]
    except ValueError:
        rsi = neutral.rsi
    try:
        macd = calculate_macd(candles)
    except ValueError:
        macd = neutral.macd
    try:
        upper, middle, lower = calculate_bollinger(candles)
        bbands = BollingerValues(upper=upper[-1], middle=middle[-1], lower=lower[-1])
    except ValueError:
        bbands = neutral.bbands
    try:
        atr = calculate_atr(candles)
    except ValueError:
        atr = neutral.atr

    return IndicatorBundle(rsi=rsi, macd=macd, bbands=bbands, atr=atr)
