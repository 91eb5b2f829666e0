"""Support/Resistance level detection — pure functions.

Swing highs and lows are clustered by a dollar tolerance; each cluster
becomes one level whose strength grows with its member count.
"""

from goldsignal.strategy.models import CandleData, SRLevel


def find_swing_highs(
    candles: list[CandleData], window: int = 5,
) -> list[tuple[int, float]]:
    """Identify swing highs as ``(index, price)`` pairs.

    A swing high is a candle whose high is strictly higher than the highs
    of the *window* candles on each side.
    """
    highs: list[tuple[int, float]] = []
    for i in range(window, len(candles) - window):
        high = candles[i].high
        is_swing = True
        for j in range(1, window + 1):
            if candles[i - j].high >= high or candles[i + j].high >= high:
                is_swing = False
                break
        if is_swing:
            highs.append((i, high))
    return highs


def find_swing_lows(
    candles: list[CandleData], window: int = 5,
) -> list[tuple[int, float]]:
    """Identify swing lows as ``(index, price)`` pairs.

    A swing low is a candle whose low is strictly lower than the lows of
    the *window* candles on each side.
    """
    lows: list[tuple[int, float]] = []
    for i in range(window, len(candles) - window):
        low = candles[i].low
        is_swing = True
        for j in range(1, window + 1):
            if candles[i - j].low <= low or candles[i + j].low <= low:
                is_swing = False
                break
        if is_swing:
            lows.append((i, low))
    return lows


def _cluster_levels(
    levels: list[float], tolerance: float = 15.0
) -> list[tuple[float, int]]:
    """Cluster nearby price levels.

    Sorted levels join the current cluster while the gap to its last
    member is below *tolerance* (dollars).  Returns a list of
    (average_price, touch_count) tuples sorted by price.
    """
    if not levels:
        return []

    sorted_levels = sorted(levels)
    clusters: list[list[float]] = []
    current_cluster: list[float] = [sorted_levels[0]]

    for level in sorted_levels[1:]:
        if level - current_cluster[-1] < tolerance:
            current_cluster.append(level)
        else:
            clusters.append(current_cluster)
            current_cluster = [level]
    clusters.append(current_cluster)

    return [
        (sum(c) / len(c), len(c))
        for c in clusters
    ]


def detect_sr_levels(
    candles: list[CandleData],
    swing_window: int = 5,
    tolerance: float = 15.0,
    max_levels: int = 6,
    test_distance: float = 10.0,
    test_bars: int = 10,
) -> list[SRLevel]:
    """Detect active support and resistance levels.

    Args:
        candles: Candle history, oldest-first.
        swing_window: Half-window size for swing detection.
        tolerance: Clustering tolerance in dollars.
        max_levels: Maximum number of levels returned.
        test_distance: Distance (dollars) within which a recent bar
            counts as a test of the level.
        test_bars: Number of trailing bars checked for tests.

    Returns:
        Unbroken ``SRLevel`` objects sorted by descending strength.
        Fewer than ``2 * swing_window + 1`` candles returns an empty list.
    """
    if len(candles) < 2 * swing_window + 1:
        return []

    swing_highs = [p for _, p in find_swing_highs(candles, window=swing_window)]
    swing_lows = [p for _, p in find_swing_lows(candles, window=swing_window)]

    latest_close = candles[-1].close
    recent = candles[-test_bars:]

    def _level(price: float, touches: int, kind: str) -> SRLevel:
        if kind == "SUPPORT":
            broken = latest_close < price
        else:
            broken = latest_close > price
        recent_test = any(
            abs(c.low - price) < test_distance or abs(c.high - price) < test_distance
            for c in recent
        )
        return SRLevel(
            price=round(price, 2),
            type=kind,
            touches=touches,
            strength=min(touches / 5, 1.0),
            broken=broken,
            recent_test=recent_test,
        )

    levels = [
        _level(price, touches, "SUPPORT")
        for price, touches in _cluster_levels(swing_lows, tolerance)
    ] + [
        _level(price, touches, "RESISTANCE")
        for price, touches in _cluster_levels(swing_highs, tolerance)
    ]

    active = [lvl for lvl in levels if not lvl.broken]
    active.sort(key=lambda lvl: lvl.strength, reverse=True)
    return active[:max_levels]
