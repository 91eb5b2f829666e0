"""Strategy data models — typed representations for detector and signal outputs."""

from dataclasses import dataclass, field
from typing import Literal, Optional


Action = Literal["BUY", "SELL", "WAIT"]
Direction = Literal["BULLISH", "BEARISH", "NEUTRAL"]
PhaseName = Literal[
    "ACCUMULATION", "DISTRIBUTION", "MANIPULATION", "DECLINE", "TRANSITION",
]
ZoneStrength = Literal["STRONG", "MODERATE", "WEAK"]


@dataclass(frozen=True)
class CandleData:
    """A single candlestick bar for strategy consumption."""

    time: int  # epoch seconds
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


# ── Regime ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MarketPhase:
    """AMD regime classification of the recent candle window."""

    phase: PhaseName
    bias: Direction
    session_high: float
    session_low: float
    strength: float  # heuristic confidence 0-100, not a probability
    description: str
    manipulation: str = ""
    asia_high: Optional[float] = None
    asia_low: Optional[float] = None
    london_high: Optional[float] = None
    london_low: Optional[float] = None


# ── Zones ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class OrderBlock:
    """An institutional order-flow zone left by a reversal impulse."""

    id: str
    type: Literal["BULLISH", "BEARISH"]
    top: float
    bottom: float
    body_top: float
    body_bottom: float
    time: int
    strength: ZoneStrength
    touched: int = 0
    broken: bool = False


@dataclass(frozen=True)
class FairValueGap:
    """A three-bar price imbalance."""

    id: str
    type: Literal["BULLISH", "BEARISH"]
    top: float
    bottom: float
    size: float
    midpoint: float
    time: int
    mitigated: bool = False


@dataclass(frozen=True)
class SRLevel:
    """A clustered support or resistance level."""

    price: float
    type: Literal["SUPPORT", "RESISTANCE"]
    touches: int
    strength: float  # 0-1
    broken: bool = False
    recent_test: bool = False


@dataclass(frozen=True)
class LiquidityZone:
    """Resting stop orders beyond a swing high or low."""

    id: str
    type: Literal["BUY_STOPS", "SELL_STOPS"]
    price: float
    strength: float
    swept: bool
    time: int


# ── Pattern observations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CandlestickPattern:
    """A single- or multi-bar candlestick formation."""

    name: str
    direction: Direction
    strength: ZoneStrength
    confidence: float
    index: int  # position in the candle list the pattern ends on
    time: int
    description: str


@dataclass(frozen=True)
class ChartPattern:
    """A multi-bar chart formation with breakout and projected target."""

    name: str
    type: Literal["continuation", "reversal"]
    direction: Literal["BULLISH", "BEARISH"]
    start_index: int
    end_index: int
    breakout_level: float
    target_level: float
    confidence: float


@dataclass(frozen=True)
class StructureEvent:
    """A market-structure observation (CHoCH, BOS, long wick, doji)."""

    type: Literal["CHoCH", "BOS", "LONG_WICK", "DOJI"]
    direction: Direction
    confidence: float
    price: float
    index: int
    description: str


@dataclass(frozen=True)
class WickAnalysis:
    """Wick and body proportions of one bar."""

    upper_wick_ratio: float
    lower_wick_ratio: float
    body_ratio: float
    sentiment: Direction
    rejection_type: Literal["upper", "lower", "none"]
    significance: float


# ── Signals ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PipDistances:
    """Level distances expressed in pips (0.1 of a dollar for gold)."""

    sl: float
    tp1: float
    tp2: float
    tp3: float


@dataclass(frozen=True)
class GoldSignal:
    """The final actionable decision."""

    action: Action
    confidence: float
    entry: float
    entry_zone: tuple[float, float]
    stop_loss: float
    tp1: float
    tp2: float
    tp3: float
    rr1: float
    rr2: float
    rr3: float
    pips: PipDistances
    confluences: tuple[str, ...]
    invalidation: str
    session_bias: str
    regime_score: float = 0.0
    pattern_score: float = 0.0
    overall_score: float = 0.0
    price_action_patterns: tuple[str, ...] = ()


@dataclass(frozen=True)
class PriceActionSignal:
    """Directional signal derived purely from price-action patterns."""

    action: Action
    confidence: float
    entry: float
    stop_loss: float
    take_profit1: float
    take_profit2: float
    risk_reward: float
    patterns: tuple[CandlestickPattern, ...]
    chart_pattern: Optional[ChartPattern]
    wick_analysis: WickAnalysis
    confluences: tuple[str, ...]


# ── External context ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class NewsRisk:
    """Scheduled-news risk assessment."""

    level: Literal["RED", "ORANGE", "YELLOW", "GREEN"]
    label: str
    reason: str
    avoid: bool
    upcoming_count: int = 0
    events: tuple[str, ...] = ()  # event names


@dataclass(frozen=True)
class NewsBias:
    """Fundamental directional bias for gold."""

    bias: Literal["BULLISH_GOLD", "BEARISH_GOLD", "NEUTRAL"]
    score: float
    summary: str = ""
    factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class WeeklyRange:
    """Where spot sits inside the trailing week's range."""

    high: float
    low: float
    midpoint: float
    position_pct: float


@dataclass(frozen=True)
class SpotInsights:
    """Derived context from the live spot quote."""

    spread_quality: Literal["TIGHT", "NORMAL", "WIDE"]
    spread: float
    spread_note: str
    entry_note: str
    weekly_range: Optional[WeeklyRange] = None
    weekly_trend: Optional[Literal["UPTREND", "DOWNTREND", "SIDEWAYS"]] = None


@dataclass(frozen=True)
class AnalysisResult:
    """Every intermediate output of one pipeline run."""

    signal: GoldSignal
    primary: GoldSignal
    price_action: PriceActionSignal
    phase: MarketPhase
    order_blocks: list[OrderBlock] = field(default_factory=list)
    fvgs: list[FairValueGap] = field(default_factory=list)
    sr_levels: list[SRLevel] = field(default_factory=list)
    liquidity_zones: list[LiquidityZone] = field(default_factory=list)
    structure_events: list[StructureEvent] = field(default_factory=list)
