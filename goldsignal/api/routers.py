"""API routers — /analyze and /signals/history endpoints.

No business logic. Delegates to the injected ``AnalysisEngine``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from goldsignal.engine import VALID_INTERVALS

logger = logging.getLogger("goldsignal")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_engine = None  # Set via configure_routers()
_signal_history: list = []  # Recent signal log (max 50 entries)
_HISTORY_LIMIT = 50


def configure_routers(engine=None) -> None:
    """Inject dependencies from the application startup.

    Args:
        engine: An ``AnalysisEngine`` instance (or duck-type for tests).
    """
    global _engine  # noqa: PLW0603
    _engine = engine
    _signal_history.clear()


def _record_signal(result: dict) -> None:
    signal = result.get("signal") or {}
    _signal_history.append({
        "timestamp": result.get("timestamp"),
        "symbol": result.get("symbol"),
        "interval": result.get("interval"),
        "action": signal.get("action"),
        "confidence": signal.get("confidence"),
        "entry": signal.get("entry"),
    })
    if len(_signal_history) > _HISTORY_LIMIT:
        del _signal_history[: len(_signal_history) - _HISTORY_LIMIT]


@router.post("/analyze")
async def analyze(body: Optional[dict] = None):
    """Run one analysis.

    Body (all optional): ``{"symbol": "XAU/USD", "interval": "1h"}``.
    Returns 400 for an unknown interval, 503 when no engine is configured.
    """
    body = body or {}
    interval = body.get("interval") or "1h"
    if interval not in VALID_INTERVALS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid interval '{interval}'. Use one of: {', '.join(VALID_INTERVALS)}",
        )
    if _engine is None:
        raise HTTPException(status_code=503, detail="Analysis engine not configured")

    result = await _engine.analyze(body.get("symbol"), interval)
    _record_signal(result)
    return result


@router.get("/signals/history")
async def get_signal_history(limit: int = 20):
    """Return the most recent analysis summaries, newest first."""
    limit = max(1, min(limit, _HISTORY_LIMIT))
    return list(reversed(_signal_history[-limit:]))
