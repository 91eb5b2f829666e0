"""Session filter — pure functions mapping a UTC hour to a trading session."""

from typing import Literal

Session = Literal["ASIA", "LONDON", "OVERLAP", "NEW_YORK", "OFF_HOURS"]

SESSION_NAMES: dict[str, str] = {
    "ASIA": "Asian Session",
    "LONDON": "London Session",
    "OVERLAP": "London/NY Overlap",
    "NEW_YORK": "New York Session",
    "OFF_HOURS": "Off Hours",
}

# (start, end, session) in UTC hours; first match wins.  The Asia/London
# handover hour is reported as overlap.
SESSION_WINDOWS: tuple[tuple[int, int, Session], ...] = (
    (0, 7, "ASIA"),
    (7, 8, "OVERLAP"),
    (8, 13, "LONDON"),
    (13, 16, "OVERLAP"),
    (16, 21, "NEW_YORK"),
)


def is_in_session(
    utc_hour: int,
    session_start: int = 7,
    session_end: int = 21,
) -> bool:
    """Return True if *utc_hour* falls inside a session window.

    The default window 07:00–21:00 UTC spans London through the New York
    close, the liquid part of the gold day.

    Args:
        utc_hour: The hour in UTC (0–23).
        session_start: Window start hour (inclusive).
        session_end: Window end hour (exclusive).
    """
    return session_start <= utc_hour < session_end


def get_current_session(utc_hour: int) -> Session:
    """Classify *utc_hour* into a gold trading session using ``SESSION_WINDOWS``."""
    for start, end, session in SESSION_WINDOWS:
        if is_in_session(utc_hour, start, end):
            return session
    return "OFF_HOURS"


def session_name(session: str) -> str:
    """Human-readable label for a session code."""
    return SESSION_NAMES.get(session, "Off Hours")
