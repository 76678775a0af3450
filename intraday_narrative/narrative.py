"""
intraday_narrative.narrative
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Session-level statistics and the plain-English session narrative.

    stats = compute_session_stats(points)
    text = build_narrative(points)

Both functions are pure; percentages are expressed in percent (``1.5``
means 1.5 %).
"""

from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo
from typing import Optional, Sequence

import numpy as np
import structlog

from .models import IntradayPoint, SessionStats

log = structlog.get_logger(__name__)

# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------

BIAS_THRESHOLD_PCT = 0.6

INSUFFICIENT_DATA_NARRATIVE = "Insufficient data to build a narrative."

_BIAS_SENTENCES = {
    "bullish": "Flow shows a constructive bias with buyers pressing the tape.",
    "bearish": "Supply dominated the session with persistent offer absorption.",
    "balanced": "Auction remained rotational with neither side in clear control.",
}


# ------------------------------------------------------------------
# Formatting helpers
# ------------------------------------------------------------------


def format_clock(timestamp: int, tz: Optional[tzinfo] = None) -> str:
    """Render an epoch-seconds *timestamp* as ``HH:mm``.

    Examples
    --------
    >>> format_clock(1_700_000_000)
    '22:13'
    """
    moment = datetime.fromtimestamp(timestamp, tz=tz or timezone.utc)
    return moment.strftime("%H:%M")


def pct_change(base: float, latest: float) -> float:
    """Percentage change from *base* to *latest*.

    A zero *base* is not guarded: the result is ``inf`` or ``nan``.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return float((np.float64(latest) - base) / np.float64(base) * 100)


# ------------------------------------------------------------------
# Session statistics
# ------------------------------------------------------------------


def compute_session_stats(points: Sequence[IntradayPoint]) -> SessionStats:
    """Summarise a session.

    Parameters
    ----------
    points : sequence of IntradayPoint
        Ordered session samples.

    Returns
    -------
    SessionStats
        All fields are 0 when *points* is empty.
    """
    if len(points) == 0:
        return SessionStats()

    highs = np.fromiter((p.high for p in points), dtype=float, count=len(points))
    lows = np.fromiter((p.low for p in points), dtype=float, count=len(points))
    volumes = np.fromiter((p.volume for p in points), dtype=float, count=len(points))

    session_high = float(highs.max())
    session_low = float(lows.min())
    stats = SessionStats(
        range_pct=pct_change(session_low, session_high),
        avg_volume=float(volumes.sum() / len(points)),
        session_change_pct=pct_change(points[0].close, points[-1].close),
        session_high=session_high,
        session_low=session_low,
    )

    if not (math.isfinite(stats.range_pct) and math.isfinite(stats.session_change_pct)):
        log.warning(
            "non_finite_session_stats",
            range_pct=stats.range_pct,
            session_change_pct=stats.session_change_pct,
            first_close=points[0].close,
            session_low=session_low,
        )
    return stats


# ------------------------------------------------------------------
# Narrative generation
# ------------------------------------------------------------------


def classify_bias(change_pct: float) -> str:
    """Return ``"bullish"``, ``"bearish"`` or ``"balanced"``."""
    if change_pct > BIAS_THRESHOLD_PCT:
        return "bullish"
    if change_pct < -BIAS_THRESHOLD_PCT:
        return "bearish"
    return "balanced"


def build_narrative(points: Sequence[IntradayPoint]) -> str:
    """Generate the session narrative.

    The first sentence states the session bias; the second cites the
    session change, the traded range and the session extremes as levels
    to watch.

    Returns
    -------
    str
        :data:`INSUFFICIENT_DATA_NARRATIVE` when fewer than two points are
        supplied.
    """
    if len(points) < 2:
        return INSUFFICIENT_DATA_NARRATIVE

    stats = compute_session_stats(points)
    bias = classify_bias(stats.session_change_pct)

    return (
        f"{_BIAS_SENTENCES[bias]} "
        f"Spot moved {stats.session_change_pct:+.2f}% across the session "
        f"while rotating through a {stats.range_pct:.2f}% range. "
        f"Monitor how price behaves near {stats.session_high:.2f} (swing high) "
        f"and {stats.session_low:.2f} (swing low) for confirmation of "
        f"continuation or rejection."
    )
