"""
intraday_narrative.detector
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Fixed-threshold pattern detectors over a single intraday series.

Each detector is a stand-alone pure function of the point sequence:

* :func:`detect_big_moves` – strongest short-horizon percentage moves.
* :func:`detect_trend_shifts` – fast/slow EMA sign changes.
* :func:`detect_compression_breakout` – tightest trailing range and the
  move that follows it.
"""

from __future__ import annotations

from datetime import tzinfo
from typing import Optional, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
import structlog

from .models import Confidence, Direction, IntradayPoint, PatternInsight, SignalMarker
from .narrative import format_clock, pct_change

log = structlog.get_logger(__name__)

# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------

BIG_MOVE_LOOKBACK = 3
BIG_MOVE_THRESHOLD_PCT = 0.6
BIG_MOVE_MAX_SELECTED = 4

TREND_SHIFT_RETAINED = 3

COMPRESSION_MIN_POINTS = 20
COMPRESSION_WINDOW = 10
BREAKOUT_OFFSET = 3
BREAKOUT_THRESHOLD_PCT = 0.8

HIGH_CONFIDENCE_PCT = 1.5
MEDIUM_CONFIDENCE_PCT = 1.0


# ------------------------------------------------------------------
# Shared helpers
# ------------------------------------------------------------------


def to_confidence(change_pct: float) -> Confidence:
    """Classify the magnitude of a percentage change.

    ``nan`` compares false against both thresholds and is therefore LOW.
    """
    magnitude = abs(change_pct)
    if magnitude >= HIGH_CONFIDENCE_PCT:
        return Confidence.HIGH
    if magnitude >= MEDIUM_CONFIDENCE_PCT:
        return Confidence.MEDIUM
    return Confidence.LOW


def to_direction(change_pct: float) -> Direction:
    return Direction.BULLISH if change_pct >= 0 else Direction.BEARISH


def _column(points: Sequence[IntradayPoint], name: str) -> np.ndarray:
    return np.fromiter((getattr(p, name) for p in points), dtype=float, count=len(points))


# ------------------------------------------------------------------
# Big moves
# ------------------------------------------------------------------


def detect_big_moves(
    points: Sequence[IntradayPoint],
    tz: Optional[tzinfo] = None,
) -> tuple[list[PatternInsight], list[SignalMarker]]:
    """Find the strongest moves over a :data:`BIG_MOVE_LOOKBACK` horizon.

    Every index ``i >= BIG_MOVE_LOOKBACK`` whose close moved at least
    :data:`BIG_MOVE_THRESHOLD_PCT` percent from ``close[i - lookback]`` is a
    candidate.  Candidates are ranked by absolute change (stable, so equal
    magnitudes keep scan order) and the top :data:`BIG_MOVE_MAX_SELECTED`
    are kept.

    Parameters
    ----------
    points : sequence of IntradayPoint
        Ordered session samples.
    tz : tzinfo, optional
        Zone used for the ``HH:mm`` labels in descriptions (UTC if omitted).

    Returns
    -------
    tuple[list[PatternInsight], list[SignalMarker]]
        One insight and one marker per selected move, both in ranked order.
    """
    closes = _column(points, "close")
    if closes.size <= BIG_MOVE_LOOKBACK:
        return [], []

    base = closes[:-BIG_MOVE_LOOKBACK]
    with np.errstate(divide="ignore", invalid="ignore"):
        changes = (closes[BIG_MOVE_LOOKBACK:] - base) / base * 100

    candidates = np.flatnonzero(np.abs(changes) >= BIG_MOVE_THRESHOLD_PCT)
    ranking = np.argsort(-np.abs(changes[candidates]), kind="stable")
    selected = candidates[ranking][:BIG_MOVE_MAX_SELECTED]

    insights: list[PatternInsight] = []
    signals: list[SignalMarker] = []

    for rank, offset in enumerate(selected, start=1):
        end = int(offset) + BIG_MOVE_LOOKBACK
        start = end - BIG_MOVE_LOOKBACK
        change = float(changes[offset])
        direction = to_direction(change)
        confidence = to_confidence(change)
        word = "Bullish" if direction is Direction.BULLISH else "Bearish"
        pressure = "buying" if direction is Direction.BULLISH else "selling"

        insights.append(
            PatternInsight(
                id=f"big-move-{end}",
                title=f"{word} impulse #{rank}",
                description=(
                    f"{word} burst of {change:.2f}% between "
                    f"{format_clock(points[start].timestamp, tz)} and "
                    f"{format_clock(points[end].timestamp, tz)} indicates "
                    f"aggressive {pressure} pressure."
                ),
                confidence=confidence,
                start_index=start,
                end_index=end,
                change_pct=change,
                direction=direction,
            )
        )
        signals.append(
            SignalMarker(
                timestamp=points[end].timestamp,
                price=points[end].close,
                label="Momentum Upswing" if direction is Direction.BULLISH else "Momentum Flush",
                confidence=confidence,
                direction=direction,
            )
        )

    log.debug("big_moves_detected", candidates=int(candidates.size), selected=len(insights))
    return insights, signals


# ------------------------------------------------------------------
# Trend shifts
# ------------------------------------------------------------------


def detect_trend_shifts(
    points: Sequence[IntradayPoint],
    ema_fast: "array-like",
    ema_slow: "array-like",
    tz: Optional[tzinfo] = None,
) -> list[PatternInsight]:
    """Report sign changes of ``ema_fast - ema_slow``.

    A bullish transition is ``prev <= 0 and curr > 0``; a bearish one is
    ``prev >= 0 and curr < 0``.  A difference of exactly zero is therefore
    eligible as the starting side of either leg.  Only the most recent
    :data:`TREND_SHIFT_RETAINED` transitions are returned, oldest first.
    """
    diff = np.asarray(ema_fast, dtype=float) - np.asarray(ema_slow, dtype=float)
    if diff.size < 2:
        return []

    prev, curr = diff[:-1], diff[1:]
    bullish = (prev <= 0) & (curr > 0)
    bearish = (prev >= 0) & (curr < 0)
    transitions = np.flatnonzero(bullish | bearish) + 1

    insights: list[PatternInsight] = []
    for i in transitions[-TREND_SHIFT_RETAINED:]:
        i = int(i)
        clock = format_clock(points[i].timestamp, tz)
        if bullish[i - 1]:
            insights.append(
                PatternInsight(
                    id=f"bullish-cross-{i}",
                    title="Short-term bullish transition",
                    description=(
                        f"Fast EMA crossed above the intermediate trend near {clock}, "
                        f"suggesting renewed upside momentum."
                    ),
                    confidence=Confidence.MEDIUM,
                    start_index=i - 1,
                    end_index=i,
                    direction=Direction.BULLISH,
                )
            )
        else:
            insights.append(
                PatternInsight(
                    id=f"bearish-cross-{i}",
                    title="Short-term bearish transition",
                    description=(
                        f"Fast EMA slipped beneath the intermediate trend near {clock}, "
                        f"flagging a potential fade."
                    ),
                    confidence=Confidence.MEDIUM,
                    start_index=i - 1,
                    end_index=i,
                    direction=Direction.BEARISH,
                )
            )

    log.debug("trend_shifts_detected", transitions=int(transitions.size), retained=len(insights))
    return insights


# ------------------------------------------------------------------
# Compression breakouts
# ------------------------------------------------------------------


def find_tightest_window(points: Sequence[IntradayPoint]) -> tuple[int, float]:
    """Locate the tightest trailing :data:`COMPRESSION_WINDOW` range.

    For each ``i >= COMPRESSION_WINDOW`` the window is ``points[i-10:i]``
    (excluding ``i``) and its width is ``(max(high) - min(low)) / close[i]``.

    Returns
    -------
    tuple[int, float]
        ``(min_index, min_range)``.  Ties keep the earliest index; when no
        width is finite-comparable the result is ``(0, inf)``.
    """
    highs = _column(points, "high")
    lows = _column(points, "low")
    closes = _column(points, "close")
    if closes.size <= COMPRESSION_WINDOW:
        return 0, float("inf")

    # windows starting at 0 .. n-11 end just before i = 10 .. n-1
    window_highs = sliding_window_view(highs, COMPRESSION_WINDOW)[:-1].max(axis=1)
    window_lows = sliding_window_view(lows, COMPRESSION_WINDOW)[:-1].min(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        ranges = (window_highs - window_lows) / closes[COMPRESSION_WINDOW:]

    ranges = np.where(np.isnan(ranges), np.inf, ranges)
    position = int(np.argmin(ranges))
    min_range = float(ranges[position])
    if not min_range < np.inf:
        return 0, float("inf")
    return position + COMPRESSION_WINDOW, min_range


def detect_compression_breakout(
    points: Sequence[IntradayPoint],
) -> list[PatternInsight]:
    """Evaluate the move that follows the session's tightest range.

    The breakout is measured from the compression index to
    ``min(n - 1, min_index + BREAKOUT_OFFSET)``.  Sessions shorter than
    :data:`COMPRESSION_MIN_POINTS` and moves smaller than
    :data:`BREAKOUT_THRESHOLD_PCT` yield an empty list.
    """
    if len(points) < COMPRESSION_MIN_POINTS:
        return []

    min_index, min_range = find_tightest_window(points)
    breakout_index = min(len(points) - 1, min_index + BREAKOUT_OFFSET)
    change = pct_change(points[min_index].close, points[breakout_index].close)

    log.debug(
        "compression_evaluated",
        min_index=min_index,
        breakout_index=breakout_index,
        band_pct=min_range * 100,
        change_pct=change,
    )
    if abs(change) < BREAKOUT_THRESHOLD_PCT:
        return []

    return [
        PatternInsight(
            id=f"compression-{breakout_index}",
            title="Tight-range expansion",
            description=(
                f"Price coiled within a tight {min_range * 100:.2f}% band before "
                f"releasing {change:.2f}%, often a precursor to sustained "
                f"follow-through."
            ),
            confidence=to_confidence(change),
            start_index=min_index,
            end_index=breakout_index,
            change_pct=change,
            direction=to_direction(change),
        )
    ]
