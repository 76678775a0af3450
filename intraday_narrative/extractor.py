"""
intraday_narrative.extractor
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
High-level facade that combines smoothing, pattern detection, session
statistics and the narrative into one :class:`AnalysisSummary`.
"""

from __future__ import annotations

from datetime import tzinfo
from typing import Optional, Sequence

import numpy as np
import structlog

from .detector import (
    detect_big_moves,
    detect_compression_breakout,
    detect_trend_shifts,
)
from .models import AnalysisSummary, IntradayPoint, PatternInsight, SignalMarker
from .narrative import build_narrative, compute_session_stats
from .smoothing import calculate_ema

log = structlog.get_logger(__name__)

FAST_EMA_SPAN = 9
SLOW_EMA_SPAN = 21
MAX_INSIGHTS = 6

NO_DATA_NARRATIVE = "No intraday prints were returned from the data source."


class IntradayAnalyzer:
    """Analyse one intraday OHLCV session.

    Parameters
    ----------
    points : sequence of IntradayPoint
        Samples in ascending timestamp order; may be empty.
    tz : tzinfo, optional
        Zone used for ``HH:mm`` labels in insight descriptions.  UTC is
        used when not provided.

    Examples
    --------
    >>> from intraday_narrative import IntradayAnalyzer, IntradayPoint
    >>> points = [IntradayPoint(60 * i, 100, 101, 99, 100, 1_000) for i in range(5)]
    >>> summary = IntradayAnalyzer(points).extract_full_suite()
    >>> summary.ema9[0] == points[0].close
    True
    """

    def __init__(
        self,
        points: Sequence[IntradayPoint],
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.points = tuple(points)
        self.tz = tz
        self.closes = np.fromiter(
            (p.close for p in self.points), dtype=float, count=len(self.points)
        )

    # ------------------------------------------------------------------
    # Individual components
    # ------------------------------------------------------------------

    def get_ema(self, span: int) -> np.ndarray:
        return calculate_ema(self.closes, span)

    def get_insights(
        self, ema_fast: np.ndarray, ema_slow: np.ndarray
    ) -> tuple[list[PatternInsight], list[SignalMarker]]:
        """Run every detector and apply the insight cap.

        Insights are concatenated as big moves, then trend shifts, then the
        compression breakout, and truncated to :data:`MAX_INSIGHTS`; lower
        priority categories are the ones dropped.
        """
        big_moves, signals = detect_big_moves(self.points, tz=self.tz)
        trend_shifts = detect_trend_shifts(self.points, ema_fast, ema_slow, tz=self.tz)
        compression = detect_compression_breakout(self.points)

        insights = [*big_moves, *trend_shifts, *compression]
        if len(insights) > MAX_INSIGHTS:
            log.debug("insights_truncated", produced=len(insights), kept=MAX_INSIGHTS)
        return insights[:MAX_INSIGHTS], signals

    # ------------------------------------------------------------------
    # Convenience bundle
    # ------------------------------------------------------------------

    def extract_full_suite(self) -> AnalysisSummary:
        """Return the complete analysis of the session.

        An empty session short-circuits to a fixed "no data" summary with
        zeroed statistics and empty sequences.
        """
        if not self.points:
            return AnalysisSummary(narrative=NO_DATA_NARRATIVE)

        ema_fast = self.get_ema(FAST_EMA_SPAN)
        ema_slow = self.get_ema(SLOW_EMA_SPAN)
        insights, signals = self.get_insights(ema_fast, ema_slow)

        return AnalysisSummary(
            narrative=build_narrative(self.points),
            stats=compute_session_stats(self.points),
            insights=tuple(insights),
            signals=tuple(signals),
            ema9=tuple(float(v) for v in ema_fast),
            ema21=tuple(float(v) for v in ema_slow),
        )


def analyze_intraday_data(
    points: Sequence[IntradayPoint],
    tz: Optional[tzinfo] = None,
) -> AnalysisSummary:
    """Analyse *points* and return an :class:`AnalysisSummary`.

    Shorthand for ``IntradayAnalyzer(points, tz=tz).extract_full_suite()``.
    """
    return IntradayAnalyzer(points, tz=tz).extract_full_suite()
