"""
intraday_narrative
~~~~~~~~~~~~~~~~~~
Pattern detection and plain-English narrative for a single intraday
OHLCV session.

Two calling paths are supported:

Path 1 – points already built by the caller:

    from intraday_narrative import analyze_intraday_data

    summary = analyze_intraday_data(points)
    summary.to_dict()   # JSON document for the chart layer

Path 2 – raw chart response from the quote provider:

    from intraday_narrative import IntradayAnalyzer, points_from_chart_payload

    points = points_from_chart_payload(response.json())
    summary = IntradayAnalyzer(points, tz=ZoneInfo("Asia/Kolkata")).extract_full_suite()

The engine is a pure function of its input, so a summary may be cached for
as long as the point sequence is unchanged.
"""

from .detector import (
    detect_big_moves,
    detect_compression_breakout,
    detect_trend_shifts,
    to_confidence,
)
from .extractor import IntradayAnalyzer, analyze_intraday_data
from .logging_config import configure_logging
from .models import (
    AnalysisSummary,
    Confidence,
    Direction,
    IntradayPoint,
    PatternInsight,
    SessionStats,
    SignalMarker,
)
from .narrative import build_narrative, compute_session_stats
from .payload import points_from_chart_payload, points_from_records
from .smoothing import calculate_ema

__all__ = [
    "AnalysisSummary",
    "Confidence",
    "Direction",
    "IntradayAnalyzer",
    "IntradayPoint",
    "PatternInsight",
    "SessionStats",
    "SignalMarker",
    "analyze_intraday_data",
    "build_narrative",
    "calculate_ema",
    "compute_session_stats",
    "configure_logging",
    "detect_big_moves",
    "detect_compression_breakout",
    "detect_trend_shifts",
    "points_from_chart_payload",
    "points_from_records",
    "to_confidence",
]

__version__ = "0.1.0"
