"""
intraday_narrative.models
~~~~~~~~~~~~~~~~~~~~~~~~~
Immutable records flowing into and out of the analysis engine.

Every record exposes :meth:`to_dict`, which renders the camelCase JSON
document the chart layer consumes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Confidence(str, Enum):
    """Coarse strength classification of a detected event."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Direction(str, Enum):
    """Side of the market an event favours."""

    BULLISH = "bullish"
    BEARISH = "bearish"


@dataclass(frozen=True)
class IntradayPoint:
    """One OHLCV sample; ``timestamp`` is seconds since the epoch."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class PatternInsight:
    """A detected event spanning ``start_index`` .. ``end_index``."""

    id: str
    title: str
    description: str
    confidence: Confidence
    start_index: Optional[int] = None
    end_index: Optional[int] = None
    change_pct: Optional[float] = None
    direction: Optional[Direction] = None

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence.value,
        }
        # optional fields are omitted rather than serialised as null
        if self.start_index is not None:
            result["startIndex"] = self.start_index
        if self.end_index is not None:
            result["endIndex"] = self.end_index
        if self.change_pct is not None:
            result["changePct"] = self.change_pct
        if self.direction is not None:
            result["direction"] = self.direction.value
        return result


@dataclass(frozen=True)
class SignalMarker:
    """An event anchored to a chart coordinate."""

    timestamp: int
    price: float
    label: str
    confidence: Confidence
    direction: Direction

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "price": self.price,
            "label": self.label,
            "confidence": self.confidence.value,
            "direction": self.direction.value,
        }


@dataclass(frozen=True)
class SessionStats:
    range_pct: float = 0.0
    avg_volume: float = 0.0
    session_change_pct: float = 0.0
    session_high: float = 0.0
    session_low: float = 0.0

    def to_dict(self) -> dict:
        return {
            "rangePct": self.range_pct,
            "avgVolume": self.avg_volume,
            "sessionChangePct": self.session_change_pct,
            "sessionHigh": self.session_high,
            "sessionLow": self.session_low,
        }


@dataclass(frozen=True)
class AnalysisSummary:
    """The engine's complete, self-contained output.

    ``ema9`` and ``ema21`` are aligned index-for-index with the input
    points; ``insights`` never holds more than six entries.
    """

    narrative: str
    stats: SessionStats = field(default_factory=SessionStats)
    insights: tuple[PatternInsight, ...] = ()
    signals: tuple[SignalMarker, ...] = ()
    ema9: tuple[float, ...] = ()
    ema21: tuple[float, ...] = ()

    def to_dict(self) -> dict:
        return {
            "narrative": self.narrative,
            "stats": self.stats.to_dict(),
            "insights": [insight.to_dict() for insight in self.insights],
            "signals": [signal.to_dict() for signal in self.signals],
            "ema9": list(self.ema9),
            "ema21": list(self.ema21),
        }
