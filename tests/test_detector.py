"""Unit tests for intraday_narrative.detector."""

import math
from datetime import timedelta, timezone

import numpy as np
import pytest

from intraday_narrative.detector import (
    BIG_MOVE_MAX_SELECTED,
    BIG_MOVE_THRESHOLD_PCT,
    TREND_SHIFT_RETAINED,
    detect_big_moves,
    detect_compression_breakout,
    detect_trend_shifts,
    find_tightest_window,
    to_confidence,
)
from intraday_narrative.models import Confidence, Direction
from intraday_narrative.smoothing import calculate_ema


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def impulse_session(make_points):
    """The 100.4 -> 101.9 jump over indices 2..5 is the strongest move."""
    return make_points([100, 100.2, 100.4, 100.7, 100.5, 101.9])


def _coil(closes, tight=range(5, 15)):
    """Wide bars everywhere except a tight ten-bar coil."""
    highs = [c + (0.05 if i in tight else 1.0) for i, c in enumerate(closes)]
    lows = [c - (0.05 if i in tight else 1.0) for i, c in enumerate(closes)]
    return highs, lows


@pytest.fixture
def coiled_breakout(make_points):
    """Coil over bars 5..14, then a +2 % release from bar 15 to bar 18."""
    closes = [100.0] * 16 + [100.5, 101.0, 102.0] + [102.0] * 6
    highs, lows = _coil(closes)
    return make_points(closes, highs=highs, lows=lows)


# ---------------------------------------------------------------------------
# to_confidence
# ---------------------------------------------------------------------------

class TestToConfidence:
    @pytest.mark.parametrize(
        "change, expected",
        [
            (1.5, Confidence.HIGH),
            (-2.0, Confidence.HIGH),
            (1.49, Confidence.MEDIUM),
            (1.0, Confidence.MEDIUM),
            (-1.2, Confidence.MEDIUM),
            (0.99, Confidence.LOW),
            (0.0, Confidence.LOW),
        ],
    )
    def test_thresholds(self, change, expected):
        assert to_confidence(change) is expected

    def test_nan_is_low(self):
        assert to_confidence(float("nan")) is Confidence.LOW

    def test_inf_is_high(self):
        assert to_confidence(float("-inf")) is Confidence.HIGH


# ---------------------------------------------------------------------------
# detect_big_moves
# ---------------------------------------------------------------------------

class TestDetectBigMoves:
    def test_strongest_move_ranked_first(self, impulse_session):
        insights, _ = detect_big_moves(impulse_session)
        top = insights[0]
        assert top.id == "big-move-5"
        assert top.start_index == 2
        assert top.end_index == 5
        assert top.direction is Direction.BULLISH
        assert top.confidence is Confidence.MEDIUM
        assert top.change_pct == pytest.approx(1.494, abs=1e-3)
        assert top.title == "Bullish impulse #1"

    def test_description_template(self, impulse_session):
        insights, _ = detect_big_moves(impulse_session)
        assert insights[0].description == (
            "Bullish burst of 1.49% between 09:17 and 09:20 indicates "
            "aggressive buying pressure."
        )

    def test_anchored_move_reported_once(self, impulse_session):
        insights, _ = detect_big_moves(impulse_session)
        spans = [(i.start_index, i.end_index) for i in insights]
        assert spans.count((2, 5)) == 1
        # 100 -> 100.7 also clears the threshold, at lower confidence
        assert [i.id for i in insights] == ["big-move-5", "big-move-3"]
        assert insights[1].confidence is Confidence.LOW
        assert insights[1].title == "Bullish impulse #2"

    def test_signal_marker_at_move_end(self, impulse_session):
        _, signals = detect_big_moves(impulse_session)
        marker = signals[0]
        assert marker.timestamp == impulse_session[5].timestamp
        assert marker.price == 101.9
        assert marker.label == "Momentum Upswing"
        assert marker.direction is Direction.BULLISH

    def test_bearish_move(self, make_points):
        points = make_points([100, 99.9, 99.8, 98.0])
        insights, signals = detect_big_moves(points)
        assert len(insights) == 1
        assert insights[0].direction is Direction.BEARISH
        assert insights[0].confidence is Confidence.HIGH
        assert insights[0].description.startswith("Bearish burst of -2.00%")
        assert insights[0].description.endswith("aggressive selling pressure.")
        assert signals[0].label == "Momentum Flush"

    def test_caps_selection_and_sorts_by_magnitude(self, make_points):
        rng = np.random.default_rng(3)
        points = make_points(list(100 + np.cumsum(rng.normal(0, 0.8, 80))))
        insights, signals = detect_big_moves(points)
        magnitudes = [abs(i.change_pct) for i in insights]
        assert len(insights) == BIG_MOVE_MAX_SELECTED
        assert len(signals) == len(insights)
        assert magnitudes == sorted(magnitudes, reverse=True)
        assert all(m >= BIG_MOVE_THRESHOLD_PCT for m in magnitudes)

    def test_equal_magnitudes_keep_scan_order(self, make_points):
        points = make_points([100, 100, 100, 101, 100, 100, 100, 101])
        insights, _ = detect_big_moves(points)
        assert [i.id for i in insights] == ["big-move-3", "big-move-7", "big-move-6"]

    def test_constant_series_has_no_moves(self, make_points):
        assert detect_big_moves(make_points([100.0] * 30)) == ([], [])

    def test_too_short_series(self, make_points):
        assert detect_big_moves(make_points([100, 110, 120])) == ([], [])

    def test_clock_labels_follow_timezone(self, impulse_session):
        ist = timezone(timedelta(hours=5, minutes=30))
        insights, _ = detect_big_moves(impulse_session, tz=ist)
        assert "between 14:47 and 14:50" in insights[0].description

    def test_zero_base_propagates_infinity(self, make_points):
        insights, _ = detect_big_moves(make_points([0.0, 1.0, 1.0, 1.0]))
        assert math.isinf(insights[0].change_pct)
        assert insights[0].confidence is Confidence.HIGH

    def test_zero_over_zero_is_not_a_move(self, make_points):
        assert detect_big_moves(make_points([0.0, 1.0, 1.0, 0.0])) == ([], [])


# ---------------------------------------------------------------------------
# detect_trend_shifts
# ---------------------------------------------------------------------------

class TestDetectTrendShifts:
    def _shifts(self, make_points, diffs):
        points = make_points([100.0] * len(diffs))
        return detect_trend_shifts(points, diffs, np.zeros(len(diffs)))

    def test_bullish_cross(self, make_points):
        (insight,) = self._shifts(make_points, [-1.0, -0.5, 0.5])
        assert insight.id == "bullish-cross-2"
        assert insight.direction is Direction.BULLISH
        assert insight.confidence is Confidence.MEDIUM
        assert (insight.start_index, insight.end_index) == (1, 2)
        assert insight.change_pct is None
        assert "near 09:17" in insight.description

    def test_bearish_cross(self, make_points):
        (insight,) = self._shifts(make_points, [1.0, -1.0])
        assert insight.id == "bearish-cross-1"
        assert insight.title == "Short-term bearish transition"

    def test_zero_is_start_of_either_leg(self, make_points):
        assert [i.id for i in self._shifts(make_points, [-1.0, 0.0, 1.0])] == ["bullish-cross-2"]
        assert [i.id for i in self._shifts(make_points, [1.0, 0.0, -1.0])] == ["bearish-cross-2"]

    def test_arriving_at_zero_is_not_a_cross(self, make_points):
        assert self._shifts(make_points, [-1.0, 0.0]) == []
        assert self._shifts(make_points, [1.0, 0.0]) == []

    def test_leaving_zero_counts_as_cross(self, make_points):
        # a touch from below that falls back away still registers as bearish
        assert [i.id for i in self._shifts(make_points, [-1.0, 0.0, -1.0])] == ["bearish-cross-2"]

    def test_keeps_most_recent_transitions(self, make_points):
        insights = self._shifts(make_points, [1.0, -1.0, 1.0, -1.0, 1.0, -1.0])
        assert len(insights) == TREND_SHIFT_RETAINED
        assert [i.id for i in insights] == [
            "bearish-cross-3",
            "bullish-cross-4",
            "bearish-cross-5",
        ]

    def test_constant_series_has_no_transitions(self, make_points):
        points = make_points([100.0] * 40)
        closes = [p.close for p in points]
        assert detect_trend_shifts(points, calculate_ema(closes, 9), calculate_ema(closes, 21)) == []

    def test_each_insight_is_a_genuine_sign_change(self, make_points):
        closes = list(100 + 2 * np.sin(np.arange(90) / 3))
        points = make_points(closes)
        fast, slow = calculate_ema(closes, 9), calculate_ema(closes, 21)
        diff = fast - slow
        insights = detect_trend_shifts(points, fast, slow)
        assert 0 < len(insights) <= TREND_SHIFT_RETAINED
        for insight in insights:
            before, after = diff[insight.start_index], diff[insight.end_index]
            if insight.direction is Direction.BULLISH:
                assert before <= 0 < after
            else:
                assert before >= 0 > after

    def test_single_point(self, make_points):
        assert detect_trend_shifts(make_points([100.0]), [100.0], [100.0]) == []


# ---------------------------------------------------------------------------
# detect_compression_breakout
# ---------------------------------------------------------------------------

class TestFindTightestWindow:
    def test_locates_coil(self, coiled_breakout):
        min_index, min_range = find_tightest_window(coiled_breakout)
        assert min_index == 15
        assert min_range == pytest.approx(0.001)

    def test_ties_keep_first_window(self, make_points):
        min_index, _ = find_tightest_window(make_points([100.0] * 25))
        assert min_index == 10


class TestDetectCompressionBreakout:
    def test_bullish_breakout(self, coiled_breakout):
        (insight,) = detect_compression_breakout(coiled_breakout)
        assert insight.id == "compression-18"
        assert (insight.start_index, insight.end_index) == (15, 18)
        assert insight.change_pct == pytest.approx(2.0)
        assert insight.direction is Direction.BULLISH
        assert insight.confidence is Confidence.HIGH
        assert insight.description == (
            "Price coiled within a tight 0.10% band before releasing 2.00%, "
            "often a precursor to sustained follow-through."
        )

    def test_bearish_breakout(self, make_points):
        closes = [100.0] * 16 + [99.5, 99.0, 98.0] + [98.0] * 6
        highs, lows = _coil(closes)
        (insight,) = detect_compression_breakout(make_points(closes, highs=highs, lows=lows))
        assert insight.direction is Direction.BEARISH
        assert insight.change_pct == pytest.approx(-2.0)

    def test_small_release_is_ignored(self, make_points):
        closes = [100.0] * 16 + [100.2, 100.4, 100.5] + [100.5] * 6
        highs, lows = _coil(closes)
        assert detect_compression_breakout(make_points(closes, highs=highs, lows=lows)) == []

    def test_requires_twenty_points(self, coiled_breakout):
        assert detect_compression_breakout(coiled_breakout[:19]) == []

    def test_breakout_clamped_to_last_point(self, make_points):
        closes = [100.0] * 20
        highs, lows = _coil(closes, tight=range(9, 19))
        points = make_points(closes, highs=highs, lows=lows)
        assert find_tightest_window(points)[0] == 19
        assert detect_compression_breakout(points) == []
