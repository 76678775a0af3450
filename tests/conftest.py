"""Shared fixtures for the intraday_narrative test-suite."""

import pytest

from intraday_narrative.models import IntradayPoint

# 2024-01-02 09:15:00 UTC
SESSION_OPEN = 1_704_186_900


def build_points(closes, spread=0.05, highs=None, lows=None, volume=1_000.0):
    """Minute bars around *closes*; *highs*/*lows* override the spread."""
    points = []
    for i, close in enumerate(closes):
        high = highs[i] if highs is not None else close + spread
        low = lows[i] if lows is not None else close - spread
        points.append(
            IntradayPoint(
                timestamp=SESSION_OPEN + 60 * i,
                open=close,
                high=high,
                low=low,
                close=close,
                volume=volume,
            )
        )
    return points


@pytest.fixture
def make_points():
    return build_points
