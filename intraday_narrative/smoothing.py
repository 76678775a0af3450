"""
intraday_narrative.smoothing
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Exponential moving averages computed as a first-order IIR filter.
"""

from __future__ import annotations

import numpy as np
from scipy.signal import lfilter


def calculate_ema(closes: "array-like", span: int) -> np.ndarray:
    """Exponential moving average of *closes* for the given *span*.

    The smoothing factor is ``k = 2 / (span + 1)`` and the series is seeded
    with the first close, so ``ema[0] == closes[0]`` and, for ``i >= 1``,
    ``ema[i] = closes[i] * k + ema[i - 1] * (1 - k)``.

    Parameters
    ----------
    closes : array-like
        1-D sequence of closing prices.
    span : int
        Smoothing window length (e.g. 9 or 21).

    Returns
    -------
    numpy.ndarray
        Same length as *closes*; empty when *closes* is empty.
    """
    closes = np.asarray(closes, dtype=float)
    if closes.size == 0:
        return np.empty(0, dtype=float)

    k = 2.0 / (span + 1)
    # filter deviations from the seed so a flat series stays exactly flat
    deviations, _ = lfilter([k], [1.0, k - 1.0], closes - closes[0], zi=[0.0])
    return closes[0] + deviations
