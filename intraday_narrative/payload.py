"""
intraday_narrative.payload
~~~~~~~~~~~~~~~~~~~~~~~~~~
Build :class:`IntradayPoint` sequences from raw records or from a quote
provider's chart response.

Samples whose ``close`` or ``volume`` is missing are dropped, since the
engine assumes every point it receives is fully populated.
"""

from __future__ import annotations

from typing import Iterable, Mapping

import structlog

from .models import IntradayPoint

log = structlog.get_logger(__name__)

_FIELDS = ("open", "high", "low", "close", "volume")


def points_from_records(records: Iterable[Mapping]) -> list[IntradayPoint]:
    """Convert mappings with OHLCV keys into points.

    Parameters
    ----------
    records : iterable of mapping
        Each mapping must contain ``timestamp``, ``open``, ``high``,
        ``low``, ``close`` and ``volume``.

    Returns
    -------
    list[IntradayPoint]
        Points in input order, without records lacking close or volume.

    Raises
    ------
    ValueError
        If a record is missing one of the required keys, or a kept record
        has a null open, high or low.
    """
    points: list[IntradayPoint] = []
    dropped = 0
    for record in records:
        missing = [key for key in ("timestamp", *_FIELDS) if key not in record]
        if missing:
            raise ValueError(f"Record is missing required fields: {', '.join(missing)}")
        if record["close"] is None or record["volume"] is None:
            dropped += 1
            continue
        if any(record[key] is None for key in ("open", "high", "low")):
            raise ValueError(f"Record at {record['timestamp']} has null price fields")
        points.append(
            IntradayPoint(
                timestamp=int(record["timestamp"]),
                open=float(record["open"]),
                high=float(record["high"]),
                low=float(record["low"]),
                close=float(record["close"]),
                volume=float(record["volume"]),
            )
        )

    if dropped:
        log.info("incomplete_samples_dropped", dropped=dropped, kept=len(points))
    return points


def points_from_chart_payload(payload: Mapping) -> list[IntradayPoint]:
    """Convert a chart response into points.

    The payload is expected to look like::

        {"chart": {"result": [{"timestamp": [...],
                               "indicators": {"quote": [{"open": [...], ...}]}}]}}

    Raises
    ------
    ValueError
        If the provider reported an error or the payload lacks the
        result, timestamp or quote blocks.
    """
    chart = payload.get("chart") or {}
    error = chart.get("error")
    if error:
        raise ValueError(f"Data source reported an error: {error.get('description', error)}")

    results = chart.get("result") or []
    series = results[0] if results else None
    quotes = ((series or {}).get("indicators") or {}).get("quote") or []
    if not series or not series.get("timestamp") or not quotes:
        raise ValueError("Data source returned an unexpected payload.")

    quote = quotes[0]
    timestamps = series["timestamp"]
    columns = {key: quote.get(key) or [] for key in _FIELDS}

    def _at(key: str, idx: int):
        column = columns[key]
        return column[idx] if idx < len(column) else None

    records = (
        {"timestamp": ts, **{key: _at(key, idx) for key in _FIELDS}}
        for idx, ts in enumerate(timestamps)
    )
    return points_from_records(records)
