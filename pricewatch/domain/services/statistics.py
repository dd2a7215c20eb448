"""
Statistics engine: pure functions over daily closing prices.

Nothing here raises on numeric edge cases. Division by a zero first price
yields inf or nan, a min/max over nothing but NaN yields the fold's seed, and
a window longer than the series yields no averages. Callers that cannot use
such values validate their inputs first (see the Processor actor).
"""

import re
from datetime import datetime
from functools import reduce
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from pricewatch.domain.errors import DateParseError

DATE_FORMAT = "%Y-%m-%d"

_PERIOD_RE = re.compile(r"^(-?\d+)d$")


def count_days(from_date: str, until_date: str) -> str:
    """Return the signed number of days from *from_date* to *until_date* as ``"<n>d"``.

    Raises:
        DateParseError: if either date is not in YYYY-MM-DD form.
    """
    try:
        past = datetime.strptime(from_date, DATE_FORMAT).date()
        present = datetime.strptime(until_date, DATE_FORMAT).date()
    except ValueError as exc:
        raise DateParseError(str(exc)) from exc
    return f"{(present - past).days}d"


def parse_period(descriptor: str) -> int:
    """Day count of a ``"<n>d"`` descriptor, e.g. ``"45d"`` -> 45."""
    match = _PERIOD_RE.match(descriptor.strip())
    if not match:
        raise DateParseError(f"invalid period descriptor: {descriptor!r}")
    return int(match.group(1))


def percent_diff(first: float, second: float) -> float:
    """Percent change from *first* to *second*; non-finite when *first* is zero."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float((np.float64(second) - np.float64(first)) * 100.0 / np.float64(first))


def price_diff(series: Sequence[float]) -> tuple[float, float]:
    """Return ``(percentage, absolute)`` change between the first and last price.

    Raises:
        IndexError: on an empty series.
    """
    first, last = series[0], series[-1]
    return percent_diff(first, last), last - first


def relative_price_diff(series: Sequence[float], benchmark: Sequence[float]) -> float:
    """Percent change of *series* minus the percent change of *benchmark*."""
    return price_diff(series)[0] - price_diff(benchmark)[0]


def series_min(series: Sequence[float]) -> float:
    # NaN never compares less, so it never replaces the accumulator.
    return reduce(lambda acc, x: x if x < acc else acc, series, float("inf"))


def series_max(series: Sequence[float]) -> float:
    return reduce(lambda acc, x: x if x > acc else acc, series, float("-inf"))


def n_window_sma(n: int, series: Sequence[float]) -> list[float]:
    """Simple moving average over every contiguous window of *n* prices.

    Returns ``len(series) - n + 1`` values, or an empty list when the series
    is shorter than the window.
    """
    if n < 1:
        raise ValueError(f"window must be at least 1, got {n}")
    if len(series) < n:
        return []
    windows = sliding_window_view(np.asarray(series, dtype=float), n)
    return windows.mean(axis=1).tolist()
