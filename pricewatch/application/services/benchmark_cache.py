"""
Application service: one-time initialisation cache for the benchmark series.

The benchmark (a market index) is the only state shared between otherwise
independent per-symbol computations. Entries are keyed by period length so a
tick that asks for a different period never receives a series of the wrong
length. The lock is held across check-and-load: concurrent callers for the
same key wait for the first loader instead of calling the provider again, and
nobody sees a partially built entry.

A failed load is not cached, but the failure is remembered for
``retry_after`` seconds; callers in that window get the same error back
without another provider call.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from pricewatch.domain.entities.stock_price import PriceSeries

logger = logging.getLogger(__name__)

BenchmarkLoader = Callable[[str, int], Awaitable[PriceSeries]]


class BenchmarkCache:
    DEFAULT_SYMBOL: str = "^GSPC"
    DEFAULT_RETRY_AFTER: float = 60.0

    def __init__(
        self,
        symbol: str = DEFAULT_SYMBOL,
        retry_after: float = DEFAULT_RETRY_AFTER,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.symbol = symbol
        self._retry_after = retry_after
        self._clock = clock
        self._series: dict[int, PriceSeries] = {}
        self._failures: dict[int, tuple[float, Exception]] = {}
        self._lock = asyncio.Lock()

    async def get_or_load(self, period_days: int, loader: BenchmarkLoader) -> PriceSeries:
        """Return the benchmark series for *period_days*, loading it on first need.

        A loader failure propagates and leaves the key empty; it is raised
        again without calling the loader until ``retry_after`` has passed.
        """
        async with self._lock:
            series = self._series.get(period_days)
            if series is not None:
                return series

            failure = self._failures.get(period_days)
            if failure is not None:
                failed_at, error = failure
                if self._clock() - failed_at < self._retry_after:
                    raise error
                del self._failures[period_days]

            logger.info(f"Loading benchmark {self.symbol} for the past {period_days}d")
            try:
                series = await loader(self.symbol, period_days)
            except Exception as exc:
                self._failures[period_days] = (self._clock(), exc)
                raise
            self._series[period_days] = series
            return series

    def __contains__(self, period_days: int) -> bool:
        return period_days in self._series

    def clear(self) -> None:
        self._series.clear()
        self._failures.clear()
