"""
Processor actor: turns a PriceSeries into a finished StatResult.

Business rules owned here:
  - a series shorter than the moving average window is rejected with
    InsufficientDataError before any statistic is computed;
  - the benchmark series comes from the injected BenchmarkCache, loaded at
    most once per period length; when it cannot be loaded the relative
    change is NaN and the absolute row is still produced.
"""

import logging
from dataclasses import dataclass

from pricewatch.application.actors.base import Actor
from pricewatch.application.services.benchmark_cache import BenchmarkCache, BenchmarkLoader
from pricewatch.domain.entities.stock_price import PriceSeries, StatResult
from pricewatch.domain.errors import InsufficientDataError, PriceWatchError
from pricewatch.domain.services import statistics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessRequest:
    symbol: str
    period_start: str
    series: PriceSeries
    window: int


class StockPriceProcessor(Actor):
    name = "processor"

    def __init__(self, benchmark: BenchmarkCache, benchmark_loader: BenchmarkLoader) -> None:
        self._benchmark = benchmark
        self._benchmark_loader = benchmark_loader

    async def handle(self, message: ProcessRequest) -> StatResult:
        return await self.process(message)

    async def process(self, request: ProcessRequest) -> StatResult:
        closes = request.series.closes
        if len(closes) < request.window:
            raise InsufficientDataError(request.symbol, len(closes), request.window)

        percentage, _ = statistics.price_diff(closes)
        sma = statistics.n_window_sma(request.window, closes)
        return StatResult(
            symbol=request.symbol,
            period_start=request.period_start,
            closing_price=closes[-1],
            price_difference=percentage,
            relative_difference=await self._relative_difference(request),
            min=statistics.series_min(closes),
            max=statistics.series_max(closes),
            simple_moving_average=sma[-1],
        )

    async def _relative_difference(self, request: ProcessRequest) -> float:
        """Change relative to the benchmark, or NaN when the benchmark is unavailable."""
        closes = request.series.closes
        try:
            benchmark = await self._benchmark.get_or_load(
                request.series.period_days, self._benchmark_loader
            )
        except PriceWatchError as exc:
            logger.warning(
                f"{request.symbol}: benchmark {self._benchmark.symbol} unavailable, "
                f"relative change left undefined: {exc}"
            )
            return float("nan")
        if len(benchmark) != len(closes):
            logger.warning(
                f"{request.symbol}: benchmark {benchmark.symbol} has {len(benchmark)} "
                f"prices, series has {len(closes)}"
            )
        return statistics.relative_price_diff(closes, benchmark.closes)
