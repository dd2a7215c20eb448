"""Shared fixtures: an in-memory market data provider that counts its calls."""

import threading
from typing import Optional

import pytest

from pricewatch.domain.entities.stock_price import HistoricalPrices, HistoricalRecord
from pricewatch.domain.errors import ProviderError
from pricewatch.domain.ports.stock_data_port import IStockDataProvider


class FakeStockDataProvider(IStockDataProvider):
    def __init__(
        self,
        prices: Optional[dict[str, list[float]]] = None,
        default: Optional[list[float]] = None,
        fail_times: Optional[dict[str, int]] = None,
    ) -> None:
        self.prices = prices or {}
        self.default = default
        self.fail_times = dict(fail_times or {})
        self.calls: list[tuple[str, int]] = []
        self._lock = threading.Lock()

    def calls_for(self, symbol: str) -> int:
        return sum(1 for called, _ in self.calls if called == symbol)

    def get_historical_prices(self, symbol, period_days, interval="1d"):
        with self._lock:
            self.calls.append((symbol, period_days))
            remaining = self.fail_times.get(symbol, 0)
            if remaining:
                self.fail_times[symbol] = remaining - 1
                raise ProviderError(symbol, "simulated outage")
        closes = self.prices.get(symbol, self.default)
        if closes is None:
            raise ProviderError(symbol, "unknown symbol")
        return HistoricalPrices(
            symbol=symbol,
            period=f"{period_days}d",
            interval=interval,
            records=[
                HistoricalRecord(date=f"day-{i}", close=close, adj_close=close)
                for i, close in enumerate(closes)
            ],
        )


@pytest.fixture
def ascending_45() -> list[float]:
    return [float(i) for i in range(1, 46)]


@pytest.fixture
def provider(ascending_45) -> FakeStockDataProvider:
    return FakeStockDataProvider(default=ascending_45)


@pytest.fixture
def make_provider():
    return FakeStockDataProvider


@pytest.fixture
def recorded_sleeps():
    delays: list[float] = []

    async def sleep(delay: float) -> None:
        delays.append(delay)

    sleep.delays = delays
    return sleep
