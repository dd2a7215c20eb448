"""
Fetcher actor: turns a (symbol, period) request into a PriceSeries.

The provider port is synchronous, so each call runs in a worker thread and is
bounded by ``timeout`` seconds. The Fetcher never retries; a failure crashes
the actor and recovery is left to the Supervisor.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from pricewatch.application.actors.base import Actor
from pricewatch.domain.entities.stock_price import PriceSeries
from pricewatch.domain.errors import ProviderError, ProviderTimeoutError
from pricewatch.domain.ports.stock_data_port import IStockDataProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchRequest:
    symbol: str
    period_days: int


class StockPriceFetcher(Actor):
    name = "fetcher"

    INTERVAL = "1d"

    def __init__(self, provider: IStockDataProvider, timeout: Optional[float] = 30.0) -> None:
        """
        Args:
            provider: IStockDataProvider implementation (e.g. YFinanceStockDataProvider).
            timeout:  Seconds to wait for the provider; None waits forever.
        """
        self._provider = provider
        self._timeout = timeout

    async def handle(self, message: FetchRequest) -> PriceSeries:
        return await self.fetch(message.symbol, message.period_days)

    async def fetch(self, symbol: str, period_days: int) -> PriceSeries:
        logger.debug(f"Fetching {period_days}d of closing prices for {symbol}")
        try:
            history = await asyncio.wait_for(
                asyncio.to_thread(
                    self._provider.get_historical_prices,
                    symbol,
                    period_days,
                    self.INTERVAL,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                symbol, f"no response from provider within {self._timeout}s"
            ) from exc
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(symbol, str(exc)) from exc

        closes = tuple(record.closing_price for record in history.records)
        if not closes:
            raise ProviderError(symbol, "provider returned no closing prices")
        return PriceSeries(symbol=symbol, closes=closes, period_days=period_days)
