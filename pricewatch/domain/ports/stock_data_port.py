"""
Port (interface) for market data providers.
Infrastructure adapters (e.g. YFinanceStockDataProvider) must implement this interface.
"""

from abc import ABC, abstractmethod

from pricewatch.domain.entities.stock_price import HistoricalPrices


class IStockDataProvider(ABC):
    @abstractmethod
    def get_historical_prices(
        self,
        symbol: str,
        period_days: int,
        interval: str = "1d",
    ) -> HistoricalPrices:
        """Return the daily price history of *symbol* over the last *period_days* days.

        Records must be in chronological order, oldest first.

        Raises:
            ProviderError: on any transport or API failure, or an empty history.
        """
        ...
