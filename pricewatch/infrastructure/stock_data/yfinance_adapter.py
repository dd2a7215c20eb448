"""
Infrastructure adapter: yfinance -> IStockDataProvider.
All yfinance-specific details (Ticker.history, column names) are confined here;
the rest of the codebase depends only on IStockDataProvider.
"""

import logging
from datetime import date, timedelta
from typing import Optional

import yfinance as yf

from pricewatch.domain.entities.stock_price import HistoricalPrices, HistoricalRecord
from pricewatch.domain.errors import ProviderError
from pricewatch.domain.ports.stock_data_port import IStockDataProvider

logger = logging.getLogger(__name__)


class YFinanceStockDataProvider(IStockDataProvider):
    """Fetches daily price history from Yahoo Finance via the yfinance library."""

    def __init__(self, timeout: Optional[float] = 30.0) -> None:
        # Bounds the HTTP request itself; a None timeout waits indefinitely.
        self._timeout = timeout

    def get_historical_prices(
        self,
        symbol: str,
        period_days: int,
        interval: str = "1d",
    ) -> HistoricalPrices:
        start_date = (date.today() - timedelta(days=period_days)).strftime("%Y-%m-%d")
        logger.debug(f"Requesting {symbol} {interval} history since {start_date}")
        try:
            history = yf.Ticker(symbol).history(
                start=start_date,
                interval=interval,
                auto_adjust=False,
                timeout=self._timeout,
            )
        except Exception as exc:
            raise ProviderError(
                symbol, f"Yahoo! Finance request failed: {exc}"
            ) from exc

        if history is None or history.empty:
            raise ProviderError(symbol, "no historical data available")

        close_column = "Adj Close" if "Adj Close" in history.columns else "Close"
        history = history.sort_index().dropna(subset=[close_column])

        records = [
            HistoricalRecord(
                date=timestamp.strftime("%Y-%m-%d"),
                close=float(row["Close"]),
                adj_close=float(row[close_column]) if close_column == "Adj Close" else None,
            )
            for timestamp, row in history.iterrows()
        ]
        if not records:
            raise ProviderError(symbol, "no closing prices in historical data")

        return HistoricalPrices(
            symbol=symbol,
            period=f"{period_days}d",
            interval=interval,
            records=records,
        )
