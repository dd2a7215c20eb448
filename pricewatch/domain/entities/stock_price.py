"""
Domain entities for stock price data.
Zero external dependencies, pure Python dataclasses only.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


def normalize_symbol(symbol: str) -> str:
    """Return the canonical (stripped, upper-cased) form of a ticker symbol."""
    return symbol.strip().upper()


@dataclass(frozen=True)
class HistoricalRecord:
    date: str
    close: float
    adj_close: Optional[float] = None

    @property
    def closing_price(self) -> float:
        """Adjusted close when the provider reports one, raw close otherwise."""
        return self.adj_close if self.adj_close is not None else self.close


@dataclass(frozen=True)
class HistoricalPrices:
    symbol: str
    period: str
    interval: str
    records: list[HistoricalRecord]


@dataclass(frozen=True)
class PeriodSpec:
    """A start date and the whole number of days between it and today."""

    start: date
    days: int

    @property
    def descriptor(self) -> str:
        return f"{self.days}d"


@dataclass(frozen=True)
class PriceSeries:
    """Daily closing prices for one symbol, oldest first."""

    symbol: str
    closes: tuple[float, ...]
    period_days: int

    def __len__(self) -> int:
        return len(self.closes)

    @property
    def last(self) -> float:
        return self.closes[-1]


@dataclass(frozen=True)
class StatResult:
    symbol: str
    period_start: str
    closing_price: float
    price_difference: float
    relative_difference: float
    min: float
    max: float
    simple_moving_average: float

    def to_row(self, relative: bool = False) -> str:
        """Render the comma-separated output line.

        Args:
            relative: print the change relative to the benchmark instead of
                      the symbol's own percent change.
        """
        difference = self.relative_difference if relative else self.price_difference
        return (
            f"{self.period_start},{self.symbol},${self.closing_price:.2f},"
            f"{difference:.2f}%,${self.min:.2f},${self.max:.2f},"
            f"${self.simple_moving_average:.2f}"
        )

    def __str__(self) -> str:
        return self.to_row()


def header_row(window: int) -> str:
    return f"period start,symbol,price,change %,min,max,{window}d avg"
