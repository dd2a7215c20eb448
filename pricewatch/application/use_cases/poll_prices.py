"""
Use-case: poll closing prices for a list of symbols and emit one row per symbol per tick.
Depends only on the Supervisor and domain types; no infrastructure imports.

A tick walks the symbols in the caller's order, driving Fetcher then Processor
for one symbol at a time, and emits each row as soon as it is ready. Between
ticks the loop sleeps ``interval`` seconds, waking early if ``stop_event`` is
set; it never stops in the middle of a tick.
"""

import asyncio
import enum
import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from pricewatch.application.actors.processor import ProcessRequest
from pricewatch.application.actors.supervisor import Supervisor
from pricewatch.domain.entities.stock_price import PeriodSpec, StatResult, normalize_symbol
from pricewatch.domain.errors import (
    ActorUnavailableError,
    ConfigurationError,
    ProviderError,
    RequestError,
)
from pricewatch.domain.services.statistics import DATE_FORMAT, count_days, parse_period

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 30
DEFAULT_INTERVAL_SECONDS = 30.0


class ProviderErrorPolicy(str, enum.Enum):
    RESTART = "restart"
    EXIT = "exit"


def validate_period(start: str, today: date, window: int = DEFAULT_WINDOW) -> PeriodSpec:
    """Check the requested period once, before any provider call is made.

    Raises:
        DateParseError:     if *start* is not a YYYY-MM-DD date.
        ConfigurationError: if the period does not exceed the window.
    """
    days = parse_period(count_days(start, today.strftime(DATE_FORMAT)))
    if days <= window:
        raise ConfigurationError(
            f"Please select a start date more than {window} days in the past."
        )
    return PeriodSpec(start=datetime.strptime(start, DATE_FORMAT).date(), days=days)


def unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Upper-case *symbols* and drop case-insensitive duplicates, keeping order."""
    seen: dict[str, None] = {}
    for symbol in symbols:
        normalized = normalize_symbol(symbol)
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


class PollPricesUseCase:
    def __init__(
        self,
        supervisor: Supervisor,
        emit: Callable[[StatResult], None],
        *,
        window: int = DEFAULT_WINDOW,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        policy: ProviderErrorPolicy = ProviderErrorPolicy.RESTART,
    ) -> None:
        """
        Args:
            supervisor: Running Supervisor that owns the Fetcher and Processor.
            emit:       Called with each StatResult as soon as it is computed.
            window:     Moving average window in days.
            interval:   Seconds to sleep between ticks.
            policy:     What a provider failure does to the loop.

        Raises:
            ConfigurationError: if *window* is smaller than one day.
        """
        if window < 1:
            raise ConfigurationError(f"Moving average window must be at least 1 day, got {window}.")
        self._supervisor = supervisor
        self._emit = emit
        self._window = window
        self._interval = interval
        self._policy = ProviderErrorPolicy(policy)

    async def run(
        self,
        symbols: Iterable[str],
        period: PeriodSpec,
        stop_event: Optional[asyncio.Event] = None,
        max_ticks: Optional[int] = None,
    ) -> int:
        """Poll until *stop_event* is set or *max_ticks* ticks have run.

        Returns:
            Number of completed ticks.

        Raises:
            ConfigurationError: if the period does not exceed the window.
            ProviderError:      on a provider failure under the EXIT policy.
        """
        if period.days <= self._window:
            raise ConfigurationError(
                f"Please select a start date more than {self._window} days in the past."
            )
        stop_event = stop_event or asyncio.Event()
        tickers = unique_symbols(symbols)
        ticks = 0
        while not stop_event.is_set():
            logger.debug(f"Tick {ticks + 1}: {len(tickers)} symbols over {period.descriptor}")
            await self.tick(tickers, period)
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
        logger.info(f"Polling stopped after {ticks} ticks")
        return ticks

    async def tick(self, symbols: list[str], period: PeriodSpec) -> list[StatResult]:
        results = []
        for symbol in symbols:
            result = await self.poll_symbol(symbol, period)
            if result is not None:
                self._emit(result)
                results.append(result)
        return results

    async def poll_symbol(self, symbol: str, period: PeriodSpec) -> Optional[StatResult]:
        try:
            series = await self._supervisor.fetch(symbol, period.days)
            return await self._supervisor.process(
                ProcessRequest(
                    symbol=symbol,
                    period_start=period.start.strftime(DATE_FORMAT),
                    series=series,
                    window=self._window,
                )
            )
        except ProviderError as exc:
            if self._policy is ProviderErrorPolicy.EXIT:
                raise
            logger.error(f"Encountered a problem calling the market data provider: {exc}")
        except (RequestError, ActorUnavailableError) as exc:
            logger.error(f"Skipping {symbol}: {exc}")
        except Exception as exc:
            # The crashed actor is already being restarted by the supervisor.
            if self._policy is ProviderErrorPolicy.EXIT:
                raise
            logger.error(f"Skipping {symbol} after an unexpected failure: {exc!r}")
        return None
