"""
Supervisor: owns the Fetcher and Processor actors and restarts them on crash.

Restarts are throttled with exponential backoff on the number of consecutive
crashes of that actor; one successfully served message resets the count.
When ``max_consecutive_failures`` is set and reached, the circuit opens: the
actor is not restarted again and every pending or future request fails with
ActorUnavailableError.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from pricewatch.application.actors.base import Actor, ActorCrashed, Envelope
from pricewatch.application.actors.fetcher import FetchRequest, StockPriceFetcher
from pricewatch.application.actors.processor import ProcessRequest, StockPriceProcessor
from pricewatch.application.services.benchmark_cache import BenchmarkCache
from pricewatch.domain.entities.stock_price import PriceSeries, StatResult
from pricewatch.domain.errors import ActorUnavailableError
from pricewatch.domain.ports.stock_data_port import IStockDataProvider

logger = logging.getLogger(__name__)


@dataclass
class ActorSlot:
    name: str
    factory: Callable[[], Actor]
    mailbox: asyncio.Queue
    failures: int = 0
    restarts: int = 0
    circuit_open: bool = False
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    def reset_failures(self) -> None:
        self.failures = 0


class Supervisor:
    def __init__(
        self,
        provider: IStockDataProvider,
        benchmark: Optional[BenchmarkCache] = None,
        *,
        timeout: Optional[float] = 30.0,
        mailbox_size: int = 16,
        backoff_base: float = 1.0,
        backoff_max: float = 60.0,
        max_consecutive_failures: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            provider:                 IStockDataProvider handed to every Fetcher instance.
            benchmark:                BenchmarkCache shared by every Processor instance.
            timeout:                  Per-request provider timeout in seconds.
            mailbox_size:             Capacity of each actor's mailbox.
            backoff_base:             Delay before the first restart; doubles per crash.
            backoff_max:              Upper bound of the restart delay.
            max_consecutive_failures: Crashes in a row after which the actor is
                                      abandoned; None restarts forever.
            sleep:                    Awaitable used for backoff delays.
        """
        self.benchmark = benchmark if benchmark is not None else BenchmarkCache()
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._max_consecutive_failures = max_consecutive_failures
        self._sleep = sleep

        self.fetcher = ActorSlot(
            name=StockPriceFetcher.name,
            factory=lambda: StockPriceFetcher(provider, timeout=timeout),
            mailbox=asyncio.Queue(maxsize=mailbox_size),
        )
        self.processor = ActorSlot(
            name=StockPriceProcessor.name,
            factory=lambda: StockPriceProcessor(self.benchmark, self.fetch),
            mailbox=asyncio.Queue(maxsize=mailbox_size),
        )

    @property
    def slots(self) -> tuple[ActorSlot, ActorSlot]:
        return self.fetcher, self.processor

    async def __aenter__(self) -> "Supervisor":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def start(self) -> None:
        for slot in self.slots:
            if slot.task is None or slot.task.done():
                slot.task = asyncio.create_task(self._supervise(slot), name=f"{slot.name}-supervisor")

    async def stop(self) -> None:
        tasks = [slot.task for slot in self.slots if slot.task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for slot in self.slots:
            slot.task = None
            self._fail_pending(slot, ActorUnavailableError(f"{slot.name} stopped"))

    async def fetch(self, symbol: str, period_days: int) -> PriceSeries:
        return await self.ask(self.fetcher, FetchRequest(symbol=symbol, period_days=period_days))

    async def process(self, request: ProcessRequest) -> StatResult:
        return await self.ask(self.processor, request)

    async def ask(self, slot: ActorSlot, message: Any) -> Any:
        """Send *message* to the actor in *slot* and await its correlated reply."""
        if slot.circuit_open:
            raise ActorUnavailableError(
                f"{slot.name} abandoned after {slot.failures} consecutive failures"
            )
        reply = asyncio.get_running_loop().create_future()
        await slot.mailbox.put(Envelope(message=message, reply=reply))
        return await reply

    def backoff_delay(self, failures: int) -> float:
        return min(self._backoff_base * 2 ** (failures - 1), self._backoff_max)

    async def _supervise(self, slot: ActorSlot) -> None:
        while True:
            actor = slot.factory()
            try:
                await actor.run(slot.mailbox, on_success=slot.reset_failures)
            except ActorCrashed as exc:
                slot.failures += 1
                limit = self._max_consecutive_failures
                if limit is not None and slot.failures >= limit:
                    slot.circuit_open = True
                    logger.error(
                        f"{slot.name} failed {slot.failures} times in a row, giving up: {exc.cause}"
                    )
                    self._fail_pending(
                        slot, ActorUnavailableError(f"{slot.name} abandoned: {exc.cause}")
                    )
                    return
                delay = self.backoff_delay(slot.failures)
                logger.warning(
                    f"{slot.name} crashed ({exc.cause}); restarting in {delay:.1f}s "
                    f"(consecutive failures: {slot.failures})"
                )
                await self._sleep(delay)
                slot.restarts += 1
                logger.info(f"{slot.name} restarted")

    @staticmethod
    def _fail_pending(slot: ActorSlot, error: Exception) -> None:
        while not slot.mailbox.empty():
            envelope = slot.mailbox.get_nowait()
            if not envelope.reply.done():
                envelope.reply.set_exception(error)
            slot.mailbox.task_done()
