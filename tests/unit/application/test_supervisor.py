"""Tests for pricewatch/application/actors/supervisor.py and the actor runtime."""

import asyncio

import pytest

from pricewatch.application.actors.base import Actor, ActorCrashed, Envelope
from pricewatch.application.actors.processor import ProcessRequest
from pricewatch.application.actors.supervisor import Supervisor
from pricewatch.domain.entities.stock_price import PriceSeries
from pricewatch.domain.errors import (
    ActorUnavailableError,
    InsufficientDataError,
    ProviderError,
    RequestError,
)


class _EchoActor(Actor):
    name = "echo"

    async def handle(self, message):
        if message == "bad-request":
            raise RequestError("rejected")
        if message == "crash":
            raise RuntimeError("boom")
        return message.upper()


async def _send(mailbox, message):
    reply = asyncio.get_running_loop().create_future()
    await mailbox.put(Envelope(message=message, reply=reply))
    return reply


# --- Actor runtime ---

def test_actor_replies_and_survives_request_errors():
    async def scenario():
        mailbox = asyncio.Queue()
        task = asyncio.create_task(_EchoActor().run(mailbox))
        rejected = await _send(mailbox, "bad-request")
        with pytest.raises(RequestError):
            await rejected
        ok = await _send(mailbox, "hello")
        assert await ok == "HELLO"
        assert not task.done()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    asyncio.run(scenario())


def test_actor_crashes_after_replying_with_the_error():
    async def scenario():
        mailbox = asyncio.Queue()
        task = asyncio.create_task(_EchoActor().run(mailbox))
        reply = await _send(mailbox, "crash")
        with pytest.raises(RuntimeError, match="boom"):
            await reply
        with pytest.raises(ActorCrashed):
            await task

    asyncio.run(scenario())


# --- Supervisor ---

def test_backoff_doubles_and_is_capped(provider):
    supervisor = Supervisor(provider, backoff_base=1.0, backoff_max=5.0)
    assert [supervisor.backoff_delay(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_fetch_through_supervisor(provider, ascending_45):
    async def scenario():
        async with Supervisor(provider) as supervisor:
            return await supervisor.fetch("AAPL", 45)

    series = asyncio.run(scenario())
    assert series.closes == tuple(ascending_45)


def test_fetcher_restarted_after_provider_failure(make_provider, recorded_sleeps):
    provider = make_provider(default=[1.0, 2.0, 3.0], fail_times={"AAPL": 1})

    async def scenario():
        async with Supervisor(provider, sleep=recorded_sleeps) as supervisor:
            with pytest.raises(ProviderError):
                await supervisor.fetch("AAPL", 45)
            series = await supervisor.fetch("AAPL", 45)
            return supervisor, series

    supervisor, series = asyncio.run(scenario())
    assert series.closes == (1.0, 2.0, 3.0)
    assert supervisor.fetcher.restarts == 1
    assert supervisor.fetcher.failures == 0
    assert recorded_sleeps.delays == [1.0]


def test_consecutive_failures_back_off_exponentially(make_provider, recorded_sleeps):
    provider = make_provider(default=[1.0], fail_times={"AAPL": 3})

    async def scenario():
        async with Supervisor(provider, sleep=recorded_sleeps) as supervisor:
            for _ in range(3):
                with pytest.raises(ProviderError):
                    await supervisor.fetch("AAPL", 45)
            await supervisor.fetch("AAPL", 45)

    asyncio.run(scenario())
    assert recorded_sleeps.delays == [1.0, 2.0, 4.0]


def test_circuit_opens_after_max_consecutive_failures(make_provider, recorded_sleeps):
    provider = make_provider(default=[1.0], fail_times={"AAPL": 10})

    async def scenario():
        async with Supervisor(
            provider, max_consecutive_failures=2, sleep=recorded_sleeps
        ) as supervisor:
            for _ in range(2):
                with pytest.raises(ProviderError):
                    await supervisor.fetch("AAPL", 45)
            with pytest.raises(ActorUnavailableError):
                await supervisor.fetch("AAPL", 45)
            return supervisor

    supervisor = asyncio.run(scenario())
    assert supervisor.fetcher.circuit_open
    assert provider.calls_for("AAPL") == 2


def test_request_errors_do_not_restart_processor(provider):
    async def scenario():
        async with Supervisor(provider) as supervisor:
            with pytest.raises(InsufficientDataError):
                await supervisor.process(
                    ProcessRequest(
                        symbol="AAPL",
                        period_start="2024-01-01",
                        series=PriceSeries(symbol="AAPL", closes=(1.0, 2.0), period_days=45),
                        window=30,
                    )
                )
            return supervisor

    supervisor = asyncio.run(scenario())
    assert supervisor.processor.restarts == 0
    assert supervisor.processor.failures == 0


def test_processor_loads_benchmark_through_fetcher(provider, ascending_45):
    async def scenario():
        async with Supervisor(provider) as supervisor:
            series = await supervisor.fetch("AAPL", 45)
            return await supervisor.process(
                ProcessRequest(symbol="AAPL", period_start="2024-01-01", series=series, window=30)
            )

    result = asyncio.run(scenario())
    assert result.relative_difference == 0.0
    assert provider.calls_for("^GSPC") == 1


def test_stop_fails_queued_requests(provider):
    async def scenario():
        supervisor = Supervisor(provider)
        reply = await _send(supervisor.fetcher.mailbox, "never served")
        await supervisor.stop()
        with pytest.raises(ActorUnavailableError):
            await reply

    asyncio.run(scenario())
