"""
Command-line entry point for the price monitor.

This module is the Composition Root: it reads settings, wires the yfinance
adapter into the Supervisor and hands both to the polling use-case.

Run:
    pricewatch --from 2024-01-02 AAPL MSFT --relative
    python -m pricewatch.infrastructure.entrypoints.cli --from 2024-01-02 AAPL
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import date
from typing import Optional, Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from pricewatch.application.actors.supervisor import Supervisor
from pricewatch.application.services.benchmark_cache import BenchmarkCache
from pricewatch.application.use_cases.poll_prices import (
    PollPricesUseCase,
    ProviderErrorPolicy,
    validate_period,
)
from pricewatch.domain.entities.stock_price import PeriodSpec, StatResult, header_row
from pricewatch.domain.errors import ConfigurationError, DateParseError, ProviderError
from pricewatch.domain.ports.stock_data_port import IStockDataProvider
from pricewatch.infrastructure.config.settings import Settings
from pricewatch.infrastructure.observability.logger import setup_logger

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pricewatch",
        description="Poll daily closing prices and print summary statistics per symbol.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Absolute change since the start date, every 30 seconds
  pricewatch --from 2024-01-02 AAPL MSFT

  # Change relative to the benchmark index, single pass, no header
  pricewatch --from 2024-01-02 --relative --once --no-headers AAPL
        """,
    )
    parser.add_argument(
        "--from",
        dest="start",
        required=True,
        help="Start of the period, YYYY-MM-DD (a trailing THH:MM:SS part is ignored)",
    )
    parser.add_argument("symbols", nargs="+", help="Ticker symbols to monitor")
    parser.add_argument(
        "--relative",
        action="store_true",
        help="Print the change relative to the benchmark instead of the absolute change",
    )
    parser.add_argument("--debug", action="store_true", help="Print diagnostic output")
    parser.add_argument("--no-headers", action="store_true", help="Do not print the header line")
    parser.add_argument("--window", type=int, help="Moving average window in days")
    parser.add_argument("--interval", type=float, help="Seconds to sleep between ticks")
    parser.add_argument("--benchmark", help="Benchmark symbol (default: ^GSPC)")
    parser.add_argument("--timeout", type=float, help="Provider request timeout in seconds")
    parser.add_argument(
        "--on-provider-error",
        choices=[policy.value for policy in ProviderErrorPolicy],
        help="Keep polling after a provider failure, or exit with status 1",
    )
    parser.add_argument("--once", action="store_true", help="Run a single tick and exit")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {
        "window": args.window,
        "interval_seconds": args.interval,
        "benchmark_symbol": args.benchmark,
        "request_timeout": args.timeout,
        "provider_error_policy": args.on_provider_error,
    }
    if args.debug:
        overrides["log_level"] = "DEBUG"
    update = {key: value for key, value in overrides.items() if value is not None}
    return Settings.model_validate({**settings.model_dump(), **update})


async def poll(
    provider: IStockDataProvider,
    settings: Settings,
    symbols: Sequence[str],
    period: PeriodSpec,
    relative: bool = False,
    max_ticks: Optional[int] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> int:
    stop_event = stop_event or asyncio.Event()
    _install_signal_handlers(stop_event)

    def emit(result: StatResult) -> None:
        print(result.to_row(relative=relative), flush=True)

    supervisor = Supervisor(
        provider,
        BenchmarkCache(settings.benchmark_symbol, retry_after=settings.benchmark_retry_after),
        timeout=settings.request_timeout,
        mailbox_size=settings.mailbox_size,
        backoff_base=settings.restart_backoff_base,
        backoff_max=settings.restart_backoff_max,
        max_consecutive_failures=settings.max_consecutive_failures,
    )
    async with supervisor:
        use_case = PollPricesUseCase(
            supervisor,
            emit,
            window=settings.window,
            interval=settings.interval_seconds,
            policy=settings.provider_error_policy,
        )
        return await use_case.run(symbols, period, stop_event=stop_event, max_ticks=max_ticks)


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops and non-main threads do not support this.
            pass


def main(
    argv: Optional[Sequence[str]] = None,
    provider: Optional[IStockDataProvider] = None,
    today: Optional[date] = None,
) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    try:
        settings = apply_overrides(Settings(), args)
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    setup_logger(level=settings.log_level.upper())

    start = args.start.split("T")[0]
    today = today or date.today()
    logger.debug(f"Calculating the period from {start} until {today:%Y-%m-%d}...")
    try:
        period = validate_period(start, today, settings.window)
    except DateParseError as exc:
        print(f"{exc}, please enter a date in the form YYYY-MM-DD.", file=sys.stderr)
        return 1
    except ConfigurationError as exc:
        print(exc, file=sys.stderr)
        return 1

    logger.debug(f"Gathering info from the past {period.descriptor} for: {', '.join(args.symbols)}")
    if not args.no_headers:
        print(header_row(settings.window), flush=True)

    if provider is None:
        from pricewatch.infrastructure.stock_data.yfinance_adapter import YFinanceStockDataProvider

        provider = YFinanceStockDataProvider(timeout=settings.request_timeout)

    try:
        asyncio.run(
            poll(
                provider,
                settings,
                args.symbols,
                period,
                relative=args.relative,
                max_ticks=1 if args.once else None,
            )
        )
    except ProviderError as exc:
        print(f"Encountered a problem calling the market data provider: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
