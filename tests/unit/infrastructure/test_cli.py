"""Tests for pricewatch/infrastructure/entrypoints/cli.py.

The fake provider is injected through main(), so no network access is needed.
"""

import logging
from datetime import date

import pytest

from pricewatch.infrastructure.config.settings import Settings
from pricewatch.infrastructure.entrypoints import cli

TODAY = date(2024, 2, 15)


@pytest.fixture(autouse=True)
def isolated(monkeypatch):
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    for name in Settings.model_fields:
        monkeypatch.delenv(f"PRICEWATCH_{name.upper()}", raising=False)
    yield
    package_logger = logging.getLogger("pricewatch")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


def test_single_tick_prints_header_and_rows(provider, capsys):
    code = cli.main(["--from", "2024-01-01", "--once", "aapl", "msft"], provider=provider, today=TODAY)

    assert code == 0
    assert capsys.readouterr().out.splitlines() == [
        "period start,symbol,price,change %,min,max,30d avg",
        "2024-01-01,AAPL,$45.00,4400.00%,$1.00,$45.00,$30.50",
        "2024-01-01,MSFT,$45.00,4400.00%,$1.00,$45.00,$30.50",
    ]


def test_no_headers_and_relative(provider, capsys):
    code = cli.main(
        ["--from", "2024-01-01T09:30:00", "--once", "--no-headers", "--relative", "AAPL"],
        provider=provider,
        today=TODAY,
    )

    assert code == 0
    assert capsys.readouterr().out.splitlines() == [
        "2024-01-01,AAPL,$45.00,0.00%,$1.00,$45.00,$30.50",
    ]


def test_short_period_exits_before_any_provider_call(provider, capsys):
    code = cli.main(["--from", "2024-02-05", "AAPL"], provider=provider, today=TODAY)

    assert code == 1
    assert provider.calls == []
    assert "more than 30 days in the past" in capsys.readouterr().err


def test_malformed_date_exits_with_hint(provider, capsys):
    code = cli.main(["--from", "01/02/2024", "AAPL"], provider=provider, today=TODAY)

    assert code == 1
    assert provider.calls == []
    assert "please enter a date in the form YYYY-MM-DD" in capsys.readouterr().err


def test_exit_policy_returns_one_on_provider_failure(make_provider, ascending_45, capsys):
    provider = make_provider(default=ascending_45, fail_times={"BAD": 1})
    code = cli.main(
        ["--from", "2024-01-01", "--on-provider-error", "exit", "--no-headers", "BAD"],
        provider=provider,
        today=TODAY,
    )

    assert code == 1
    assert "simulated outage" in capsys.readouterr().err


def test_window_override_changes_header(provider, capsys):
    code = cli.main(
        ["--from", "2024-01-01", "--window", "10", "--once", "AAPL"], provider=provider, today=TODAY
    )

    assert code == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].endswith(",10d avg")
    assert out[1].endswith(",$40.50")


def test_parser_requires_symbols():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--from", "2024-01-01"])


def test_window_below_one_exits_before_any_provider_call(provider, capsys):
    code = cli.main(["--from", "2024-01-01", "--window", "0", "AAPL"], provider=provider, today=TODAY)

    assert code == 1
    assert provider.calls == []
    captured = capsys.readouterr()
    assert "Invalid configuration" in captured.err
    assert "window" in captured.err
    assert captured.out == ""


def test_non_positive_timeout_is_rejected(provider, capsys):
    code = cli.main(["--from", "2024-01-01", "--timeout", "0", "--once", "AAPL"], provider=provider, today=TODAY)

    assert code == 1
    assert provider.calls == []
    assert "request_timeout" in capsys.readouterr().err
