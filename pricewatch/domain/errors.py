"""
Domain exception hierarchy.

ConfigurationError is raised before the polling loop starts and is never
retried. ProviderError crashes the actor that hit it; the Supervisor restarts
the actor and the polling loop decides whether the process survives.
RequestError is scoped to one message: the actor replies with it and keeps
running.
"""


class PriceWatchError(Exception):
    """Base class for every error raised by pricewatch."""


class ConfigurationError(PriceWatchError):
    """Invalid start date, or a period too short for the moving average window."""


class DateParseError(ConfigurationError, ValueError):
    """A date or period descriptor could not be parsed."""


class ProviderError(PriceWatchError):
    """The market data provider failed to return a usable price history."""

    def __init__(self, symbol: str, message: str) -> None:
        super().__init__(f"{symbol}: {message}")
        self.symbol = symbol


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""


class RequestError(PriceWatchError):
    """A single request could not be served; the actor stays healthy."""


class InsufficientDataError(RequestError):
    """The price series is shorter than the moving average window."""

    def __init__(self, symbol: str, length: int, window: int) -> None:
        super().__init__(
            f"{symbol}: window too large for data ({length} prices, window of {window})"
        )
        self.symbol = symbol
        self.length = length
        self.window = window


class ActorUnavailableError(PriceWatchError):
    """The Supervisor gave up restarting an actor after repeated failures."""
