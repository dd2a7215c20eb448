"""Runtime settings read from PRICEWATCH_* environment variables."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pricewatch.application.services.benchmark_cache import BenchmarkCache
from pricewatch.application.use_cases.poll_prices import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_WINDOW,
    ProviderErrorPolicy,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PRICEWATCH_", extra="ignore")

    window: int = Field(default=DEFAULT_WINDOW, ge=1)
    interval_seconds: float = Field(default=DEFAULT_INTERVAL_SECONDS, ge=0.0)
    benchmark_symbol: str = BenchmarkCache.DEFAULT_SYMBOL
    benchmark_retry_after: float = Field(default=BenchmarkCache.DEFAULT_RETRY_AFTER, ge=0.0)
    request_timeout: Optional[float] = Field(default=30.0, gt=0.0)
    provider_error_policy: ProviderErrorPolicy = ProviderErrorPolicy.RESTART
    restart_backoff_base: float = Field(default=1.0, ge=0.0)
    restart_backoff_max: float = Field(default=60.0, ge=0.0)
    max_consecutive_failures: Optional[int] = Field(default=None, ge=1)
    mailbox_size: int = Field(default=16, ge=1)
    log_level: str = "INFO"
