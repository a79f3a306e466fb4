"""Runtime configuration loaded from the environment."""

import os
from dataclasses import dataclass

QUOTE_PROVIDERS = {"finnhub", "yfinance"}
HISTORY_PROVIDERS = {"alphavantage", "yfinance"}

# Larger configured values are clamped to this
MAX_RETRIES_CAP = 3


@dataclass(frozen=True)
class Settings:
    """
    Immutable provider configuration.

    Passed explicitly into adapter construction so adapters can be built
    against fake endpoints in tests. Nothing below reads the environment
    except `from_env`.
    """

    finnhub_api_key: str = ""
    alphavantage_api_key: str = ""
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    alphavantage_base_url: str = "https://www.alphavantage.co/query"
    quote_provider: str = "finnhub"
    history_provider: str = "alphavantage"
    narrative_url: str | None = None
    request_timeout: float = 10.0
    max_retries: int = 2
    retry_base_delay: float = 0.5
    retry_max_delay: float = 4.0

    def __post_init__(self) -> None:
        quote_provider = self.quote_provider.lower().strip()
        history_provider = self.history_provider.lower().strip()

        if quote_provider not in QUOTE_PROVIDERS:
            raise ValueError(
                f"Invalid quote provider '{self.quote_provider}'. Must be one of: {QUOTE_PROVIDERS}"
            )
        if history_provider not in HISTORY_PROVIDERS:
            raise ValueError(
                f"Invalid history provider '{self.history_provider}'. "
                f"Must be one of: {HISTORY_PROVIDERS}"
            )
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

        object.__setattr__(self, "quote_provider", quote_provider)
        object.__setattr__(self, "history_provider", history_provider)
        object.__setattr__(self, "max_retries", max(0, min(self.max_retries, MAX_RETRIES_CAP)))
        object.__setattr__(self, "narrative_url", self.narrative_url or None)

    @property
    def call_timeout(self) -> float:
        """Upper bound for one adapter call including its retries and backoff."""
        return self.request_timeout * (self.max_retries + 1) + self.retry_max_delay * self.max_retries

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            finnhub_api_key=os.environ.get("FINNHUB_API_KEY", ""),
            alphavantage_api_key=os.environ.get("ALPHAVANTAGE_API_KEY", ""),
            finnhub_base_url=os.environ.get("FINNHUB_BASE_URL", cls.finnhub_base_url),
            alphavantage_base_url=os.environ.get(
                "ALPHAVANTAGE_BASE_URL", cls.alphavantage_base_url
            ),
            quote_provider=os.environ.get("QUOTE_PROVIDER", cls.quote_provider),
            history_provider=os.environ.get("HISTORY_PROVIDER", cls.history_provider),
            narrative_url=os.environ.get("NARRATIVE_URL"),
            request_timeout=float(os.environ.get("REQUEST_TIMEOUT", "10")),
            max_retries=int(os.environ.get("MAX_RETRIES", "2")),
            retry_base_delay=float(os.environ.get("RETRY_BASE_DELAY", "0.5")),
            retry_max_delay=float(os.environ.get("RETRY_MAX_DELAY", "4.0")),
        )
