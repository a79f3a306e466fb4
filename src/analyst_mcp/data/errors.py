"""Provider failure taxonomy."""


class ProviderError(Exception):
    """Base class for upstream provider failures."""

    error_type = "provider_error"

    def __init__(self, message: str, *, provider: str, symbol: str | None = None):
        super().__init__(message)
        self.provider = provider
        self.symbol = symbol


class ProviderUnavailableError(ProviderError):
    """Network error, timeout or 5xx response."""

    error_type = "provider_unavailable"


class CredentialsRejectedError(ProviderUnavailableError):
    """Provider refused the API key (HTTP 401/403). Never retried."""


class RateLimitedError(ProviderError):
    """Provider reported its request limit, possibly inside a 200 response."""

    error_type = "rate_limited"

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        symbol: str | None = None,
        retry_after_seconds: int | None = None,
    ):
        super().__init__(message, provider=provider, symbol=symbol)
        self.retry_after_seconds = retry_after_seconds


class MalformedPayloadError(ProviderError):
    """Response parsed but lacks the fields we need."""

    error_type = "malformed_payload"


class TickerNotFoundError(ProviderError):
    """Provider explicitly does not know the ticker."""

    error_type = "not_found"


class ReportAssemblyError(Exception):
    """Raised when an analyst report cannot be produced at all."""

    def __init__(
        self,
        ticker: str,
        cause: str,
        *,
        error_type: str = "data_unavailable",
        retry_after_seconds: int | None = None,
    ):
        super().__init__(f"Cannot build report for {ticker}: {cause}")
        self.ticker = ticker
        self.cause = cause
        self.error_type = error_type
        self.retry_after_seconds = retry_after_seconds
