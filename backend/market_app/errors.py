"""Market data error taxonomy.

Raised at the data acquisition boundary (REST client and sources).
The pure engines in ``market_core`` never raise these.
"""


class MarketDataError(Exception):
    """Base class for market data acquisition failures."""


class InvalidRequest(MarketDataError):
    """Bad symbol/interval/limit, or a response that fails to parse. Not retried."""


class RateLimited(MarketDataError):
    """Provider throttling (HTTP 429). Surfaced so the caller can back off."""


class UpstreamError(MarketDataError):
    """Non-2xx provider response other than 400/429."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(message or f"Upstream request failed: {status}")


class NetworkError(MarketDataError):
    """Connectivity failure (DNS, connect, read timeout, ...)."""


def is_transient(exc: BaseException) -> bool:
    """Check if a failure is worth retrying (network errors and 5xx)."""
    if isinstance(exc, NetworkError):
        return True
    return isinstance(exc, UpstreamError) and 500 <= exc.status < 600
