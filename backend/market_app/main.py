"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from market_app.api import router
from market_app.clients import BinanceRestClient
from market_app.config import get_settings
from market_app.errors import (
    InvalidRequest,
    MarketDataError,
    NetworkError,
    RateLimited,
    UpstreamError,
)
from market_app.services import CandleSource, OrderBookSource
from market_core.checklist import EmptySeriesError

logger = logging.getLogger(__name__)

# HTTP status returned for each market data failure
ERROR_STATUS: dict[type[MarketDataError], int] = {
    InvalidRequest: 400,
    RateLimited: 429,
    UpstreamError: 502,
    NetworkError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info("Starting market signals API...")
    client = BinanceRestClient(
        api_key=settings.binance_api_key,
        base_url=settings.binance_base_url,
        timeout=settings.request_timeout,
        calls_per_minute=settings.calls_per_minute,
    )
    candle_source = CandleSource.from_settings(client, settings)
    orderbook_source = OrderBookSource.from_settings(client, settings)

    app.state.candle_source = candle_source
    app.state.orderbook_source = orderbook_source
    # No backend timeframe collaborator wired: the local default applies
    app.state.timeframe_provider = None

    yield

    # Shutdown
    logger.info("Shutting down...")
    await candle_source.cache.aclose()
    await orderbook_source.cache.aclose()
    await client.close()
    logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="Market Signals",
    description="Checklist signals and order book depth for crypto futures",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include REST routes
app.include_router(router, prefix="/api")


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError):
    """Translate market data failures into HTTP errors."""
    status = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        502,
    )
    logger.warning(f"{request.method} {request.url.path} -> {status}: {exc}")
    return ORJSONResponse(status_code=status, content={"detail": str(exc)})


@app.exception_handler(EmptySeriesError)
async def empty_series_handler(request: Request, exc: EmptySeriesError):
    """No candles means the symbol has nothing to evaluate."""
    return ORJSONResponse(status_code=404, content={"detail": str(exc)})


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Market Signals",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "market_app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
