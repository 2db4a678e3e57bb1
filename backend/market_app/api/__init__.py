"""API endpoints."""

from market_app.api.routes import router

__all__ = [
    "router",
]
