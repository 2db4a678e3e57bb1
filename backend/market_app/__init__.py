"""Market data acquisition, caching and the HTTP API."""
