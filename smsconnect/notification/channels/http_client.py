"""Shared HTTP client management."""

import httpx

from smsconnect.core.config import get_settings

_client: httpx.AsyncClient | None = None


async def init_http_client() -> None:
    """Create the shared outbound HTTP client."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = httpx.AsyncClient(timeout=settings.http_timeout)


async def close_http_client() -> None:
    """Close the shared outbound HTTP client."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client.

    Raises:
        RuntimeError: If the client is not initialized
    """
    if _client is None:
        raise RuntimeError("HTTP client not initialized. Call init_http_client() first.")
    return _client
