from __future__ import annotations

"""Lightweight async HTTP helper for the rate sources.

One GET, JSON decoded, no retries: the provider fallback chain decides what
happens on failure. Every request carries a timeout so a hung source cannot
stall the chain.
"""
from typing import Any, Dict, Optional

import httpx


class HttpError(Exception):
    pass


async def get_json(
    url: str,
    *,
    timeout: float = 5.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(url)
    except httpx.TimeoutException as e:
        raise HttpError(f"Timed out after {timeout}s fetching {url}") from e
    except httpx.HTTPError as e:
        raise HttpError(f"Failed to fetch {url}: {e}") from e
    if resp.status_code >= 400:
        raise HttpError(f"HTTP {resp.status_code} for {url}")
    try:
        data = resp.json()
    except ValueError as e:  # JSON decode
        raise HttpError(f"Invalid JSON from {url}: {e}") from e
    if not isinstance(data, dict):
        raise HttpError(f"Unexpected JSON payload from {url}")
    return data
