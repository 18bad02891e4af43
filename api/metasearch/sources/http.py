from __future__ import annotations

from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

from metasearch.core.config import Settings


class ExternalAPIError(Exception):
    pass


def build_client(config: Settings) -> httpx.AsyncClient:
    """Create the process-wide client shared by every source adapter."""
    return httpx.AsyncClient(
        timeout=config.source_timeout_seconds,
        limits=httpx.Limits(max_connections=config.http_max_connections),
        follow_redirects=True,
    )


async def _request(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    attempts: int = 1,
) -> httpx.Response:
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.2, exp_base=2, max=2) + wait_random(0, 0.2),
        retry=retry_if_exception_type((httpx.TransportError, ExternalAPIError)),
        reraise=True,
    ):
        with attempt:
            response = await client.get(url, params=params, headers=headers)
            if response.status_code >= 500:
                raise ExternalAPIError(f"Server error {response.status_code}")
            response.raise_for_status()
            return response
    raise ExternalAPIError("Unreachable")


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    attempts: int = 1,
) -> Any:
    response = await _request(
        client, url, params=params, headers={"accept": "application/json"}, attempts=attempts
    )
    return response.json()


async def fetch_content(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    attempts: int = 1,
) -> bytes:
    response = await _request(client, url, params=params, attempts=attempts)
    return response.content
