import httpx
from fastapi import Depends, Request

from metasearch.services.aggregator import Aggregator
from metasearch.sources import build_adapters
from metasearch.sources.observability import source_monitor


async def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


async def get_aggregator(client: httpx.AsyncClient = Depends(get_http_client)) -> Aggregator:
    return Aggregator(build_adapters(client), monitor=source_monitor)
