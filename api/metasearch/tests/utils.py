"""Shared helpers for source and aggregator tests."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx

from metasearch.sources.base import BaseSourceAdapter, NormalizedResult, SourceTag, SourceUnavailable

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


def mock_client(handler: Handler) -> httpx.AsyncClient:
    """Return an AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def result(name: str, tag: SourceTag, record_id: str = "1") -> NormalizedResult:
    return NormalizedResult(id=record_id, name=name, date="", description="", source_tag=tag)


class FakeAdapter(BaseSourceAdapter):
    """Adapter returning canned results, raising, or blocking on demand."""
    default_url = "http://fake.invalid"

    def __init__(
        self,
        tag: SourceTag,
        results: list[NormalizedResult] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__(None, timeout=5.0)  # type: ignore[arg-type]
        self.source_tag = tag
        self.results = results or []
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.started = asyncio.Event()
        self.cancelled = False

    async def _search(self, term: str) -> list[NormalizedResult]:
        self.calls.append(term)
        self.started.set()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return list(self.results)


def unavailable(tag: SourceTag, reason: str = "status 503") -> SourceUnavailable:
    return SourceUnavailable(tag, reason)
