"""Adapter registry for search sources."""

from __future__ import annotations

import httpx

from metasearch.core.config import settings
from metasearch.sources.base import BaseSourceAdapter, NormalizedResult, SourceTag, SourceUnavailable
from metasearch.sources.catalog_a import CatalogAAdapter
from metasearch.sources.catalog_b import CatalogBAdapter
from metasearch.sources.legacy import LegacyAdapter

__all__ = [
    "BaseSourceAdapter",
    "NormalizedResult",
    "SourceTag",
    "SourceUnavailable",
    "build_adapters",
    "get_adapter",
]


def get_adapter(source: str | SourceTag, client: httpx.AsyncClient) -> BaseSourceAdapter:
    """Return an adapter for the given source tag bound to ``client``."""
    try:
        tag = SourceTag(source)
    except ValueError:
        raise ValueError(f"Unsupported source {source}") from None
    if tag is SourceTag.CATALOG_A:
        return CatalogAAdapter(client, url=settings.catalog_a_search_url)
    if tag is SourceTag.CATALOG_B:
        return CatalogBAdapter(client, url=settings.catalog_b_search_url)
    return LegacyAdapter(client, url=settings.legacy_search_url)


def build_adapters(client: httpx.AsyncClient, sources: list[str] | None = None) -> list[BaseSourceAdapter]:
    """Build adapters in the fixed default order, honouring ``enabled_sources``."""
    enabled = set(sources if sources is not None else settings.enabled_sources)
    return [get_adapter(tag, client) for tag in SourceTag if tag.value in enabled]
