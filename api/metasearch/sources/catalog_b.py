"""TV show catalog connector (TVMaze-style JSON search)."""

from __future__ import annotations

from typing import Any

from metasearch.sources.base import BaseSourceAdapter, NormalizedResult, SourceTag, SourceUnavailable, as_text
from metasearch.sources.http import fetch_json


class CatalogBAdapter(BaseSourceAdapter):
    """Search the TV show catalog; each hit wraps one ``show`` object."""
    source_tag = SourceTag.CATALOG_B
    default_url = "https://api.tvmaze.com/search/shows"

    async def _search(self, term: str) -> list[NormalizedResult]:
        payload = await fetch_json(self.client, self.url, params={"q": term}, attempts=self.retry_attempts)
        if not isinstance(payload, list):
            raise SourceUnavailable(self.source_tag, "expected a JSON array")
        return [result for result in map(self.parse_record, payload) if result is not None]

    def parse_record(self, wrapper: Any) -> NormalizedResult | None:
        show = wrapper.get("show") if isinstance(wrapper, dict) else None
        if not isinstance(show, dict):
            return None
        show_id = as_text(show.get("id"))
        name = as_text(show.get("name"))
        if not show_id.strip() or not name.strip():
            return None
        # summary is HTML from the backend and is passed through untouched
        return NormalizedResult(
            id=show_id,
            name=name,
            date=as_text(show.get("premiered")),
            description=as_text(show.get("summary")),
            source_tag=self.source_tag,
        )
