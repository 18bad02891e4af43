"""Media catalog connector (iTunes-style JSON search)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from metasearch.sources.base import BaseSourceAdapter, NormalizedResult, SourceTag, SourceUnavailable, as_text
from metasearch.sources.http import fetch_json


def render_release_date(value: Any) -> str:
    """Render an ISO-8601 release timestamp using ``str(datetime)``."""
    if not value:
        return ""
    text = as_text(value)
    try:
        return str(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return text


class CatalogAAdapter(BaseSourceAdapter):
    """Search the media catalog and map artist/collection records."""
    source_tag = SourceTag.CATALOG_A
    default_url = "https://itunes.apple.com/search"

    async def _search(self, term: str) -> list[NormalizedResult]:
        payload = await fetch_json(self.client, self.url, params={"term": term}, attempts=self.retry_attempts)
        if not isinstance(payload, dict):
            raise SourceUnavailable(self.source_tag, "expected a JSON object")
        records = payload.get("results")
        if records is None:
            return []
        if not isinstance(records, list):
            raise SourceUnavailable(self.source_tag, "results is not a list")
        return [result for result in map(self.parse_record, records) if result is not None]

    def parse_record(self, record: Any) -> NormalizedResult | None:
        if not isinstance(record, dict):
            return None
        artist_id = as_text(record.get("artistId"))
        name = as_text(record.get("artistName"))
        if not artist_id.strip() or not name.strip():
            return None
        return NormalizedResult(
            id=artist_id,
            name=name,
            date=render_release_date(record.get("releaseDate")),
            description=as_text(record.get("collectionName")),
            source_tag=self.source_tag,
        )
