"""Legacy person lookup connector exposing a SOAP-style XML dataset."""

from __future__ import annotations

from xml.etree.ElementTree import Element, ParseError

import defusedxml.ElementTree as ET
import httpx

from metasearch.core.config import settings
from metasearch.sources.base import BaseSourceAdapter, NormalizedResult, SourceTag, SourceUnavailable
from metasearch.sources.http import fetch_content

DATASET_NS = "http://tempuri.org/QueryByName_DataSet"
RECORD_TAG = f"{{{DATASET_NS}}}QueryByName"


def _child_text(record: Element, name: str) -> str | None:
    child = record.find(f"{{{DATASET_NS}}}{name}")
    if child is None:
        return None
    return "".join(child.itertext())


class LegacyAdapter(BaseSourceAdapter):
    """Query the legacy name lookup service and map ID/Name/DOB/SSN records.

    By default ``id``, ``date`` and ``description`` carry a single leading
    space, matching what existing consumers of this service receive. A
    missing DOB or SSN therefore renders as ``" "``. Setting
    ``preserve_leading_space`` to False trims values instead.
    """
    source_tag = SourceTag.LEGACY
    default_url = "https://www.crcind.com/csp/samples/SOAP.Demo.cls"

    def __init__(self, client: httpx.AsyncClient, *, preserve_leading_space: bool | None = None, **kwargs) -> None:
        super().__init__(client, **kwargs)
        if preserve_leading_space is None:
            preserve_leading_space = settings.legacy_preserve_leading_space
        self.preserve_leading_space = preserve_leading_space

    async def _search(self, term: str) -> list[NormalizedResult]:
        content = await fetch_content(
            self.client,
            self.url,
            params={"soap_method": "QueryByName", "name": term},
            attempts=self.retry_attempts,
        )
        try:
            root = ET.fromstring(content)
        except ParseError as exc:
            raise SourceUnavailable(self.source_tag, f"malformed XML: {exc}") from exc
        return [result for result in map(self.parse_record, root.iter(RECORD_TAG)) if result is not None]

    def parse_record(self, record: Element) -> NormalizedResult | None:
        record_id = _child_text(record, "ID")
        name = _child_text(record, "Name")
        if not self.preserve_leading_space:
            record_id = (record_id or "").strip()
            name = (name or "").strip()
        if not record_id or not name:
            return None
        return NormalizedResult(
            id=self._render(record_id),
            name=name,
            date=self._render(_child_text(record, "DOB")),
            description=self._render(_child_text(record, "SSN")),
            source_tag=self.source_tag,
        )

    def _render(self, value: str | None) -> str:
        if self.preserve_leading_space:
            return f" {value or ''}"
        return (value or "").strip()
