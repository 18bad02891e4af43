from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from metasearch.api.deps import get_aggregator
from metasearch.schema.search import SearchResultItem
from metasearch.services.aggregator import Aggregator

UNAVAILABLE_HEADER = "X-Unavailable-Sources"
DEGRADED_HEADER = "X-Search-Degraded"

router = APIRouter()


@router.get("", response_model=list[SearchResultItem])
async def search(
    response: Response,
    term: str | None = Query(default=None),
    legacy_term: str | None = Query(default=None, alias="Busquedaparametro", include_in_schema=False),
    aggregator: Aggregator = Depends(get_aggregator),
) -> list[SearchResultItem]:
    """Search every configured source and return results ordered by name.

    Unavailable sources never fail the request; they are reported in the
    ``X-Unavailable-Sources`` header.
    """
    query = term if term is not None else (legacy_term or "")
    outcome = await aggregator.aggregate(query)
    if outcome.failures:
        response.headers[UNAVAILABLE_HEADER] = ",".join(tag.value for tag in outcome.failures)
    if outcome.all_failed:
        response.headers[DEGRADED_HEADER] = "all-sources-failed"
    return [SearchResultItem.from_result(result) for result in outcome.results]
