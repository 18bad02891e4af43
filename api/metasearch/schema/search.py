"""Search response schemas for aggregated results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from metasearch.sources.base import NormalizedResult, SourceTag


class SearchResultItem(BaseModel):
    """Normalized result as serialized to API clients."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    date: str
    description: str
    source_tag: SourceTag = Field(alias="sourceTag")

    @classmethod
    def from_result(cls, result: NormalizedResult) -> "SearchResultItem":
        return cls.model_validate(result.as_dict())


class SourceHealth(BaseModel):
    state: str
    circuit_open: bool
    failure_total: int
    calls: int
    last_error: str | None = None
    circuit: dict[str, Any] | None = None


class HealthReport(BaseModel):
    status: str
    sources: dict[str, SourceHealth] = Field(default_factory=dict)
