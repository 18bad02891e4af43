"""Base adapter primitives for external search sources."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass

import httpx

from metasearch.core.config import settings
from metasearch.sources.http import ExternalAPIError


class SourceTag(str, enum.Enum):
    CATALOG_A = "CatalogA"
    CATALOG_B = "CatalogB"
    LEGACY = "Legacy"


@dataclass(frozen=True, slots=True)
class NormalizedResult:
    """Common record every source adapter maps its native payload into.

    ``date`` and ``description`` are opaque text whose meaning depends on
    ``source_tag``; they are never parsed downstream.
    """
    id: str
    name: str
    date: str
    description: str
    source_tag: SourceTag

    def as_dict(self) -> dict[str, str]:
        """Return the wire representation of the record."""
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "description": self.description,
            "sourceTag": self.source_tag.value,
        }


class SourceUnavailable(Exception):
    """Raised when a source could not be reached or its payload parsed."""

    def __init__(self, source_tag: SourceTag, reason: str) -> None:
        super().__init__(f"{source_tag.value} unavailable: {reason}")
        self.source_tag = source_tag
        self.reason = reason


class BaseSourceAdapter:
    """Abstract adapter interface for one search backend.

    Subclasses implement ``_search`` with exactly one outbound call; ``search``
    applies the per-call deadline and converts every backend failure into
    ``SourceUnavailable``.
    """
    source_tag: SourceTag
    default_url: str

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url: str | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
    ) -> None:
        self.client = client
        self.url = url or self.default_url
        self.timeout = timeout if timeout is not None else settings.source_timeout_seconds
        self.retry_attempts = retry_attempts or settings.source_retry_attempts

    async def search(self, term: str) -> list[NormalizedResult]:
        """Return normalized results for ``term`` or raise ``SourceUnavailable``."""
        try:
            return await asyncio.wait_for(self._search(term), timeout=self.timeout)
        except SourceUnavailable:
            raise
        except asyncio.TimeoutError as exc:
            raise SourceUnavailable(self.source_tag, f"timed out after {self.timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise SourceUnavailable(self.source_tag, f"status {exc.response.status_code}") from exc
        except (httpx.HTTPError, ExternalAPIError, ValueError) as exc:
            raise SourceUnavailable(self.source_tag, f"{type(exc).__name__}: {exc}") from exc

    async def _search(self, term: str) -> list[NormalizedResult]:
        raise NotImplementedError


def as_text(value: object) -> str:
    """Render an optional scalar as text, mapping ``None`` to an empty string."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
