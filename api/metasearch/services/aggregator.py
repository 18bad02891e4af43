"""Fan a query out to every search source and merge the normalized results."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Sequence

from metasearch.sources.base import BaseSourceAdapter, NormalizedResult, SourceTag, SourceUnavailable
from metasearch.sources.observability import CircuitOpenError, SourceMonitor
from metasearch.utils.redaction import redact_secrets

logger = logging.getLogger("metasearch.services.aggregator")


@dataclass(frozen=True, slots=True)
class SourceOutcome:
    """Final outcome of one adapter call: results, or the failure reason."""
    source_tag: SourceTag
    results: tuple[NormalizedResult, ...] = ()
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(slots=True)
class AggregationOutcome:
    """Merged search response with the sources that could not be used."""
    results: list[NormalizedResult] = field(default_factory=list)
    failures: tuple[SourceTag, ...] = ()
    counts: dict[SourceTag, int] = field(default_factory=dict)
    source_count: int = 0

    @property
    def all_failed(self) -> bool:
        """True when every configured source failed, as opposed to matching nothing."""
        return self.source_count > 0 and len(self.failures) == self.source_count


class Aggregator:
    """Query every adapter concurrently and return one name-ordered list.

    Implementation notes:
    - Adapters run independently; one failing source never affects another.
    - Results are concatenated in adapter order, then stable-sorted by name,
      so adapter order is the tie-break for equal names.
    - No deduplication across sources.
    """
    def __init__(self, adapters: Sequence[BaseSourceAdapter], monitor: SourceMonitor | None = None) -> None:
        self.adapters = list(adapters)
        self.monitor = monitor

    async def aggregate(self, term: str) -> AggregationOutcome:
        outcomes = await asyncio.gather(*(self._run(adapter, term) for adapter in self.adapters))
        merged: list[NormalizedResult] = []
        counts: dict[SourceTag, int] = {}
        failures: list[SourceTag] = []
        for outcome in outcomes:
            if outcome.failed:
                failures.append(outcome.source_tag)
                continue
            merged.extend(outcome.results)
            counts[outcome.source_tag] = len(outcome.results)
        result = AggregationOutcome(
            results=sorted(merged, key=lambda item: item.name),
            failures=tuple(failures),
            counts=counts,
            source_count=len(self.adapters),
        )
        if result.all_failed:
            logger.error(
                json.dumps({"event": "aggregation_failed", "sources": [tag.value for tag in failures]})
            )
        return result

    async def _run(self, adapter: BaseSourceAdapter, term: str) -> SourceOutcome:
        tag = adapter.source_tag
        try:
            if self.monitor is None:
                results = await adapter.search(term)
            else:
                results = await self.monitor.track(tag, lambda: adapter.search(term))
        except SourceUnavailable as exc:
            return self._failed(tag, exc.reason)
        except CircuitOpenError as exc:
            return self._failed(tag, str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error from source %s", tag.value)
            return self._failed(tag, f"{type(exc).__name__}: {exc}")
        return SourceOutcome(source_tag=tag, results=tuple(results))

    def _failed(self, tag: SourceTag, reason: str) -> SourceOutcome:
        reason = redact_secrets(reason)
        logger.warning(json.dumps({"event": "source_unavailable", "source": tag.value, "reason": reason}))
        return SourceOutcome(source_tag=tag, error=reason)
