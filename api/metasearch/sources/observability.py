"""Per-source call statistics with an optional circuit breaker."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable

from metasearch.core.config import settings
from metasearch.sources.base import NormalizedResult, SourceTag
from metasearch.utils.redaction import redact_secrets

logger = logging.getLogger("metasearch.sources")


class CircuitOpenError(Exception):
    """Raised instead of calling a source whose circuit is open."""


@dataclass
class SourceStats:
    calls: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    last_result_count: int | None = None
    last_latency_ms: float | None = None
    last_error: str | None = None


@dataclass
class CircuitBreaker:
    """Block a source for a cooldown once ``threshold`` consecutive calls failed.

    The cooldown doubles each time the circuit opens, up to ``max_backoff``.
    """
    threshold: int
    base_backoff: float
    max_backoff: float
    streak: int = 0
    blocked_until: float = 0.0
    backoff: float = 0.0
    opened_count: int = 0

    def __post_init__(self) -> None:
        self.backoff = self.base_backoff

    def cooldown(self) -> float:
        return max(0.0, self.blocked_until - time.monotonic())

    def succeeded(self) -> None:
        self.streak = 0
        self.backoff = self.base_backoff

    def failed(self) -> None:
        self.streak += 1
        if self.streak >= self.threshold:
            self.blocked_until = time.monotonic() + self.backoff
            self.streak = 0
            self.opened_count += 1
            self.backoff = min(self.backoff * 2, self.max_backoff)


class SourceMonitor:
    """Record latency, result counts and failures for each source.

    With ``circuit_threshold`` unset every call reaches its backend; setting
    it enables a per-source circuit breaker that fails calls fast while open.
    """
    def __init__(
        self,
        *,
        circuit_threshold: int | None = None,
        base_backoff_seconds: float = 15.0,
        max_backoff_seconds: float = 300.0,
    ) -> None:
        self.circuit_threshold = circuit_threshold
        self.base_backoff_seconds = base_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self._stats: dict[SourceTag, SourceStats] = {}
        self._circuits: dict[SourceTag, CircuitBreaker] = {}

    def _circuit(self, tag: SourceTag) -> CircuitBreaker | None:
        if self.circuit_threshold is None:
            return None
        if tag not in self._circuits:
            self._circuits[tag] = CircuitBreaker(
                self.circuit_threshold, self.base_backoff_seconds, self.max_backoff_seconds
            )
        return self._circuits[tag]

    async def track(
        self,
        tag: SourceTag,
        search: Callable[[], Awaitable[list[NormalizedResult]]],
    ) -> list[NormalizedResult]:
        """Await ``search`` for ``tag`` and record its outcome.

        Exceptions are recorded and re-raised. Cancellation is not recorded.
        """
        stats = self._stats.setdefault(tag, SourceStats())
        circuit = self._circuit(tag)
        if circuit is not None and circuit.cooldown() > 0:
            stats.skipped += 1
            remaining = circuit.cooldown()
            self._log(logging.WARNING, "source_circuit_open", tag, remaining_cooldown=round(remaining, 2))
            raise CircuitOpenError(f"{tag.value} circuit open for {remaining:.2f}s")

        stats.calls += 1
        start = time.monotonic()
        try:
            results = await search()
        except Exception as exc:  # noqa: BLE001
            stats.failed += 1
            stats.last_latency_ms = round((time.monotonic() - start) * 1000, 2)
            stats.last_error = redact_secrets(str(exc))
            if circuit is not None:
                circuit.failed()
            self._log(
                logging.WARNING, "source_failure", tag, error=stats.last_error, latency_ms=stats.last_latency_ms
            )
            raise
        stats.succeeded += 1
        stats.last_latency_ms = round((time.monotonic() - start) * 1000, 2)
        stats.last_result_count = len(results)
        stats.last_error = None
        if circuit is not None:
            circuit.succeeded()
        self._log(
            logging.INFO, "source_success", tag, results=len(results), latency_ms=stats.last_latency_ms
        )
        return results

    def _log(self, level: int, event: str, tag: SourceTag, **fields: Any) -> None:
        logger.log(level, json.dumps({"event": event, "source": tag.value, **fields}))

    def snapshot(self) -> dict[str, Any]:
        """Return a serializable view of every source seen so far."""
        snap: dict[str, Any] = {}
        for tag, stats in self._stats.items():
            circuit = self._circuits.get(tag)
            snap[tag.value] = {
                **asdict(stats),
                "circuit": None
                if circuit is None
                else {
                    "remaining_cooldown": round(circuit.cooldown(), 2),
                    "failure_streak": circuit.streak,
                    "backoff": circuit.backoff,
                    "opened_count": circuit.opened_count,
                },
            }
        return snap


source_monitor = SourceMonitor(
    circuit_threshold=settings.circuit_threshold,
    base_backoff_seconds=settings.circuit_base_backoff_seconds,
    max_backoff_seconds=settings.circuit_max_backoff_seconds,
)
