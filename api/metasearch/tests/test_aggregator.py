"""Aggregator tests covering fan-out, partial failure and ordering."""

from __future__ import annotations

import asyncio
import itertools
import logging

import pytest

from metasearch.services.aggregator import Aggregator
from metasearch.sources.base import SourceTag
from metasearch.sources.observability import SourceMonitor
from metasearch.tests.utils import FakeAdapter, result, unavailable

A, B, LEGACY = SourceTag.CATALOG_A, SourceTag.CATALOG_B, SourceTag.LEGACY


@pytest.mark.asyncio
async def test_results_are_sorted_by_name_regardless_of_dispatch_order() -> None:
    adapters = [
        FakeAdapter(A, [result("Zeta", A)]),
        FakeAdapter(B, [result("Alpha", B)]),
        FakeAdapter(LEGACY, [result("Mid", LEGACY)]),
    ]
    for ordering in itertools.permutations(adapters):
        outcome = await Aggregator(ordering).aggregate("term")
        assert [r.name for r in outcome.results] == ["Alpha", "Mid", "Zeta"]
        assert outcome.failures == ()


@pytest.mark.asyncio
async def test_failed_source_is_reported_alongside_partial_results() -> None:
    adapters = [
        FakeAdapter(A, error=unavailable(A, "timed out after 10.0s")),
        FakeAdapter(B, [result("Lost", B)]),
        FakeAdapter(LEGACY, [result("Adams,Chad", LEGACY)]),
    ]

    outcome = await Aggregator(adapters).aggregate("a")

    assert [r.name for r in outcome.results] == ["Adams,Chad", "Lost"]
    assert outcome.failures == (A,)
    assert outcome.counts == {B: 1, LEGACY: 1}
    assert outcome.all_failed is False


@pytest.mark.asyncio
async def test_equal_names_keep_concatenation_order() -> None:
    from_a = result("Same", A, "a-1")
    from_b = result("Same", B, "b-1")

    forward = await Aggregator([FakeAdapter(A, [from_a]), FakeAdapter(B, [from_b])]).aggregate("s")
    backward = await Aggregator([FakeAdapter(B, [from_b]), FakeAdapter(A, [from_a])]).aggregate("s")

    assert forward.results == [from_a, from_b]
    assert backward.results == [from_b, from_a]


@pytest.mark.asyncio
async def test_sort_is_ordinal() -> None:
    adapter = FakeAdapter(A, [result("alpha", A), result("Beta", A), result("Ábaco", A)])

    outcome = await Aggregator([adapter]).aggregate("x")

    assert [r.name for r in outcome.results] == ["Beta", "alpha", "Ábaco"]


@pytest.mark.asyncio
async def test_all_failed_is_distinguishable_from_no_matches(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="metasearch.services.aggregator")
    failing = [FakeAdapter(tag, error=unavailable(tag)) for tag in (A, B, LEGACY)]
    empty = [FakeAdapter(tag) for tag in (A, B, LEGACY)]

    down = await Aggregator(failing).aggregate("x")
    nothing = await Aggregator(empty).aggregate("x")

    assert down.results == [] and down.all_failed is True
    assert set(down.failures) == {A, B, LEGACY}
    assert "aggregation_failed" in caplog.text
    assert nothing.results == [] and nothing.all_failed is False
    assert nothing.counts == {A: 0, B: 0, LEGACY: 0}


@pytest.mark.asyncio
async def test_no_adapters_yields_empty_outcome() -> None:
    outcome = await Aggregator([]).aggregate("x")
    assert outcome.results == []
    assert outcome.all_failed is False


@pytest.mark.asyncio
async def test_unexpected_adapter_error_is_contained() -> None:
    adapters = [FakeAdapter(A, error=RuntimeError("bug")), FakeAdapter(B, [result("Ok", B)])]

    outcome = await Aggregator(adapters).aggregate("x")

    assert [r.name for r in outcome.results] == ["Ok"]
    assert outcome.failures == (A,)


@pytest.mark.asyncio
async def test_adapters_run_concurrently() -> None:
    first = FakeAdapter(A, [result("One", A)])
    second = FakeAdapter(B, [result("Two", B)])

    async def wait_for_second(term: str):
        await second.started.wait()
        return [result("One", A)]

    first._search = wait_for_second  # type: ignore[method-assign]

    outcome = await asyncio.wait_for(Aggregator([first, second]).aggregate("x"), timeout=1)

    assert [r.name for r in outcome.results] == ["One", "Two"]


@pytest.mark.asyncio
async def test_each_adapter_receives_raw_term() -> None:
    adapters = [FakeAdapter(tag) for tag in (A, B, LEGACY)]

    await Aggregator(adapters).aggregate("  héllo & bye ")

    assert all(adapter.calls == ["  héllo & bye "] for adapter in adapters)


@pytest.mark.asyncio
async def test_cancelling_aggregation_cancels_inflight_calls() -> None:
    adapters = [FakeAdapter(A, delay=10), FakeAdapter(B, delay=10)]
    task = asyncio.create_task(Aggregator(adapters).aggregate("x"))
    await asyncio.gather(*(adapter.started.wait() for adapter in adapters))

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert all(adapter.cancelled for adapter in adapters)


@pytest.mark.asyncio
async def test_open_circuit_skips_source_without_calling_it() -> None:
    monitor = SourceMonitor(circuit_threshold=1, base_backoff_seconds=60, max_backoff_seconds=60)
    failing = FakeAdapter(A, error=unavailable(A))
    healthy = FakeAdapter(B, [result("Fine", B)])
    aggregator = Aggregator([failing, healthy], monitor=monitor)

    await aggregator.aggregate("x")
    outcome = await aggregator.aggregate("x")

    assert failing.calls == ["x"]
    assert outcome.failures == (A,)
    assert [r.name for r in outcome.results] == ["Fine"]
    snapshot = monitor.snapshot()
    assert snapshot["CatalogA"]["skipped"] == 1
    assert snapshot["CatalogB"]["succeeded"] == 2


@pytest.mark.asyncio
async def test_default_monitor_calls_failing_source_on_every_query() -> None:
    monitor = SourceMonitor()
    failing = FakeAdapter(B, error=unavailable(B))
    aggregator = Aggregator([failing], monitor=monitor)

    for _ in range(4):
        outcome = await aggregator.aggregate("x")

    assert failing.calls == ["x"] * 4
    assert outcome.failures == (B,)
    assert monitor.snapshot()["CatalogB"]["failed"] == 4


@pytest.mark.asyncio
async def test_failure_reasons_are_redacted_in_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="metasearch.services.aggregator")
    adapter = FakeAdapter(LEGACY, error=unavailable(LEGACY, "status 500 for /SOAP.Demo.cls?name=Smith"))

    await Aggregator([adapter]).aggregate("Smith")

    assert "source_unavailable" in caplog.text
    assert "Smith" not in caplog.text
