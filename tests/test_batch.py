"""
Tests for the batch coordinator.

Covers:
    • Chunking (5, 5, 2 for 12 sites)
    • Chunks run sequentially, sites within a chunk concurrently
    • A failing site is dropped, counted and recorded; others unaffected
    • Per-site log context
"""

from __future__ import annotations

import asyncio

import pytest

from damwatch.core.errors import SiteProcessingError
from damwatch.core.logging_config import get_site_context
from damwatch.pipeline.batch import BatchCoordinator, chunked


def run(coro):
    return asyncio.run(coro)


# ═══════════════════════════════════════════════════════════════════════════
# Chunking
# ═══════════════════════════════════════════════════════════════════════════

class TestChunked:
    def test_twelve_by_five(self):
        assert [len(c) for c in chunked(list(range(12)), 5)] == [5, 5, 2]

    def test_exact_multiple(self):
        assert [len(c) for c in chunked(list(range(10)), 5)] == [5, 5]

    def test_empty(self):
        assert chunked([], 5) == []

    def test_order_preserved(self):
        assert chunked([1, 2, 3], 2) == [[1, 2], [3]]

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunked([1], 0)
        with pytest.raises(ValueError):
            BatchCoordinator(batch_size=0)


# ═══════════════════════════════════════════════════════════════════════════
# Scheduling
# ═══════════════════════════════════════════════════════════════════════════

class TestScheduling:
    def test_chunks_are_sequential_and_concurrent_within(self, registry):
        events = []
        in_flight = {"now": 0, "max": 0}

        async def work(site):
            events.append(("start", site.id))
            in_flight["now"] += 1
            in_flight["max"] = max(in_flight["max"], in_flight["now"])
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            in_flight["now"] -= 1
            events.append(("end", site.id))
            return site.id

        batch = run(BatchCoordinator(batch_size=5).process_all(registry, work))

        assert batch.chunk_sizes == [5, 5, 2]
        assert in_flight["max"] == 5

        position = {event: i for i, event in enumerate(events)}
        ids = [s.id for s in registry]
        for earlier, later in ((ids[0:5], ids[5:10]), (ids[5:10], ids[10:12])):
            last_end = max(position[("end", sid)] for sid in earlier)
            first_start = min(position[("start", sid)] for sid in later)
            assert last_end < first_start

    def test_batch_size_override(self, registry):
        async def work(site):
            return site.id

        batch = run(BatchCoordinator(batch_size=5).process_all(registry, work, batch_size=4))
        assert batch.chunk_sizes == [4, 4, 4]

    def test_results_keep_site_order(self, registry):
        async def work(site):
            # later sites in a chunk finish first
            await asyncio.sleep(0.001 * (12 - int(site.id[-2:])))
            return site.id

        batch = run(BatchCoordinator().process_all(registry, work))
        assert batch.results == [s.id for s in registry]


# ═══════════════════════════════════════════════════════════════════════════
# Soft failure
# ═══════════════════════════════════════════════════════════════════════════

class TestSoftFailure:
    def test_seventh_site_dropped(self, registry):
        async def work(site):
            if site.id == "site-07":
                raise RuntimeError("upstream exploded")
            return (site.id, site.latitude * 2)

        batch = run(BatchCoordinator(batch_size=5).process_all(registry, work))

        assert len(batch.results) == 11
        assert batch.dropped == 1
        assert batch.total == 12
        assert batch.chunk_sizes == [5, 5, 2]
        assert "site-07" not in [sid for sid, _ in batch.results]
        for sid, value in batch.results:
            site = next(s for s in registry if s.id == sid)
            assert value == site.latitude * 2

    def test_failure_record(self, registry):
        async def work(site):
            if site.id == "site-07":
                raise KeyError("missing")
            return site.id

        batch = run(BatchCoordinator().process_all(registry, work))
        failure = batch.failures[0]
        assert failure.site_id == "site-07"
        assert isinstance(failure.error, SiteProcessingError)
        assert failure.error_type == "KeyError"
        assert failure.to_dict()["code"] == "SITE_PROCESSING_FAILED"

    def test_every_site_failing_still_returns(self, registry):
        async def work(site):
            raise ValueError("nope")

        batch = run(BatchCoordinator().process_all(registry, work))
        assert batch.results == []
        assert batch.dropped == 12
        assert batch.to_dict()["dropped"] == 12

    def test_failure_logged(self, registry, caplog):
        async def work(site):
            if site.id == "site-03":
                raise RuntimeError("boom")
            return site.id

        with caplog.at_level("ERROR", logger="damwatch.pipeline.batch"):
            run(BatchCoordinator().process_all(registry, work))
        records = [r for r in caplog.records if r.levelname == "ERROR"]
        assert len(records) == 1
        assert records[0].site_id == "site-03"
        assert records[0].exc_info is not None


# ═══════════════════════════════════════════════════════════════════════════
# Log context
# ═══════════════════════════════════════════════════════════════════════════

class TestSiteContext:
    def test_context_set_per_site(self, registry):
        async def work(site):
            await asyncio.sleep(0)
            return get_site_context().get("site_id"), site.id

        batch = run(BatchCoordinator().process_all(registry, work))
        assert all(ctx == sid for ctx, sid in batch.results)

    def test_context_cleared_afterwards(self, registry):
        async def work(site):
            return site.id

        async def go():
            await BatchCoordinator().process_all(registry, work)
            return get_site_context()

        assert run(go()) == {}
