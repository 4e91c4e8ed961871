"""
batch.py — Bounded-concurrency processing of many sites.

═══════════════════════════════════════════════════════════════════════════
SCHEDULING
═══════════════════════════════════════════════════════════════════════════

    sites:   s1 s2 s3 s4 s5 │ s6 s7 s8 s9 s10 │ s11 s12
    chunk:   ───── 0 ─────  │ ────── 1 ─────  │ ── 2 ──
             concurrent     │ concurrent      │ concurrent
             ──────────────────────────────────────────────▶ sequential

Chunk N+1 starts only after every site in chunk N has settled. With six
upstream calls per site, a chunk of 5 keeps at most 30 requests in flight,
which stays under the per-IP limits of the free upstream APIs.

A site whose function raises is logged, recorded in ``failures`` and
dropped from ``results``; the other sites and later chunks are unaffected.
``dropped`` makes the shrinkage visible to callers.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

from damwatch.core.errors import SiteProcessingError
from damwatch.core.logging_config import reset_site_context, set_site_context
from damwatch.sites.models import Site

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """Consecutive slices of ``size`` items; the last may be shorter."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


@dataclass
class SiteFailure:
    site_id: str
    error: SiteProcessingError

    @property
    def error_type(self) -> str:
        return self.error.details.get("error_type", "")

    def to_dict(self) -> Dict[str, Any]:
        return {"site_id": self.site_id, **self.error.to_dict()}


@dataclass
class BatchResult(Generic[R]):
    results: List[R] = field(default_factory=list)
    failures: List[SiteFailure] = field(default_factory=list)
    chunk_sizes: List[int] = field(default_factory=list)

    @property
    def dropped(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return len(self.results) + self.dropped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": len(self.results),
            "dropped": self.dropped,
            "chunks": self.chunk_sizes,
            "failures": [f.to_dict() for f in self.failures],
        }


class BatchCoordinator:
    """
    Usage:
        coordinator = BatchCoordinator(batch_size=5)
        batch = await coordinator.process_all(sites, engine.assess_site)
        print(len(batch.results), batch.dropped)
    """

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError(f"batch size must be >= 1, got {batch_size}")
        self.batch_size = batch_size

    async def _run_one(
        self, site: Site, fn: Callable[[Site], Awaitable[R]],
    ) -> Tuple[bool, Union[R, SiteFailure]]:
        token = set_site_context(site_id=site.id)
        try:
            return True, await fn(site)
        except Exception as exc:
            logger.error(
                "Site %s failed, dropping it from the batch: %s", site.id, exc,
                exc_info=True, extra={"site_id": site.id},
            )
            error = SiteProcessingError(site.id, str(exc), error_type=type(exc).__name__)
            return False, SiteFailure(site_id=site.id, error=error)
        finally:
            reset_site_context(token)

    async def process_all(
        self,
        sites: Sequence[Site],
        fn: Callable[[Site], Awaitable[R]],
        batch_size: Optional[int] = None,
    ) -> BatchResult[R]:
        size = batch_size or self.batch_size
        batch: BatchResult[R] = BatchResult()

        for index, chunk in enumerate(chunked(sites, size)):
            logger.debug(
                "Processing chunk %d (%d sites)", index, len(chunk),
                extra={"batch_index": index, "chunk_size": len(chunk)},
            )
            settled = await asyncio.gather(*(self._run_one(site, fn) for site in chunk))
            batch.chunk_sizes.append(len(chunk))
            for ok, value in settled:
                if ok:
                    batch.results.append(value)
                else:
                    batch.failures.append(value)

        logger.info(
            "Batch complete: %d/%d sites processed, %d dropped",
            len(batch.results), batch.total, batch.dropped,
            extra={"dropped_count": batch.dropped},
        )
        return batch
