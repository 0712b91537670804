from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass, field

from eventmirror.core.config import SyncConfig
from eventmirror.core.interfaces import ILogSource
from eventmirror.decoding.registry import Registry
from eventmirror.dispatch.service import DispatchService, DispatchStats

logger = logging.getLogger(__name__)


def iter_chunks(a: int, b: int, step: int) -> Generator[tuple[int, int], None, None]:
    """Yield inclusive [start, end] block ranges of size at most `step`."""
    if step < 1:
        raise ValueError(f"step must be positive, got {step}")
    x = a
    while x <= b:
        y = min(b, x + step - 1)
        yield (x, y)
        x = y + 1


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class SyncResult:
    """
    Outcome of one `sync_block_range` run.

    `resume_from` is the first block of the chunk that left deferred records,
    or None when the whole range was applied. Re-running from there is safe:
    the ledger absorbs everything already applied.
    """

    stats: DispatchStats = field(default_factory=DispatchStats)
    chunks: int = 0
    logs: int = 0
    resume_from: int | None = None

    @property
    def complete(self) -> bool:
        return self.resume_from is None


# ---------------------------------------------------------------------------
# Use case
# ---------------------------------------------------------------------------


async def sync_block_range(
    source: ILogSource,
    service: DispatchService,
    registry: Registry,
    config: SyncConfig,
) -> SyncResult:
    """
    Fetch interest-set logs over `[config.from_block, config.to_block]` and dispatch them.

    Chunks are processed in ascending block order so that records of one
    emitter never overtake each other across chunk boundaries. The run stops
    at the first chunk that leaves deferred records.
    """
    topic0s = list(registry.interest_set(handled_only=config.handled_only))
    result = SyncResult()

    for a, b in iter_chunks(config.from_block, config.to_block, config.step):
        logs = await source.get_logs(
            addresses=config.addresses,
            topic0s=topic0s,
            from_block=a,
            to_block=b,
        )
        stats = await service.run(logs)
        result.stats.merge(stats)
        result.chunks += 1
        result.logs += len(logs)

        if stats.deferred:
            result.resume_from = a
            logger.warning(
                "Stopping at blocks %d-%d: %d record(s) deferred", a, b, len(stats.deferred)
            )
            break

    logger.info(
        "Synced %d chunk(s), %d logs: applied=%d duplicate=%d",
        result.chunks,
        result.logs,
        result.stats.applied,
        result.stats.duplicate,
    )
    return result
