from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from eventmirror.core.config import DispatchConfig
from eventmirror.core.errors import HandlerFailure, MalformedLogError, StaleLogError
from eventmirror.core.interfaces import IStateStore
from eventmirror.core.models import LogRecord
from eventmirror.decoding.registry import Registry

from .dispatcher import DispatchStatus, dispatch

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class DispatchStats:
    """
    Aggregated counters for one dispatch run.

    - `quarantined` holds malformed records (not retryable)
    - `rejected` holds stale records, behind the position already applied
      for their address (not retryable)
    - `deferred` holds the failed record of each halted partition followed by
      every later record of the same address; the driver redelivers them
    """

    applied: int = 0
    duplicate: int = 0
    unknown: int = 0
    unhandled: int = 0
    malformed: int = 0
    failed: int = 0
    stale: int = 0
    quarantined: list[LogRecord] = field(default_factory=list)
    rejected: list[LogRecord] = field(default_factory=list)
    deferred: list[LogRecord] = field(default_factory=list)

    def count(self, status: DispatchStatus) -> None:
        setattr(self, status.value, getattr(self, status.value) + 1)

    def merge(self, other: DispatchStats) -> None:
        for name in ("applied", "duplicate", "unknown", "unhandled", "malformed", "failed", "stale"):
            setattr(self, name, getattr(self, name) + getattr(other, name))
        self.quarantined.extend(other.quarantined)
        self.rejected.extend(other.rejected)
        self.deferred.extend(other.deferred)


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------


def partition_by_address(records: Iterable[LogRecord]) -> dict[str, list[LogRecord]]:
    """Group records by emitting address, each group in (block_number, log_index) order."""
    parts: dict[str, list[LogRecord]] = defaultdict(list)
    for record in records:
        parts[record.address.lower()].append(record)
    for part in parts.values():
        part.sort(key=lambda r: r.ordering_key)
    return dict(parts)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class DispatchService:
    """
    Driver that applies batches of records through `dispatch()`.

    Partitions run concurrently, bounded by `config.concurrency`; records of
    one address are applied strictly in ascending (block_number, log_index)
    order and a partition stops at its first handler failure.
    """

    def __init__(
        self,
        registry: Registry,
        store: IStateStore,
        config: DispatchConfig = DispatchConfig(),
    ) -> None:
        self._registry = registry
        self._store = store
        self._config = config

    def _run_partition(self, address: str, records: list[LogRecord]) -> DispatchStats:
        stats = DispatchStats()
        for i, record in enumerate(records):
            try:
                outcome = dispatch(self._registry, record, self._store)
            except MalformedLogError as e:
                logger.error("Quarantining malformed log: %s", e)
                stats.malformed += 1
                stats.quarantined.append(record)
                continue
            except StaleLogError as e:
                logger.warning("Rejecting stale log: %s", e)
                stats.stale += 1
                stats.rejected.append(record)
                continue
            except HandlerFailure as e:
                logger.warning("%s; deferring %d record(s) of %s", e, len(records) - i, address)
                stats.failed += 1
                stats.deferred.extend(records[i:])
                break
            stats.count(outcome.status)
        return stats

    async def _process_partition(
        self,
        sem: asyncio.Semaphore,
        address: str,
        records: list[LogRecord],
    ) -> DispatchStats:
        async with sem:
            return await asyncio.to_thread(self._run_partition, address, records)

    async def run(self, records: Iterable[LogRecord]) -> DispatchStats:
        """Dispatch `records`; returns aggregated stats including deferred records."""
        stats = DispatchStats()
        parts = partition_by_address(records)
        if not parts:
            return stats

        sem = asyncio.Semaphore(self._config.concurrency)
        tasks = [
            asyncio.create_task(self._process_partition(sem, address, part))
            for address, part in parts.items()
        ]
        for part_stats in await asyncio.gather(*tasks):
            stats.merge(part_stats)

        logger.info(
            "Dispatched %d records: applied=%d duplicate=%d unknown=%d unhandled=%d malformed=%d stale=%d deferred=%d",
            sum(len(p) for p in parts.values()),
            stats.applied,
            stats.duplicate,
            stats.unknown,
            stats.unhandled,
            stats.malformed,
            stats.stale,
            len(stats.deferred),
        )
        return stats
