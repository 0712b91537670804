"""Dispatcher: one raw log in, one outcome out.

`dispatch()` is a plain function of (registry, record, store). Scheduling,
partitioning and retries belong to the driver around it.

Outcomes
--------
- UNKNOWN: identifier not in the registry (logged, no state or ledger change)
- UNHANDLED: recognized event with no handler bound (silent)
- DUPLICATE: the ledger already holds (tx_hash, log_index)
- APPLIED: handler mutation and ledger row committed together

`MalformedLogError`, `StaleLogError` and `HandlerFailure` are raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from eventmirror.core.interfaces import IStateStore
from eventmirror.core.models import LogMeta, LogRecord
from eventmirror.decoding.decoder import decode_log
from eventmirror.decoding.registry import Registry, RegistryEntry
from eventmirror.handlers import Mutation, handler_for

from .apply import apply_once

logger = logging.getLogger(__name__)


class DispatchStatus(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    UNKNOWN = "unknown"
    UNHANDLED = "unhandled"


@dataclass(frozen=True)
class DispatchOutcome:
    status: DispatchStatus
    record: LogRecord
    entry: RegistryEntry | None = None
    mutation: Mutation | None = None

    @property
    def applied(self) -> bool:
        return self.status is DispatchStatus.APPLIED


def dispatch(registry: Registry, record: LogRecord, store: IStateStore) -> DispatchOutcome:
    """Match, decode and apply one log record exactly once."""
    entry = registry.get(record.identifier)
    if entry is None:
        logger.debug(
            "Dropping unknown event %s at tx=%s log_index=%d from %s",
            record.identifier,
            record.tx_hash,
            record.log_index,
            record.address,
        )
        return DispatchOutcome(DispatchStatus.UNKNOWN, record)

    if entry.handler is None:
        return DispatchOutcome(DispatchStatus.UNHANDLED, record, entry)

    args = decode_log(entry, record)
    meta = LogMeta.for_record(record, entry.name, entry.generation)

    mutation = apply_once(store, record, meta, args, handler_for(entry.handler))
    if mutation is None:
        logger.debug("Skipping already applied %s at tx=%s log_index=%d", entry.name, record.tx_hash, record.log_index)
        return DispatchOutcome(DispatchStatus.DUPLICATE, record, entry)
    return DispatchOutcome(DispatchStatus.APPLIED, record, entry, mutation)
