"""Idempotent apply layer.

Each (tx_hash, log_index) pair mutates persisted state at most once: the
ledger check, the handler mutation and the ledger write run in a single store
transaction. A handler error rolls all of it back and leaves the pair
retryable.

The same transaction checks and advances the emitter's applied position, so a
log that sorts before the last one applied for its address is rejected rather
than overwriting newer state, even when it arrives in a later batch.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from eventmirror.core.errors import HandlerFailure, StaleLogError
from eventmirror.core.interfaces import IStateStore
from eventmirror.core.models import AppliedLog, LogMeta, LogRecord
from eventmirror.handlers import Handler, Mutation

logger = logging.getLogger(__name__)


def apply_once(
    store: IStateStore,
    record: LogRecord,
    meta: LogMeta,
    args: Mapping[str, Any],
    handler: Handler,
) -> Mutation | None:
    """Run `handler` for `record` unless the ledger already holds it.

    Returns the handler's Mutation, or None when the record was already applied.
    Raises `StaleLogError` when a later log of the same address was already
    applied, and `HandlerFailure` when the handler (or the store) fails.
    """
    try:
        with store.transaction() as tx:
            if tx.is_applied(record.tx_hash, record.log_index):
                return None
            position = tx.position(record.address)
            if position is not None and record.ordering_key <= position:
                raise StaleLogError(record, meta.event, position)
            mutation = handler(tx, args, meta)
            tx.record_applied(AppliedLog.for_meta(meta))
            tx.advance_position(record.address, record.block_number, record.log_index)
    except StaleLogError:
        raise
    except Exception as e:
        raise HandlerFailure(record, meta.event, e) from e

    logger.debug("Applied %s at tx=%s log_index=%d: %s", meta.event, record.tx_hash, record.log_index, mutation)
    return mutation
