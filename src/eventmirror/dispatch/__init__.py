"""Log dispatch: match, decode and apply each log exactly once.

This package provides:
- `dispatch()`: pure per-record dispatcher (registry + record + store → outcome)
- `apply_once()`: idempotent apply layer over the store transaction
- `DispatchService`: partitioned, ordered, concurrent driver
"""

from eventmirror.dispatch.apply import apply_once
from eventmirror.dispatch.dispatcher import DispatchOutcome, DispatchStatus, dispatch
from eventmirror.dispatch.service import DispatchService, DispatchStats, partition_by_address

__all__ = [
    "apply_once",
    "dispatch",
    "DispatchOutcome",
    "DispatchStatus",
    "DispatchService",
    "DispatchStats",
    "partition_by_address",
]
