"""Persistence for the mirrored state.

This package provides:
- DuckDBStateStore: transactional DuckDB store with the idempotency ledger
- DuckDBTransaction: collection operations inside one transaction
"""

from eventmirror.storage.state import DuckDBStateStore, DuckDBTransaction

__all__ = [
    "DuckDBStateStore",
    "DuckDBTransaction",
]
