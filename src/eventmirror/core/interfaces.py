from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from eventmirror.core.models import AppliedLog, LogRecord

Row = dict[str, Any]


# ---------------------------------------------------------------------------
# ILogSource
# ---------------------------------------------------------------------------

@runtime_checkable
class ILogSource(Protocol):
    """
    Abstract chain log source consumed by the sync driver.

    Domain expectations:
    - It returns LogRecord objects already mapped into internal models.
    - It delivers at least once; redelivery is absorbed by the ledger.
    - It preserves per-address (block_number, log_index) order where feasible.
    """

    async def get_logs(
        self,
        *,
        addresses: Sequence[str],
        topic0s: Sequence[str],
        from_block: int,
        to_block: int,
    ) -> list[LogRecord]:
        """
        Return all logs whose topic0 is in `topic0s` over the inclusive block range.

        An empty `addresses` sequence means any emitter.
        """
        ...

    async def latest_block(self) -> int:
        """Return the current chain head height."""
        ...


# ---------------------------------------------------------------------------
# IStateTransaction / IStateStore
# ---------------------------------------------------------------------------

@runtime_checkable
class IStateTransaction(Protocol):
    """
    Operations handlers need on the persisted mirror, scoped to one transaction.

    Collections are addressed by name (`contracts`, `collections`, `tokens`,
    `offer_pools`, `offers`, `locks`, `ranges`, `resale_offers`,
    `royalty_splits`, `credit_balances`, `credit_movements`) and keyed by
    domain identifiers (contract address + collection/token/offer index).
    """

    def get(self, table: str, key: Row) -> Row | None: ...

    def select(self, table: str, where: Row) -> list[Row]: ...

    def insert(self, table: str, row: Row) -> None: ...

    def update(self, table: str, key: Row, values: Row) -> int: ...

    def upsert(self, table: str, key: Row, values: Row) -> bool:
        """Insert `key | values` or update `values` on the existing row; True if inserted."""
        ...

    def is_applied(self, tx_hash: str, log_index: int) -> bool: ...

    def record_applied(self, applied: AppliedLog) -> None: ...

    def position(self, address: str) -> tuple[int, int] | None:
        """Highest (block_number, log_index) applied for `address`, if any."""
        ...

    def advance_position(self, address: str, block_number: int, log_index: int) -> None: ...


@runtime_checkable
class IStateStore(Protocol):
    """
    Persistence engine behind the apply layer.

    `transaction()` must commit the handler mutation, the ledger row and the
    emitter position together or roll all of them back, and must serialize concurrent transactions
    touching the same (tx_hash, log_index) pair.
    """

    def transaction(self) -> AbstractContextManager[IStateTransaction]: ...

    def is_applied(self, tx_hash: str, log_index: int) -> bool: ...
