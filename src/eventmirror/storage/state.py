"""DuckDB-backed persistence for the mirrored state and the idempotency ledger.

`DuckDBStateStore.transaction()` yields a `DuckDBTransaction` bound to one
`BEGIN ... COMMIT` block. Handler mutations and the ledger row written for a
log share that block, so a crash or a handler error leaves neither behind.
Transactions are serialized by a re-entrant lock, which also makes the
ledger check-and-insert atomic with respect to concurrent dispatch of the
same (tx_hash, log_index) pair.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import duckdb

from eventmirror.core.interfaces import Row
from eventmirror.core.models import AppliedLog

from . import schema

logger = logging.getLogger(__name__)

MIRRORED_TABLES = frozenset(schema.TABLES)


def _check_table(table: str) -> str:
    if table not in MIRRORED_TABLES:
        raise ValueError(f"Unknown collection {table!r}")
    return table


def _quote(column: str) -> str:
    if not column.replace("_", "").isalnum():
        raise ValueError(f"Invalid column name {column!r}")
    return f'"{column}"'


def _where(key: Row) -> tuple[str, list[Any]]:
    if not key:
        return "", []
    clause = " AND ".join(f"{_quote(k)} = ?" for k in key)
    return f" WHERE {clause}", list(key.values())


def _rows(cursor: duckdb.DuckDBPyConnection) -> list[Row]:
    columns = [d[0] for d in cursor.description or ()]
    return [dict(zip(columns, values)) for values in cursor.fetchall()]


class DuckDBTransaction:
    """Collection operations scoped to one open transaction."""

    def __init__(self, con: duckdb.DuckDBPyConnection) -> None:
        self._con = con

    def select(self, table: str, where: Row) -> list[Row]:
        clause, params = _where(where)
        return _rows(self._con.execute(f"SELECT * FROM {_check_table(table)}{clause}", params))

    def get(self, table: str, key: Row) -> Row | None:
        rows = self.select(table, key)
        return rows[0] if rows else None

    def insert(self, table: str, row: Row) -> None:
        columns = ", ".join(_quote(c) for c in row)
        marks = ", ".join("?" for _ in row)
        self._con.execute(
            f"INSERT INTO {_check_table(table)} ({columns}) VALUES ({marks})",
            list(row.values()),
        )

    def update(self, table: str, key: Row, values: Row) -> int:
        if not values:
            return 0
        assignments = ", ".join(f"{_quote(c)} = ?" for c in values)
        clause, params = _where(key)
        cur = self._con.execute(
            f"UPDATE {_check_table(table)} SET {assignments}{clause}",
            list(values.values()) + params,
        )
        (count,) = cur.fetchone() or (0,)
        return int(count)

    def upsert(self, table: str, key: Row, values: Row) -> bool:
        """Insert `key | values`, or update `values` on the existing row. True if inserted."""
        if self.get(table, key) is None:
            self.insert(table, {**key, **values})
            return True
        self.update(table, key, values)
        return False

    def is_applied(self, tx_hash: str, log_index: int) -> bool:
        return self._con.execute(schema.IS_APPLIED_QUERY, [tx_hash, log_index]).fetchone() is not None

    def record_applied(self, applied: AppliedLog) -> None:
        self._con.execute(
            schema.RECORD_APPLIED_QUERY,
            [
                applied.tx_hash,
                applied.log_index,
                applied.block_number,
                applied.address,
                applied.event,
                applied.applied_at,
            ],
        )

    def position(self, address: str) -> tuple[int, int] | None:
        row = self._con.execute(schema.POSITION_QUERY, [address]).fetchone()
        return (int(row[0]), int(row[1])) if row else None

    def advance_position(self, address: str, block_number: int, log_index: int) -> None:
        if self.position(address) is None:
            self._con.execute(schema.INSERT_POSITION_QUERY, [address, block_number, log_index])
        else:
            self._con.execute(schema.UPDATE_POSITION_QUERY, [block_number, log_index, address])


class DuckDBStateStore:
    """Persisted mirror in a DuckDB database file (or in memory).

    Parameters
    ----------
    path : str | Path
        Database file, or ":memory:" for a throwaway store.
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._con = duckdb.connect(self.path)
        self._lock = threading.RLock()
        self.initialize()

    def initialize(self) -> None:
        """Create every table that does not exist yet."""
        with self._lock:
            for ddl in schema.TABLES.values():
                self._con.execute(ddl)
            self._con.execute(schema.APPLIED_LOGS_TABLE)
            self._con.execute(schema.EMITTER_POSITIONS_TABLE)

    @contextmanager
    def transaction(self) -> Iterator[DuckDBTransaction]:
        """Open a transaction; commit on success, roll back on any exception."""
        with self._lock:
            self._con.execute("BEGIN TRANSACTION")
            try:
                yield DuckDBTransaction(self._con)
            except BaseException:
                self._con.execute("ROLLBACK")
                raise
            else:
                self._con.execute("COMMIT")

    # ---- read side ----

    def is_applied(self, tx_hash: str, log_index: int) -> bool:
        with self._lock:
            return self._con.execute(schema.IS_APPLIED_QUERY, [tx_hash, log_index]).fetchone() is not None

    def position(self, address: str) -> tuple[int, int] | None:
        """Highest (block_number, log_index) applied for `address`, if any."""
        with self._lock:
            return DuckDBTransaction(self._con).position(address.lower())

    def applied_count(self) -> int:
        with self._lock:
            (count,) = self._con.execute(schema.APPLIED_COUNT_QUERY).fetchone() or (0,)
            return int(count)

    def fetch_all(self, table: str, **where: Any) -> list[Row]:
        with self._lock:
            clause, params = _where(where)
            return _rows(self._con.execute(f"SELECT * FROM {_check_table(table)}{clause}", params))

    def fetch_one(self, table: str, **key: Any) -> Row | None:
        rows = self.fetch_all(table, **key)
        return rows[0] if rows else None

    def counts(self, tables: Sequence[str] = tuple(schema.TABLES)) -> dict[str, int]:
        """Row count per mirrored collection."""
        out: dict[str, int] = {}
        with self._lock:
            for table in tables:
                (n,) = self._con.execute(f"SELECT count(*) FROM {_check_table(table)}").fetchone() or (0,)
                out[table] = int(n)
        return out

    def close(self) -> None:
        with self._lock:
            self._con.close()

    def __enter__(self) -> DuckDBStateStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
