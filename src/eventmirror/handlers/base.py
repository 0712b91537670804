"""Handler contract and argument helpers.

A handler receives the open state transaction, the decoded arguments keyed by
parameter name and the log metadata, applies one mutation and describes it
with a `Mutation`. Handlers never consult the idempotency ledger.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from eventmirror.core.errors import MissingDependencyError
from eventmirror.core.interfaces import IStateTransaction, Row
from eventmirror.core.models import LogMeta

Action = Literal["insert", "update", "upsert"]


@dataclass(frozen=True)
class Mutation:
    """Outcome of a handler: which collection row changed and how."""

    collection: str
    action: Action
    key: tuple[tuple[str, Any], ...]

    @classmethod
    def of(cls, collection: str, action: Action, key: Row) -> Mutation:
        return cls(collection, action, tuple(key.items()))

    def __str__(self) -> str:
        key = ", ".join(f"{k}={v}" for k, v in self.key)
        return f"{self.action} {self.collection}({key})"


Args = Mapping[str, Any]
Handler = Callable[[IStateTransaction, Args, LogMeta], Mutation]


def first(args: Args, *names: str, default: Any = None) -> Any:
    """Value of the first argument present under any of `names`."""
    for name in names:
        if name in args and args[name] is not None:
            return args[name]
    return default


def num(args: Args, *names: str) -> str | None:
    """Chain integer as a decimal string (uint256 does not fit SQL integers)."""
    v = first(args, *names)
    return None if v is None else str(int(v))


def require(tx: IStateTransaction, table: str, key: Row) -> Row:
    row = tx.get(table, key)
    if row is None:
        raise MissingDependencyError(table, key)
    return row


def drop_none(values: Row) -> Row:
    return {k: v for k, v in values.items() if v is not None}
