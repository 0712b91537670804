"""Core data models shared by the registry, the dispatcher and the drivers.

This module defines:
- `Generation`: contract schema generation of an event (classic | diamond).
- `LogRecord`: raw log as delivered by the chain log source.
- `LogMeta`: metadata handed to handlers next to the decoded arguments.
- `AppliedLog`: one row of the idempotency ledger.

Design notes
------------
- Addresses, hashes and topics are lowercased 0x-hex strings.
- `(block_number, log_index)` is the only valid application order for
  records emitted by the same contract address.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Generation(str, Enum):
    CLASSIC = "classic"
    DIAMOND = "diamond"

    @property
    def is_diamond(self) -> bool:
        return self is Generation.DIAMOND


def _hex_int(v: Any) -> int:
    if isinstance(v, int):
        return v
    s = str(v)
    return int(s, 16) if s.lower().startswith("0x") else int(s)


# === Chain log record ===


@dataclass(slots=True, frozen=True)
class LogRecord:
    """Raw log as fetched from the chain, minimally normalized."""

    address: str  # lowercased 0x...
    topics: tuple[str, ...]  # lowercased 0x..., topics[0] is the identifier
    data_hex: str  # "0x..."
    block_number: int
    tx_hash: str  # lowercased 0x...
    log_index: int
    block_timestamp: int | None = None

    def __post_init__(self) -> None:
        # The ledger keys on (tx_hash, log_index) and positions on address.
        object.__setattr__(self, "address", self.address.lower())
        object.__setattr__(self, "tx_hash", self.tx_hash.lower())
        object.__setattr__(self, "topics", tuple(t.lower() for t in self.topics))

    @property
    def identifier(self) -> str | None:
        """Topic0 of the log, or None for anonymous logs."""
        return self.topics[0].lower() if self.topics else None

    @property
    def ordering_key(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)

    @property
    def data(self) -> bytes:
        h = self.data_hex[2:] if self.data_hex.lower().startswith("0x") else self.data_hex
        return bytes.fromhex(h) if h else b""

    @classmethod
    def from_rpc(cls, raw: Mapping[str, Any]) -> LogRecord:
        """Build a record from one `eth_getLogs` result object."""
        topics = tuple((t if isinstance(t, str) else t.decode()).lower() for t in raw.get("topics", []))
        ts = raw.get("blockTimestamp")
        return cls(
            address=str(raw["address"]).lower(),
            topics=topics,
            data_hex=str(raw.get("data") or "0x"),
            block_number=_hex_int(raw["blockNumber"]),
            tx_hash=str(raw.get("transactionHash") or raw.get("transaction_hash") or "").lower(),
            log_index=_hex_int(raw["logIndex"]),
            block_timestamp=_hex_int(ts) if ts is not None else None,
        )


@dataclass(slots=True, frozen=True)
class LogMeta:
    """Log metadata passed to handlers."""

    block_number: int
    block_timestamp: int | None
    tx_hash: str
    log_index: int
    address: str  # emitting contract
    event: str
    generation: Generation

    @property
    def diamond(self) -> bool:
        return self.generation.is_diamond

    @classmethod
    def for_record(cls, record: LogRecord, event: str, generation: Generation) -> LogMeta:
        return cls(
            block_number=record.block_number,
            block_timestamp=record.block_timestamp,
            tx_hash=record.tx_hash,
            log_index=record.log_index,
            address=record.address,
            event=event,
            generation=generation,
        )


# === Idempotency ledger ===


@dataclass(slots=True)
class AppliedLog:
    """A log whose handler ran successfully; its presence blocks re-application."""

    tx_hash: str
    log_index: int
    block_number: int
    address: str
    event: str
    applied_at: float = field(default_factory=time.time)

    @classmethod
    def for_meta(cls, meta: LogMeta) -> AppliedLog:
        return cls(
            tx_hash=meta.tx_hash,
            log_index=meta.log_index,
            block_number=meta.block_number,
            address=meta.address,
            event=meta.event,
        )
