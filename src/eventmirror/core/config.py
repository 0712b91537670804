from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DispatchConfig:
    """Configuration for the partitioned dispatch driver."""

    concurrency: int = 16


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for syncing a block range from an RPC node (CLI)."""

    rpc_url: str
    from_block: int
    to_block: int
    addresses: tuple[str, ...] = ()  # empty: any emitter
    step: int = 1_000
    concurrency: int = 16
    timeout_s: int = 20
    db_path: str = ":memory:"
    handled_only: bool = True  # fetch only identifiers bound to a handler

    @property
    def dispatch(self) -> DispatchConfig:
        return DispatchConfig(concurrency=self.concurrency)
