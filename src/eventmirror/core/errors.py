"""Error hierarchy for registry construction and log dispatch.

Build-time errors (`RegistryBuildError` and subclasses) mean the static ABI
corpus is inconsistent and ingestion must not start. Everything else is
raised per log record and is non-fatal to the process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from eventmirror.core.models import LogRecord


class EventMirrorError(Exception):
    """Base class for all eventmirror errors."""


# ---------------------------------------------------------------------------
# Registry build (fatal)
# ---------------------------------------------------------------------------


class RegistryBuildError(EventMirrorError):
    """The ABI corpus cannot produce a consistent registry."""


class MissingFragmentError(RegistryBuildError):
    def __init__(self, event_name: str, source: str | None = None) -> None:
        where = f" in {source}" if source else ""
        super().__init__(f"No event entry named {event_name!r}{where}")
        self.event_name = event_name
        self.source = source


class AmbiguousFragmentError(RegistryBuildError):
    def __init__(self, event_name: str, count: int, source: str | None = None) -> None:
        where = f" in {source}" if source else ""
        super().__init__(f"{count} event entries named {event_name!r}{where}; expected exactly one")
        self.event_name = event_name
        self.count = count
        self.source = source


class RegistryConflictError(RegistryBuildError):
    def __init__(self, identifier: str, existing: str, incoming: str) -> None:
        super().__init__(
            f"Identifier {identifier} registered twice: {existing} conflicts with {incoming}"
        )
        self.identifier = identifier
        self.existing = existing
        self.incoming = incoming


# ---------------------------------------------------------------------------
# Dispatch (per record)
# ---------------------------------------------------------------------------


class MalformedLogError(EventMirrorError):
    """Raw log bytes do not decode against the matched ABI fragment."""

    def __init__(self, record: LogRecord, signature: str, reason: str) -> None:
        super().__init__(
            f"Cannot decode {signature} at tx={record.tx_hash} log_index={record.log_index}: {reason}"
        )
        self.record = record
        self.signature = signature
        self.reason = reason


class HandlerFailure(EventMirrorError):
    """A handler raised; its transaction was rolled back and the record stays retryable."""

    def __init__(self, record: LogRecord, event: str, cause: BaseException) -> None:
        super().__init__(
            f"{event} handler failed at tx={record.tx_hash} log_index={record.log_index}: {cause}"
        )
        self.record = record
        self.event = event
        self.cause = cause


class StaleLogError(EventMirrorError):
    """The emitter already applied a later log; applying this one would overwrite newer state."""

    def __init__(self, record: LogRecord, event: str, position: tuple[int, int]) -> None:
        super().__init__(
            f"{event} at block={record.block_number} log_index={record.log_index} from {record.address} "
            f"is behind applied position block={position[0]} log_index={position[1]}"
        )
        self.record = record
        self.event = event
        self.position = position


class HandlerError(EventMirrorError):
    """Raised by handlers when a mutation cannot be applied to current state."""


class MissingDependencyError(HandlerError):
    """State this mutation builds on has not been mirrored yet."""

    def __init__(self, collection: str, key: dict[str, object]) -> None:
        super().__init__(f"Missing {collection} row for {key}")
        self.collection = collection
        self.key = key


class InsufficientCreditError(HandlerError):
    """A withdrawal exceeds the mirrored balance.

    Balances are only built from mirrored deposits, so this also fires when the
    deposit predates the first synced block. Retrying the record cannot succeed
    until the range is synced from before that deposit.
    """

    def __init__(self, user: str, token: str, balance: int, amount: int) -> None:
        super().__init__(
            f"Credit balance {balance} of {user} for {token} is below withdrawal {amount}; "
            "deposits before --from-block are not mirrored"
        )
        self.user = user
        self.token = token
        self.balance = balance
        self.amount = amount


# ---------------------------------------------------------------------------
# Log source
# ---------------------------------------------------------------------------


class RpcError(EventMirrorError):
    """The node answered a JSON-RPC call with an error object."""

    def __init__(self, method: str, code: object, message: object) -> None:
        super().__init__(f"RPC error in {method}: {code} {message}")
        self.method = method
        self.code = code
