from __future__ import annotations

from .core.errors import (
    EventMirrorError,
    HandlerFailure,
    MalformedLogError,
    RegistryBuildError,
    RegistryConflictError,
)
from .core.models import Generation, LogMeta, LogRecord
from .decoding.registry import AbiSource, Registry, RegistryEntry, build_registry
from .decoding.signatures import event_identifier
from .dispatch.dispatcher import DispatchOutcome, DispatchStatus, dispatch
from .dispatch.service import DispatchService
from .handlers.table import HANDLER_TABLE, HandlerKind
from .storage.state import DuckDBStateStore

__all__ = [
    "build_registry",
    "event_identifier",
    "dispatch",
    "AbiSource",
    "Registry",
    "RegistryEntry",
    "DispatchOutcome",
    "DispatchStatus",
    "DispatchService",
    "DuckDBStateStore",
    "Generation",
    "LogMeta",
    "LogRecord",
    "HandlerKind",
    "HANDLER_TABLE",
    "EventMirrorError",
    "HandlerFailure",
    "MalformedLogError",
    "RegistryBuildError",
    "RegistryConflictError",
]
