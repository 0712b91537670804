"""Event registry: identifier → (signature, fragment, generation, handler).

`build_registry()` walks the ABI corpus in order, hashes every event's
canonical signature and registers one entry per identifier. The result is an
immutable `Registry` that is safe to share across any number of dispatch
workers. Rebuilding means calling `build_registry()` again.

Example
-------
>>> registry = build_registry()
>>> entry = registry.get(event_identifier("ProductCreated(uint256,string,uint256,uint256)"))
>>> entry.handler
<HandlerKind.INSERT_COLLECTION: 'insert_collection'>
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from eventmirror.core.errors import RegistryConflictError
from eventmirror.core.models import Generation
from eventmirror.handlers.table import HANDLER_TABLE, HandlerKind

from .abi import AbiEvent, AbiSpec, extract_event_fragment, iter_abi_events, load_abi
from .signatures import event_identifier, signature_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AbiSource:
    """One ABI of the corpus and the generation its events belong to."""

    name: str
    abi: AbiSpec
    generation: Generation


@dataclass(frozen=True)
class RegistryEntry:
    identifier: str
    signature: str
    fragment: AbiEvent
    generation: Generation
    handler: HandlerKind | None
    source: str

    @property
    def name(self) -> str:
        return self.fragment.name

    @property
    def handled(self) -> bool:
        return self.handler is not None

    def same_declaration(self, other: RegistryEntry) -> bool:
        """True when `other` redeclares this exact event (only `source` may differ)."""
        return (
            self.signature == other.signature
            and self.fragment == other.fragment
            and self.generation == other.generation
            and self.handler == other.handler
        )

    def describe(self) -> str:
        return f"{self.signature} [{self.generation.value}] from {self.source}"


class Registry(Mapping[str, RegistryEntry]):
    """Read-only mapping from identifier to entry, queryable by event name."""

    __slots__ = ("_entries", "_by_name")

    def __init__(self, entries: Mapping[str, RegistryEntry]) -> None:
        self._entries = MappingProxyType(dict(entries))
        by_name: dict[str, list[RegistryEntry]] = {}
        for entry in self._entries.values():
            by_name.setdefault(entry.name, []).append(entry)
        self._by_name = MappingProxyType({k: tuple(v) for k, v in by_name.items()})

    def __getitem__(self, identifier: str) -> RegistryEntry:
        return self._entries[identifier.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and identifier.lower() in self._entries

    def get(self, identifier: str | None, default: RegistryEntry | None = None) -> RegistryEntry | None:  # type: ignore[override]
        if identifier is None:
            return default
        return self._entries.get(identifier.lower(), default)

    def by_name(self, name: str) -> tuple[RegistryEntry, ...]:
        """All entries (across generations and versions) declared under `name`."""
        return self._by_name.get(name, ())

    def names(self) -> list[str]:
        return sorted(self._by_name)

    def handled(self) -> list[RegistryEntry]:
        return [e for e in self._entries.values() if e.handled]

    def interest_set(self, *, handled_only: bool = False) -> tuple[str, ...]:
        """Identifiers a chain-sync driver should fetch logs for."""
        entries = self.handled() if handled_only else self._entries.values()
        return tuple(sorted(e.identifier for e in entries))


def entries_from_abi(
    source: AbiSource,
    handler_table: Mapping[str, HandlerKind] = HANDLER_TABLE,
) -> Iterator[RegistryEntry]:
    """Yield one entry per event declared in `source`."""
    abi = load_abi(source.abi)
    for event in iter_abi_events(abi):
        signature = signature_of(event).text
        yield RegistryEntry(
            identifier=event_identifier(signature),
            signature=signature,
            fragment=extract_event_fragment(abi, event.name, source=source.name),
            generation=source.generation,
            handler=handler_table.get(event.name),
            source=source.name,
        )


def add_entry(entries: dict[str, RegistryEntry], entry: RegistryEntry) -> None:
    """Insert `entry`; a colliding identifier is a conflict unless it is the same declaration."""
    existing = entries.get(entry.identifier)
    if existing is None:
        entries[entry.identifier] = entry
        return
    if existing.same_declaration(entry):
        logger.debug("Skipping redeclaration of %s from %s", entry.signature, entry.source)
        return
    raise RegistryConflictError(entry.identifier, existing.describe(), entry.describe())


def build_registry(
    corpus: Iterable[AbiSource] | None = None,
    handler_table: Mapping[str, HandlerKind] = HANDLER_TABLE,
) -> Registry:
    """Build the registry from `corpus` (defaults to the packaged ABI corpus).

    Raises a `RegistryBuildError` subclass when the corpus is inconsistent.
    """
    if corpus is None:
        from .corpus import default_corpus

        corpus = default_corpus()

    entries: dict[str, RegistryEntry] = {}
    for source in corpus:
        for entry in entries_from_abi(source, handler_table):
            add_entry(entries, entry)

    registry = Registry(entries)
    unhandled = sorted({e.name for e in registry.values() if not e.handled})
    logger.info(
        "Built event registry: %d entries, %d handled, unhandled events: %s",
        len(registry),
        len(registry.handled()),
        ", ".join(unhandled) or "none",
    )
    return registry
