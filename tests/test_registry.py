import pytest

from eventmirror.core.errors import RegistryBuildError, RegistryConflictError
from eventmirror.core.models import Generation
from eventmirror.decoding.abi import iter_abi_events
from eventmirror.decoding.corpus import default_corpus
from eventmirror.decoding.registry import AbiSource, Registry, build_registry
from eventmirror.decoding.signatures import event_identifier
from eventmirror.handlers import HANDLER_TABLE, HandlerKind

PRODUCT_CREATED = "ProductCreated(uint256,string,uint256,uint256)"
CREATED_COLLECTION = "CreatedCollection(uint256,string,uint256,uint256)"


def _event(name: str, *types: str) -> dict:
    return {
        "type": "event",
        "name": name,
        "inputs": [{"name": f"p{i}", "type": t, "indexed": False} for i, t in enumerate(types)],
    }


def test_one_entry_per_declared_event(registry: Registry) -> None:
    declared = sum(len(list(iter_abi_events(source.abi))) for source in default_corpus())
    assert declared == 55
    assert len(registry) == declared


def test_every_entry_is_keyed_by_its_signature_hash(registry: Registry) -> None:
    for identifier, entry in registry.items():
        assert identifier == entry.identifier == event_identifier(entry.signature)


def test_product_created_and_created_collection_share_handler(registry: Registry) -> None:
    classic = registry[event_identifier(PRODUCT_CREATED)]
    diamond = registry[event_identifier(CREATED_COLLECTION)]
    assert classic.identifier != diamond.identifier
    assert classic.handler is diamond.handler is HandlerKind.INSERT_COLLECTION
    assert classic.generation is Generation.CLASSIC
    assert diamond.generation is Generation.DIAMOND


def test_deprecated_versions_are_distinct_entries(registry: Registry) -> None:
    versions = registry.by_name("AppendedRange")
    assert len(versions) == 2
    assert {v.source for v in versions} == {"minter", "classic_deprecated"}
    assert {v.handler for v in versions} == {HandlerKind.INSERT_OFFER}

    created_range = registry.by_name("CreatedRange")
    assert len(created_range) == 2
    assert all(e.generation is Generation.DIAMOND for e in created_range)


def test_entries_carry_only_their_own_fragment(registry: Registry) -> None:
    deprecated, current = sorted(registry.by_name("TokenMinted"), key=lambda e: e.source)
    assert len(current.fragment.inputs) == 5
    assert len(deprecated.fragment.inputs) == 4


def test_unhandled_events_are_registered(registry: Registry) -> None:
    sold_out = registry.by_name("SoldOut")
    assert len(sold_out) == 1
    assert not sold_out[0].handled

    transfer = registry[event_identifier("Transfer(address,address,uint256)")]
    assert transfer.handler is None


def test_every_table_event_is_declared(registry: Registry) -> None:
    assert set(HANDLER_TABLE) <= set(registry.names())


def test_interest_set(registry: Registry) -> None:
    everything = registry.interest_set()
    handled = registry.interest_set(handled_only=True)
    assert len(everything) == len(registry)
    assert set(handled) < set(everything)
    assert set(handled) == {e.identifier for e in registry.values() if e.handled}
    assert list(everything) == sorted(everything)


def test_lookup_is_case_insensitive(registry: Registry) -> None:
    identifier = event_identifier(PRODUCT_CREATED)
    assert identifier.upper().replace("0X", "0x") in registry
    assert registry.get(None) is None


def test_registry_is_read_only(registry: Registry) -> None:
    with pytest.raises(TypeError):
        registry["0x00"] = None  # type: ignore[index]


def test_colliding_identifier_is_a_conflict() -> None:
    corpus = [
        AbiSource("a", [_event("Created", "uint256")], Generation.CLASSIC),
        AbiSource("b", [_event("Created", "uint256")], Generation.DIAMOND),
    ]
    with pytest.raises(RegistryConflictError) as exc:
        build_registry(corpus)
    assert exc.value.identifier == event_identifier("Created(uint256)")
    assert isinstance(exc.value, RegistryBuildError)


def test_identical_redeclaration_is_tolerated() -> None:
    abi = [_event("Created", "uint256")]
    registry = build_registry([
        AbiSource("a", abi, Generation.CLASSIC),
        AbiSource("b", abi, Generation.CLASSIC),
    ])
    assert len(registry) == 1
    assert registry[event_identifier("Created(uint256)")].source == "a"


def test_rebuild_is_deterministic(registry: Registry) -> None:
    again = build_registry()
    assert dict(again) == dict(registry)
