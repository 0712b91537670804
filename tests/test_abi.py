import json
from pathlib import Path

import pytest

from eventmirror.core.errors import AmbiguousFragmentError, MissingFragmentError
from eventmirror.decoding.abi import extract_event_fragment, iter_abi_events

ABI = [
    {"type": "function", "name": "Transfer", "inputs": [], "outputs": []},
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address", "internalType": "address"},
            {"indexed": True, "name": "to", "type": "address", "internalType": "address"},
            {"indexed": True, "name": "tokenId", "type": "uint256", "internalType": "uint256"},
        ],
    },
    {
        "type": "event",
        "name": "BaseURIChanged",
        "inputs": [{"indexed": False, "name": "newURI", "type": "string"}],
    },
]


def test_extract_event_fragment_returns_single_entry() -> None:
    fragment = extract_event_fragment(ABI, "Transfer")
    assert fragment.name == "Transfer"
    assert [i.name for i in fragment.inputs] == ["from", "to", "tokenId"]
    assert len(fragment.indexed_inputs) == 3
    assert fragment.data_inputs == []


def test_extract_event_fragment_ignores_functions_of_same_name() -> None:
    assert extract_event_fragment(ABI, "Transfer").type == "event"


def test_extract_event_fragment_missing() -> None:
    with pytest.raises(MissingFragmentError, match="SoldOut"):
        extract_event_fragment(ABI, "SoldOut", source="minter")


def test_extract_event_fragment_ambiguous() -> None:
    abi = ABI + [{"type": "event", "name": "BaseURIChanged", "inputs": []}]
    with pytest.raises(AmbiguousFragmentError) as exc:
        extract_event_fragment(abi, "BaseURIChanged")
    assert exc.value.count == 2


def test_iter_abi_events_keeps_declaration_order() -> None:
    assert [e.name for e in iter_abi_events(ABI)] == ["Transfer", "BaseURIChanged"]


def test_abi_can_be_loaded_from_path(tmp_path: Path) -> None:
    path = tmp_path / "erc721.json"
    path.write_text(json.dumps(ABI))
    assert [e.name for e in iter_abi_events(path)] == ["Transfer", "BaseURIChanged"]
