"""ABI models and single-fragment extraction.

An ABI fragment is the one ABI entry needed to decode a log: the event name
and its ordered parameter definitions with their indexed flags. Registry
entries carry exactly one fragment, never the full ABI, because several
contract generations declare events that share a name but not a shape.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any, Literal

from eth_utils.abi import collapse_if_tuple
from pydantic import BaseModel, ConfigDict

from eventmirror.core.errors import AmbiguousFragmentError, MissingFragmentError


class AbiInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    indexed: bool = False
    internalType: str | None = None
    name: str = ""
    type: str
    components: tuple[AbiInput, ...] | None = None

    @property
    def canonical_type(self) -> str:
        """Type as it appears in a canonical signature (tuples collapsed)."""
        return collapse_if_tuple(self.model_dump(exclude_none=True))


AbiInput.model_rebuild()


class AbiEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    anonymous: bool = False
    inputs: tuple[AbiInput, ...] = ()
    name: str
    type: Literal["event"] = "event"

    @property
    def indexed_inputs(self) -> list[AbiInput]:
        return [i for i in self.inputs if i.indexed]

    @property
    def data_inputs(self) -> list[AbiInput]:
        return [i for i in self.inputs if not i.indexed]


AbiJson = Sequence[dict[str, Any]]
AbiSpec = AbiJson | Path


def load_abi(abi: AbiSpec) -> AbiJson:
    if isinstance(abi, Path):
        return json.loads(abi.read_text())
    return abi


def iter_abi_events(abi: AbiSpec) -> Iterator[AbiEvent]:
    """Yield every `event` entry of an ABI in declaration order."""
    for entry in load_abi(abi):
        if entry.get("type") == "event":
            yield AbiEvent.model_validate(entry)


def extract_event_fragment(abi: AbiSpec, name: str, *, source: str | None = None) -> AbiEvent:
    """Return the single event entry named `name`.

    Raises `MissingFragmentError` when no event carries that name and
    `AmbiguousFragmentError` when more than one does.
    """
    matches = [entry for entry in load_abi(abi) if entry.get("type") == "event" and entry.get("name") == name]
    if not matches:
        raise MissingFragmentError(name, source)
    if len(matches) > 1:
        raise AmbiguousFragmentError(name, len(matches), source)
    return AbiEvent.model_validate(matches[0])
