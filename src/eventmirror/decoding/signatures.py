"""Canonical event signatures and their on-chain identifiers.

The identifier (topic0) is keccak-256 of the canonical text
`name(type1,type2,...)`. Registry construction and log-filter construction
both go through `event_identifier`, so the off-chain key and the on-chain
topic always agree.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils.abi import event_signature_to_log_topic

from .abi import AbiEvent


@dataclass(frozen=True)
class EventSignature:
    name: str
    types: tuple[str, ...]

    @property
    def text(self) -> str:
        return f"{self.name}({','.join(self.types)})"

    @property
    def identifier(self) -> str:
        return event_identifier(self.text)

    @classmethod
    def parse(cls, text: str) -> EventSignature:
        """Parse canonical text such as `Transfer(address,address,uint256)`."""
        sig = "".join(text.split())
        open_paren = sig.find("(")
        if open_paren <= 0 or not sig.endswith(")"):
            raise ValueError(f"Invalid event signature: {text}")
        return cls(sig[:open_paren], tuple(_split_types(sig[open_paren + 1 : -1])))

    def __str__(self) -> str:
        return self.text


def _split_types(params: str) -> list[str]:
    """Split a type list by commas while respecting nested tuple types."""
    items: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in params:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            items.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    if buf:
        items.append("".join(buf))
    return [i for i in items if i]


def event_identifier(text: str) -> str:
    """Return the lowercase 0x-prefixed keccak-256 identifier of a canonical signature."""
    return "0x" + event_signature_to_log_topic(text).hex()


def signature_of(event: AbiEvent) -> EventSignature:
    return EventSignature(event.name, tuple(i.canonical_type for i in event.inputs))
