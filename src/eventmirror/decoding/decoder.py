"""Decode a raw log against the single ABI fragment of its registry entry.

Indexed parameters come from `topics[1:]`, everything else from the data
section, in strict fragment order. Indexed dynamic types (string, bytes,
arrays, tuples) are stored on chain as their keccak hash, so the raw topic is
returned for them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from eventmirror.core.errors import MalformedLogError
from eventmirror.core.models import LogRecord

from .abi import AbiInput

if TYPE_CHECKING:
    from .registry import RegistryEntry


def _is_hashed_topic(param: AbiInput) -> bool:
    t = param.type
    return t in ("string", "bytes") or t.startswith("tuple") or t.endswith("]")


def _topic_bytes(topic_hex: str) -> bytes:
    h = topic_hex[2:] if topic_hex.lower().startswith("0x") else topic_hex
    raw = bytes.fromhex(h)
    if len(raw) != 32:
        raise ValueError(f"topic is {len(raw)} bytes, expected 32")
    return raw


def _normalize(value: Any, param: AbiInput) -> Any:
    """Convert eth_abi output into plain, store-friendly Python values."""
    t = param.type
    if t.endswith("]"):
        element = param.model_copy(update={"type": t[: t.rindex("[")]})
        return [_normalize(v, element) for v in value]
    if t == "tuple":
        components = param.components or ()
        return {
            (c.name or f"arg{i}"): _normalize(v, c)
            for i, (c, v) in enumerate(zip(components, value))
        }
    if t == "address":
        return value.lower()
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return value


def decode_log(entry: RegistryEntry, record: LogRecord) -> dict[str, Any]:
    """Decode `record` into a dict keyed by parameter name.

    Raises `MalformedLogError` when topics or data do not match the fragment.
    """
    fragment = entry.fragment
    indexed = fragment.indexed_inputs
    data_inputs = fragment.data_inputs

    if len(record.topics) != len(indexed) + 1:
        raise MalformedLogError(
            record,
            entry.signature,
            f"expected {len(indexed) + 1} topics, got {len(record.topics)}",
        )

    try:
        topic_vals: list[Any] = []
        for param, topic in zip(indexed, record.topics[1:]):
            if _is_hashed_topic(param):
                topic_vals.append(topic.lower())
            else:
                (v,) = abi_decode([param.canonical_type], _topic_bytes(topic))
                topic_vals.append(_normalize(v, param))

        if not data_inputs and record.data:
            raise ValueError(f"unexpected {len(record.data)} data bytes")
        raw_data = abi_decode([p.canonical_type for p in data_inputs], record.data) if data_inputs else ()
        data_vals = [_normalize(v, p) for p, v in zip(data_inputs, raw_data)]
    except (DecodingError, ValueError, TypeError) as e:
        raise MalformedLogError(record, entry.signature, str(e)) from e

    topic_iter = iter(topic_vals)
    data_iter = iter(data_vals)
    decoded: dict[str, Any] = {}
    for i, param in enumerate(fragment.inputs):
        decoded[param.name or f"arg{i}"] = next(topic_iter) if param.indexed else next(data_iter)
    return decoded
