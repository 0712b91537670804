"""Event classification and decoding.

This package provides:
- ABI models and single-fragment extraction
- Canonical signatures and identifier hashing
- The immutable event registry and its builder
- The packaged ABI corpus
- A decoder that turns raw logs into named arguments
"""

from eventmirror.decoding.abi import AbiEvent, AbiInput, extract_event_fragment, iter_abi_events
from eventmirror.decoding.decoder import decode_log
from eventmirror.decoding.registry import AbiSource, Registry, RegistryEntry, build_registry
from eventmirror.decoding.signatures import EventSignature, event_identifier, signature_of

__all__ = [
    "AbiEvent",
    "AbiInput",
    "AbiSource",
    "EventSignature",
    "Registry",
    "RegistryEntry",
    "build_registry",
    "decode_log",
    "event_identifier",
    "extract_event_fragment",
    "iter_abi_events",
    "signature_of",
]
