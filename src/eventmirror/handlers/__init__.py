"""Handler table and handler implementations.

This package provides:
- `HandlerKind`: closed set of mutation variants
- `HANDLER_TABLE`: event name → HandlerKind
- `HANDLERS`: HandlerKind → handler function (checked to be exhaustive)
- `Mutation`: description of the change a handler applied
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from eventmirror.handlers import contracts, credits, marketplace, resale
from eventmirror.handlers.base import Handler, Mutation
from eventmirror.handlers.table import HANDLER_TABLE, HandlerKind

HANDLERS: Mapping[HandlerKind, Handler] = MappingProxyType({
    HandlerKind.INSERT_CONTRACT: contracts.insert_contract,
    HandlerKind.INSERT_COLLECTION: contracts.insert_collection,
    HandlerKind.INSERT_DIAMOND_RANGE: contracts.insert_diamond_range,
    HandlerKind.UPDATE_DIAMOND_RANGE: contracts.update_diamond_range,
    HandlerKind.CONTRACT_METADATA: contracts.contract_metadata,
    HandlerKind.COLLECTION_METADATA: contracts.collection_metadata,
    HandlerKind.TOKEN_METADATA: contracts.token_metadata,
    HandlerKind.INSERT_LOCK: contracts.insert_lock,
    HandlerKind.INSERT_OFFER_POOL: marketplace.insert_offer_pool,
    HandlerKind.INSERT_OFFER: marketplace.insert_offer,
    HandlerKind.UPDATE_OFFER_CLASSIC: marketplace.update_offer_classic,
    HandlerKind.INSERT_DIAMOND_OFFER: marketplace.insert_diamond_offer,
    HandlerKind.UPDATE_MINTING_OFFER: marketplace.update_minting_offer,
    HandlerKind.INSERT_TOKEN_CLASSIC: marketplace.insert_token_classic,
    HandlerKind.INSERT_TOKEN_DIAMOND: marketplace.insert_token_diamond,
    HandlerKind.HANDLE_RESALE_OFFER: resale.handle_resale_offer,
    HandlerKind.UPDATE_RESALE_OFFER: resale.update_resale_offer,
    HandlerKind.REGISTER_CUSTOM_SPLITS: resale.register_custom_splits,
    HandlerKind.DEPOSIT_CREDITS: credits.deposit_credits,
    HandlerKind.WITHDRAW_CREDITS: credits.withdraw_credits,
})

_unbound = set(HandlerKind) - set(HANDLERS)
if _unbound:
    raise RuntimeError(f"HandlerKind variants without implementation: {sorted(k.value for k in _unbound)}")


def handler_for(kind: HandlerKind) -> Handler:
    return HANDLERS[kind]


__all__ = [
    "HANDLERS",
    "HANDLER_TABLE",
    "Handler",
    "HandlerKind",
    "Mutation",
    "handler_for",
]
