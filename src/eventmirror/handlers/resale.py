"""Handlers for the resale marketplace."""

from __future__ import annotations

import json

from eventmirror.core.interfaces import IStateTransaction
from eventmirror.core.models import LogMeta

from .base import Args, Mutation, first, num, require

OFFER_STATUS = ("open", "closed", "cancelled")


def offer_status(value: int) -> str:
    return OFFER_STATUS[value] if 0 <= value < len(OFFER_STATUS) else str(value)


def handle_resale_offer(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {"marketplace_address": meta.address, "offer_index": num(args, "offerIndex")}
    inserted = tx.upsert("resale_offers", key, {
        "contract_address": first(args, "contractAddress"),
        "seller": first(args, "seller"),
        "token_index": num(args, "tokenId"),
        "price": num(args, "price"),
        "status": offer_status(int(first(args, "status", default=0))),
        "block_number": meta.block_number,
    })
    return Mutation.of("resale_offers", "insert" if inserted else "upsert", key)


def update_resale_offer(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {"marketplace_address": meta.address, "offer_index": num(args, "offerIndex")}
    require(tx, "resale_offers", key)
    tx.update("resale_offers", key, {"price": num(args, "newPrice"), "block_number": meta.block_number})
    return Mutation.of("resale_offers", "update", key)


def register_custom_splits(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    splits = [
        {"recipient": s["recipient"], "percentage": str(s["percentage"])}
        for s in first(args, "splits", default=[])
    ]
    key = {"marketplace_address": meta.address, "contract_address": first(args, "contractAddress")}
    inserted = tx.upsert("royalty_splits", key, {
        "splits": json.dumps(splits, separators=(",", ":")),
        "remainder_for_seller": num(args, "remainderForSeller"),
        "block_number": meta.block_number,
    })
    return Mutation.of("royalty_splits", "insert" if inserted else "upsert", key)
