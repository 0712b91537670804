"""Handlers for minting marketplaces: offer pools, offers and minted tokens.

Classic marketplaces group ranges into offer pools (`AddedOffer` then one
`AppendedRange` per range). Diamond marketplaces publish one minting offer per
range; such an offer is stored with `offer_pool = offerIndex` and
`offer_index = rangeIndex`.
"""

from __future__ import annotations

from eventmirror.core.errors import MissingDependencyError
from eventmirror.core.interfaces import IStateTransaction, Row
from eventmirror.core.models import LogMeta

from .base import Args, Mutation, drop_none, first, num, require


def insert_offer_pool(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {"marketplace_address": meta.address, "catalog_index": num(args, "catalogIndex")}
    tx.insert("offer_pools", {
        **key,
        "contract_address": first(args, "erc721Address"),
        "collection_index": num(args, "productIndex"),
        "ranges_created": num(args, "rangesCreated"),
        "block_number": meta.block_number,
    })
    return Mutation.of("offer_pools", "insert", key)


def insert_offer(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    pool_key = {"marketplace_address": meta.address, "catalog_index": num(args, "offerIndex")}
    pool = require(tx, "offer_pools", pool_key)
    key = {
        "marketplace_address": meta.address,
        "offer_pool": pool_key["catalog_index"],
        "offer_index": num(args, "rangeIndex"),
    }
    tx.insert("offers", {
        **key,
        "contract_address": first(args, "erc721Address", default=pool["contract_address"]),
        "collection_index": num(args, "productIndex") or pool["collection_index"],
        "range_index": key["offer_index"],
        "range_start": num(args, "startToken"),
        "range_end": num(args, "endToken"),
        "price": num(args, "price"),
        "name": first(args, "name"),
        "minted": 0,
        "diamond": False,
        "block_number": meta.block_number,
    })
    return Mutation.of("offers", "insert", key)


def update_offer_classic(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {
        "marketplace_address": meta.address,
        "offer_pool": num(args, "offerIndex"),
        "offer_index": num(args, "rangeIndex"),
    }
    require(tx, "offers", key)
    tx.update("offers", key, drop_none({
        "tokens": num(args, "tokens"),
        "price": num(args, "price"),
        "name": first(args, "name"),
        "block_number": meta.block_number,
    }))
    return Mutation.of("offers", "update", key)


def insert_diamond_offer(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {
        "marketplace_address": meta.address,
        "offer_pool": num(args, "offerIndex"),
        "offer_index": num(args, "rangeIndex"),
    }
    tx.insert("offers", {
        **key,
        "contract_address": first(args, "erc721Address"),
        "range_index": key["offer_index"],
        "price": num(args, "price"),
        "name": first(args, "rangeName"),
        "visible": first(args, "visible", default=True),
        "fee_splits_length": num(args, "feeSplitsLength"),
        "minted": 0,
        "diamond": True,
        "block_number": meta.block_number,
    })
    return Mutation.of("offers", "insert", key)


def update_minting_offer(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {
        "marketplace_address": meta.address,
        "offer_pool": num(args, "offerIndex"),
        "offer_index": num(args, "rangeIndex"),
    }
    require(tx, "offers", key)
    tx.update("offers", key, drop_none({
        "visible": first(args, "visible"),
        "fee_splits_length": num(args, "feeSplitsLength"),
        "block_number": meta.block_number,
    }))
    return Mutation.of("offers", "update", key)


# ---- minted tokens ----


def _offer_containing(offers: list[Row], token_index: int) -> Row | None:
    for offer in offers:
        start, end = offer.get("range_start"), offer.get("range_end")
        if start is not None and end is not None and int(start) <= token_index <= int(end):
            return offer
    return None


def _mint(tx: IStateTransaction, offer: Row, args: Args, meta: LogMeta, owner: str | None) -> Mutation:
    offer_key = {k: offer[k] for k in ("marketplace_address", "offer_pool", "offer_index")}
    tx.update("offers", offer_key, {"minted": int(offer.get("minted") or 0) + 1})

    key = {"contract_address": offer["contract_address"], "token_index": num(args, "tokenIndex")}
    inserted = tx.upsert("tokens", key, drop_none({
        "owner": owner,
        "collection_index": offer.get("collection_index"),
        "marketplace_address": meta.address,
        "offer_pool": offer["offer_pool"],
        "offer_index": offer["offer_index"],
        "minted": True,
        "diamond": meta.diamond,
        "block_number": meta.block_number,
        "tx_hash": meta.tx_hash,
    }))
    return Mutation.of("tokens", "insert" if inserted else "upsert", key)


def insert_token_classic(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    pool = num(args, "offerIndex")
    range_index = num(args, "rangeIndex")
    if range_index is not None:
        offer = require(tx, "offers", {
            "marketplace_address": meta.address,
            "offer_pool": pool,
            "offer_index": range_index,
        })
    else:
        # Older minters do not emit the range; find it by token position.
        candidates = tx.select("offers", {"marketplace_address": meta.address, "offer_pool": pool})
        offer = _offer_containing(candidates, int(first(args, "tokenIndex")))
        if offer is None:
            raise MissingDependencyError(
                "offers",
                {"marketplace_address": meta.address, "offer_pool": pool, "token_index": num(args, "tokenIndex")},
            )
    return _mint(tx, offer, args, meta, first(args, "ownerAddress"))


def insert_token_diamond(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    where = {
        "marketplace_address": meta.address,
        "contract_address": first(args, "erc721Address"),
        "range_index": num(args, "rangeIndex"),
        "diamond": True,
    }
    offers = tx.select("offers", where)
    if not offers:
        raise MissingDependencyError("offers", where)
    offer = offers[0]
    # Diamond offers do not carry the collection; take it from the range when mirrored.
    rng = tx.get("ranges", {"contract_address": offer["contract_address"], "range_index": offer["range_index"]})
    if rng is not None:
        offer = {**offer, "collection_index": rng["collection_index"]}
    return _mint(tx, offer, args, meta, first(args, "buyer"))
