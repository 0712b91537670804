"""Handlers for token contracts: deployments, collections, ranges, locks and metadata."""

from __future__ import annotations

from eventmirror.core.interfaces import IStateTransaction
from eventmirror.core.models import LogMeta

from .base import Args, Mutation, drop_none, first, num, require


def insert_contract(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    """Factory announced a new token contract (classic or diamond)."""
    key = {"contract_address": first(args, "token")}
    values = drop_none({
        "owner": first(args, "owner"),
        "deployment_index": num(args, "ownerIndex", "id"),
        "title": first(args, "contractName"),
        "diamond": meta.diamond,
        "factory_address": meta.address,
        "block_number": meta.block_number,
        "tx_hash": meta.tx_hash,
    })
    inserted = tx.upsert("contracts", key, values)
    return Mutation.of("contracts", "insert" if inserted else "upsert", key)


def insert_collection(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {
        "contract_address": meta.address,
        "collection_index": num(args, "collectionIndex", "uid"),
    }
    tx.insert("collections", {
        **key,
        "name": first(args, "collectionName", "name"),
        "starting_token": num(args, "startingToken"),
        "length": num(args, "collectionLength", "length"),
        "diamond": meta.diamond,
        "block_number": meta.block_number,
    })
    return Mutation.of("collections", "insert", key)


def insert_diamond_range(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    collection_index = num(args, "collectionIndex")
    require(tx, "collections", {"contract_address": meta.address, "collection_index": collection_index})
    key = {"contract_address": meta.address, "range_index": num(args, "rangeIndex")}
    tx.insert("ranges", {
        **key,
        "collection_index": collection_index,
        "range_start": num(args, "start"),
        "range_end": num(args, "end"),
        "price": num(args, "price"),
        "tokens_allowed": num(args, "tokensAllowed"),
        "locked_tokens": num(args, "lockedTokens"),
        "name": first(args, "name"),
        "block_number": meta.block_number,
    })
    return Mutation.of("ranges", "insert", key)


def update_diamond_range(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {"contract_address": meta.address, "range_index": num(args, "rangeIndex")}
    require(tx, "ranges", key)
    tx.update("ranges", key, drop_none({
        "name": first(args, "name"),
        "price": num(args, "price"),
        "tokens_allowed": num(args, "tokensAllowed"),
        "locked_tokens": num(args, "lockedTokens"),
        "block_number": meta.block_number,
    }))
    return Mutation.of("ranges", "update", key)


def insert_lock(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    collection_index = num(args, "productIndex")
    require(tx, "collections", {"contract_address": meta.address, "collection_index": collection_index})
    key = {
        "contract_address": meta.address,
        "collection_index": collection_index,
        "range_start": num(args, "startingToken"),
    }
    inserted = tx.upsert("locks", key, drop_none({
        "range_end": num(args, "endingToken"),
        "locked_tokens": num(args, "tokensLocked"),
        "lock_index": num(args, "lockIndex"),
        "name": first(args, "productName"),
        "block_number": meta.block_number,
    }))
    return Mutation.of("locks", "insert" if inserted else "upsert", key)


# ---- metadata ----


def contract_metadata(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    # The deployment event comes from the factory, so the contract row may not exist yet.
    key = {"contract_address": meta.address}
    tx.upsert("contracts", key, drop_none({
        "base_uri": first(args, "newURI", default=""),
        "append_token_index": first(args, "appendTokenIndex"),
        "metadata_extension": first(args, "metadataExtension"),
    }))
    return Mutation.of("contracts", "upsert", key)


def collection_metadata(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    key = {"contract_address": meta.address, "collection_index": num(args, "productId")}
    require(tx, "collections", key)
    tx.update("collections", key, drop_none({
        "metadata_uri": first(args, "newURI", default=""),
        "append_token_index": first(args, "appendTokenIndex"),
        "metadata_extension": first(args, "metadataExtension"),
    }))
    return Mutation.of("collections", "update", key)


def token_metadata(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    # Mints are emitted by the marketplace, so the token row may not exist yet.
    key = {"contract_address": meta.address, "token_index": num(args, "tokenId")}
    tx.upsert("tokens", key, {"metadata_uri": first(args, "newURI", default="")})
    return Mutation.of("tokens", "upsert", key)
