"""Static mapping from Solidity event name to the mutation that applies it.

The mapping is many-to-one on purpose: classic, diamond and deprecated
declarations of the same logical transition share one `HandlerKind`. Every
event name absent from `HANDLER_TABLE` is registered but left unhandled.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType


class HandlerKind(str, Enum):
    INSERT_CONTRACT = "insert_contract"
    INSERT_COLLECTION = "insert_collection"
    INSERT_DIAMOND_RANGE = "insert_diamond_range"
    UPDATE_DIAMOND_RANGE = "update_diamond_range"
    CONTRACT_METADATA = "contract_metadata"
    COLLECTION_METADATA = "collection_metadata"
    TOKEN_METADATA = "token_metadata"
    INSERT_DIAMOND_OFFER = "insert_diamond_offer"
    INSERT_TOKEN_CLASSIC = "insert_token_classic"
    INSERT_TOKEN_DIAMOND = "insert_token_diamond"
    UPDATE_MINTING_OFFER = "update_minting_offer"
    INSERT_OFFER_POOL = "insert_offer_pool"
    INSERT_OFFER = "insert_offer"
    INSERT_LOCK = "insert_lock"
    UPDATE_OFFER_CLASSIC = "update_offer_classic"
    HANDLE_RESALE_OFFER = "handle_resale_offer"
    UPDATE_RESALE_OFFER = "update_resale_offer"
    REGISTER_CUSTOM_SPLITS = "register_custom_splits"
    DEPOSIT_CREDITS = "deposit_credits"
    WITHDRAW_CREDITS = "withdraw_credits"


HANDLER_TABLE: Mapping[str, HandlerKind] = MappingProxyType({
    # Diamond factory
    "DeployedContract": HandlerKind.INSERT_CONTRACT,
    "CreatedCollection": HandlerKind.INSERT_COLLECTION,
    "CreatedRange": HandlerKind.INSERT_DIAMOND_RANGE,
    "UpdatedRange": HandlerKind.UPDATE_DIAMOND_RANGE,
    "UpdatedBaseURI": HandlerKind.CONTRACT_METADATA,
    "UpdatedProductURI": HandlerKind.COLLECTION_METADATA,
    "UpdatedTokenURI": HandlerKind.TOKEN_METADATA,

    # Diamond marketplace
    "AddedMintingOffer": HandlerKind.INSERT_DIAMOND_OFFER,
    "MintedToken": HandlerKind.INSERT_TOKEN_DIAMOND,
    "UpdatedMintingOffer": HandlerKind.UPDATE_MINTING_OFFER,

    # Classic factory
    "NewContractDeployed": HandlerKind.INSERT_CONTRACT,

    # Classic ERC721
    "BaseURIChanged": HandlerKind.CONTRACT_METADATA,
    "ProductURIChanged": HandlerKind.COLLECTION_METADATA,
    "TokenURIChanged": HandlerKind.TOKEN_METADATA,
    "ProductCreated": HandlerKind.INSERT_COLLECTION,
    "RangeLocked": HandlerKind.INSERT_LOCK,

    # Classic marketplace
    "AddedOffer": HandlerKind.INSERT_OFFER_POOL,
    "AppendedRange": HandlerKind.INSERT_OFFER,
    "UpdatedOffer": HandlerKind.UPDATE_OFFER_CLASSIC,
    "TokenMinted": HandlerKind.INSERT_TOKEN_CLASSIC,
    # SoldOut: unhandled

    # Resale marketplace
    "OfferStatusChange": HandlerKind.HANDLE_RESALE_OFFER,
    "UpdatedOfferPrice": HandlerKind.UPDATE_RESALE_OFFER,
    "CustomRoyaltiesSet": HandlerKind.REGISTER_CUSTOM_SPLITS,

    # Credit handler
    "ReceivedTokens": HandlerKind.DEPOSIT_CREDITS,
    "WithdrewCredit": HandlerKind.WITHDRAW_CREDITS,
})
