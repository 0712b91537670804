"""Handlers for the credit handler: deposits and withdrawals per (user, token)."""

from __future__ import annotations

from eventmirror.core.errors import InsufficientCreditError
from eventmirror.core.interfaces import IStateTransaction
from eventmirror.core.models import LogMeta

from .base import Args, Mutation, first


def _move(tx: IStateTransaction, meta: LogMeta, user: str, token: str, delta: int, direction: str) -> Mutation:
    key = {"handler_address": meta.address, "user_address": user, "token_address": token}
    row = tx.get("credit_balances", key)
    balance = int(row["balance"]) if row else 0
    if balance + delta < 0:
        raise InsufficientCreditError(user, token, balance, -delta)

    if row is None:
        tx.insert("credit_balances", {**key, "balance": str(balance + delta)})
    else:
        tx.update("credit_balances", key, {"balance": str(balance + delta)})

    tx.insert("credit_movements", {
        "tx_hash": meta.tx_hash,
        "log_index": meta.log_index,
        **key,
        "direction": direction,
        "amount": str(abs(delta)),
        "block_number": meta.block_number,
    })
    return Mutation.of("credit_balances", "insert" if row is None else "update", key)


def deposit_credits(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    return _move(tx, meta, first(args, "from"), first(args, "token"), int(first(args, "amount")), "deposit")


def withdraw_credits(tx: IStateTransaction, args: Args, meta: LogMeta) -> Mutation:
    return _move(tx, meta, first(args, "recipient"), first(args, "token"), -int(first(args, "amount")), "withdraw")
