import threading
from dataclasses import replace

import pytest

from eventmirror.core.errors import HandlerFailure, MalformedLogError, MissingDependencyError, StaleLogError
from eventmirror.core.models import LogRecord
from eventmirror.decoding.registry import Registry
from eventmirror.dispatch.dispatcher import DispatchStatus, dispatch
from eventmirror.storage.state import DuckDBStateStore

TOKEN = "0x" + "ab" * 20
OWNER = "0x" + "0c" * 20
FACTORY = "0x" + "fa" * 20

PRODUCT_CREATED = "ProductCreated(uint256,string,uint256,uint256)"
CREATED_COLLECTION = "CreatedCollection(uint256,string,uint256,uint256)"
CREATED_RANGE = "CreatedRange(uint256,uint256,uint256,uint256,uint256,uint256,string,uint256)"


def _product(make_log, **kw) -> LogRecord:
    return make_log(PRODUCT_CREATED, TOKEN, uid=0, name="Alpha", startingToken=0, length=100, **kw)


def test_unknown_identifier_is_a_noop(registry: Registry, store: DuckDBStateStore) -> None:
    record = LogRecord(
        address=TOKEN,
        topics=("0x" + "ee" * 32,),
        data_hex="0x",
        block_number=1,
        tx_hash="0x01",
        log_index=0,
    )
    outcome = dispatch(registry, record, store)
    assert outcome.status is DispatchStatus.UNKNOWN
    assert outcome.entry is None
    assert store.applied_count() == 0
    assert all(n == 0 for n in store.counts().values())


def test_anonymous_log_is_unknown(registry: Registry, store: DuckDBStateStore) -> None:
    record = LogRecord(address=TOKEN, topics=(), data_hex="0x", block_number=1, tx_hash="0x01", log_index=0)
    assert dispatch(registry, record, store).status is DispatchStatus.UNKNOWN


def test_unhandled_event_touches_nothing(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    record = make_log("Transfer(address,address,uint256)", TOKEN, **{"from": OWNER, "to": FACTORY, "tokenId": 1})
    outcome = dispatch(registry, record, store)
    assert outcome.status is DispatchStatus.UNHANDLED
    assert outcome.entry is not None and outcome.entry.name == "Transfer"
    assert store.applied_count() == 0


def test_applied_record_lands_in_state_and_ledger(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    record = _product(make_log)
    outcome = dispatch(registry, record, store)
    assert outcome.applied
    assert outcome.mutation is not None
    assert outcome.mutation.collection == "collections"
    assert store.is_applied(record.tx_hash, record.log_index)

    row = store.fetch_one("collections", contract_address=TOKEN, collection_index="0")
    assert row is not None
    assert row["name"] == "Alpha"
    assert row["diamond"] is False


def test_duplicate_delivery_applies_once(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    record = _product(make_log)
    assert dispatch(registry, record, store).status is DispatchStatus.APPLIED
    assert dispatch(registry, record, store).status is DispatchStatus.DUPLICATE
    assert dispatch(registry, record, store).status is DispatchStatus.DUPLICATE
    assert store.applied_count() == 1
    assert len(store.fetch_all("collections")) == 1


def test_concurrent_duplicates_apply_once(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    record = _product(make_log)
    statuses: list[DispatchStatus] = []
    lock = threading.Lock()

    def worker() -> None:
        status = dispatch(registry, record, store).status
        with lock:
            statuses.append(status)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert statuses.count(DispatchStatus.APPLIED) == 1
    assert statuses.count(DispatchStatus.DUPLICATE) == 7
    assert store.applied_count() == 1


def test_same_tx_different_log_index_are_distinct(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    first = _product(make_log, tx_hash="0x" + "aa" * 32, log_index=0)
    second = make_log(
        PRODUCT_CREATED, TOKEN, tx_hash="0x" + "aa" * 32, log_index=1,
        uid=1, name="Beta", startingToken=100, length=50,
    )
    assert dispatch(registry, first, store).applied
    assert dispatch(registry, second, store).applied
    assert store.applied_count() == 2


def test_out_of_order_dependent_record_is_rejected(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    rng = make_log(
        CREATED_RANGE, TOKEN, block=10, log_index=1,
        collectionIndex=0, start=0, end=9, price=10**17, tokensAllowed=1, lockedTokens=0,
        name="Early", rangeIndex=0,
    )
    with pytest.raises(HandlerFailure) as exc:
        dispatch(registry, rng, store)
    assert isinstance(exc.value.cause, MissingDependencyError)
    assert exc.value.record is rng
    assert not store.is_applied(rng.tx_hash, rng.log_index)
    assert store.fetch_all("ranges") == []

    collection = make_log(
        CREATED_COLLECTION, TOKEN, block=10, log_index=0,
        collectionIndex=0, collectionName="Diamond", startingToken=0, collectionLength=10,
    )
    assert dispatch(registry, collection, store).applied
    assert dispatch(registry, rng, store).applied
    assert store.fetch_one("ranges", contract_address=TOKEN, range_index="0")["collection_index"] == "0"


def test_failed_handler_rolls_back_partial_writes(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    deposit = make_log(
        "ReceivedTokens(address,address,uint256)", FACTORY,
        **{"from": OWNER, "token": TOKEN, "amount": 5},
    )
    overdraw = make_log(
        "WithdrewCredit(address,address,uint256)", FACTORY, block=2,
        recipient=OWNER, token=TOKEN, amount=6,
    )
    assert dispatch(registry, deposit, store).applied
    with pytest.raises(HandlerFailure):
        dispatch(registry, overdraw, store)
    assert store.fetch_one("credit_balances", user_address=OWNER)["balance"] == "5"
    assert len(store.fetch_all("credit_movements")) == 1
    assert store.applied_count() == 1
    assert store.position(FACTORY) == (1, 0)


def test_malformed_record_raises_without_side_effects(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    record = _product(make_log)
    broken = replace(record, data_hex="0x" + "00" * 7)
    with pytest.raises(MalformedLogError):
        dispatch(registry, broken, store)
    assert store.applied_count() == 0


def test_record_behind_applied_position_is_stale(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    newer = _product(make_log, block=5)
    older = make_log(PRODUCT_CREATED, TOKEN, block=4, uid=1, name="Beta", startingToken=100, length=50)
    assert dispatch(registry, newer, store).applied
    assert store.position(TOKEN) == (5, 0)

    with pytest.raises(StaleLogError) as exc:
        dispatch(registry, older, store)
    assert exc.value.record is older
    assert exc.value.position == (5, 0)
    assert not store.is_applied(older.tx_hash, older.log_index)
    assert store.fetch_one("collections", contract_address=TOKEN, collection_index="1") is None
    assert store.position(TOKEN) == (5, 0)

    # a redelivery of the record that set the position is still a duplicate
    assert dispatch(registry, newer, store).status is DispatchStatus.DUPLICATE


def test_positions_are_tracked_per_address(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    assert dispatch(registry, _product(make_log, block=9), store).applied
    other = make_log(
        CREATED_COLLECTION, FACTORY, block=2,
        collectionIndex=0, collectionName="Diamond", startingToken=0, collectionLength=10,
    )
    assert dispatch(registry, other, store).applied
    assert (store.position(TOKEN), store.position(FACTORY)) == ((9, 0), (2, 0))


def test_ledger_key_ignores_hex_case(registry: Registry, store: DuckDBStateStore, make_log) -> None:
    record = _product(make_log, tx_hash="0x" + "ab" * 32)
    shouted = replace(record, tx_hash="0x" + "AB" * 32, address="0x" + "AB" * 20)
    assert shouted.tx_hash == record.tx_hash
    assert shouted.address == TOKEN

    assert dispatch(registry, record, store).applied
    assert dispatch(registry, shouted, store).status is DispatchStatus.DUPLICATE
    assert store.applied_count() == 1


def test_log_record_normalizes_hex_case() -> None:
    record = LogRecord(
        address="0x" + "AB" * 20,
        topics=("0x" + "EE" * 32, "0x" + "0C" * 32),
        data_hex="0x",
        block_number=1,
        tx_hash="0x" + "FF" * 32,
        log_index=0,
    )
    assert record.address == TOKEN
    assert record.topics == ("0x" + "ee" * 32, "0x" + "0c" * 32)
    assert record.tx_hash == "0x" + "ff" * 32
    assert record.identifier == "0x" + "ee" * 32
