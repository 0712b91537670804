from typing import Any

import pytest

from eventmirror.core.config import SyncConfig
from eventmirror.core.use_cases.sync import iter_chunks, sync_block_range
from eventmirror.decoding.registry import Registry
from eventmirror.dispatch.service import DispatchService
from eventmirror.storage.state import DuckDBStateStore

TOKEN = "0x" + "ab" * 20


def test_iter_chunks_covers_range_inclusively() -> None:
    assert list(iter_chunks(0, 9, 4)) == [(0, 3), (4, 7), (8, 9)]
    assert list(iter_chunks(5, 5, 100)) == [(5, 5)]
    assert list(iter_chunks(6, 5, 1)) == []


def test_iter_chunks_rejects_zero_step() -> None:
    with pytest.raises(ValueError):
        list(iter_chunks(0, 1, 0))


@pytest.mark.asyncio
async def test_sync_walks_chunks_and_filters_on_interest_set(
    registry: Registry, store: DuckDBStateStore, make_log, mock_source: Any
) -> None:
    created = make_log(
        "ProductCreated(uint256,string,uint256,uint256)", TOKEN, block=15,
        uid=0, name="Alpha", startingToken=0, length=10,
    )
    mock_source.get_logs.side_effect = [[], [created], []]
    config = SyncConfig(rpc_url="http://node", from_block=0, to_block=29, step=10, addresses=(TOKEN,))

    result = await sync_block_range(mock_source, DispatchService(registry, store), registry, config)

    assert result.complete
    assert result.chunks == 3
    assert result.logs == 1
    assert result.stats.applied == 1

    calls = mock_source.get_logs.call_args_list
    assert [(c.kwargs["from_block"], c.kwargs["to_block"]) for c in calls] == [(0, 9), (10, 19), (20, 29)]
    assert calls[0].kwargs["addresses"] == (TOKEN,)
    assert set(calls[0].kwargs["topic0s"]) == set(registry.interest_set(handled_only=True))


@pytest.mark.asyncio
async def test_sync_stops_at_first_deferred_chunk(
    registry: Registry, store: DuckDBStateStore, make_log, mock_source: Any
) -> None:
    orphan = make_log("ProductURIChanged(uint256,string)", TOKEN, block=12, productId=1, newURI="ipfs://1")
    mock_source.get_logs.side_effect = [[], [orphan], []]
    config = SyncConfig(rpc_url="http://node", from_block=0, to_block=29, step=10)

    result = await sync_block_range(mock_source, DispatchService(registry, store), registry, config)

    assert not result.complete
    assert result.resume_from == 10
    assert result.chunks == 2
    assert result.stats.deferred == [orphan]
    assert mock_source.get_logs.call_count == 2
