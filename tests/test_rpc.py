import json

import httpx
import pytest

from eventmirror.clients.rpc import RPC, to_hex_block, topics_param
from eventmirror.core.errors import RpcError

TOKEN = "0x" + "AB" * 20
T0 = "0x" + "DD" * 32


def _rpc(handler) -> RPC:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RPC("http://node", client=client)


def test_helpers() -> None:
    assert to_hex_block(255) == "0xff"
    assert topics_param([T0]) == [[T0.lower()]]


@pytest.mark.asyncio
async def test_latest_block() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["method"] == "eth_blockNumber"
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": "0x10"})

    rpc = _rpc(handler)
    assert await rpc.latest_block() == 16
    await rpc.aclose()


@pytest.mark.asyncio
async def test_get_logs_builds_filter_and_normalizes_records() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body["params"][0])
        return httpx.Response(200, json={
            "jsonrpc": "2.0",
            "id": body["id"],
            "result": [{
                "address": TOKEN,
                "topics": [T0],
                "data": "0x",
                "blockNumber": "0x1a",
                "transactionHash": "0x" + "EE" * 32,
                "logIndex": "0x3",
                "blockTimestamp": "0x64",
            }],
        })

    rpc = _rpc(handler)
    logs = await rpc.get_logs(addresses=[TOKEN], topic0s=[T0], from_block=16, to_block=31)
    await rpc.aclose()

    assert seen == [{
        "fromBlock": "0x10",
        "toBlock": "0x1f",
        "topics": [[T0.lower()]],
        "address": [TOKEN.lower()],
    }]
    (log,) = logs
    assert log.address == TOKEN.lower()
    assert log.identifier == T0.lower()
    assert log.ordering_key == (26, 3)
    assert log.tx_hash == "0x" + "ee" * 32
    assert log.block_timestamp == 100
    assert log.data == b""


@pytest.mark.asyncio
async def test_get_logs_without_addresses_leaves_emitter_open() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body["params"][0])
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": []})

    rpc = _rpc(handler)
    assert await rpc.get_logs(addresses=[], topic0s=[T0], from_block=0, to_block=0) == []
    await rpc.aclose()
    assert "address" not in seen[0]


@pytest.mark.asyncio
async def test_rpc_error_object_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "too many"}})

    rpc = _rpc(handler)
    with pytest.raises(RpcError, match="-32005"):
        await rpc.get_logs(addresses=[], topic0s=[T0], from_block=0, to_block=1)
    await rpc.aclose()


@pytest.mark.asyncio
async def test_http_error_status_raises() -> None:
    rpc = _rpc(lambda request: httpx.Response(503))
    with pytest.raises(httpx.HTTPStatusError):
        await rpc.latest_block()
    await rpc.aclose()
