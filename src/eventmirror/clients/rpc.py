"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with sane timeouts/connection limits
- Helper utilities to format block numbers and topics

It returns `LogRecord` objects ready for dispatch.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from eventmirror.core.errors import RpcError
from eventmirror.core.models import LogRecord

logger = logging.getLogger(__name__)


def to_hex_block(x: int) -> str:
    """Return a 0x-prefixed hex block number."""
    return hex(x)


def topics_param(topic0s: Sequence[str]) -> list[list[str]]:
    """Format topic0 identifiers as an OR-filter on the first topic position."""
    return [[t.lower() for t in topic0s]]


class RPC:
    """Minimal async RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    client : httpx.AsyncClient | None
        Preconfigured client (e.g. one mounted on `httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_s: int = 20,
        max_connections: int = 64,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._id = 0
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
        )

    async def _call(self, method: str, params: list[Any]) -> Any:
        self._id += 1
        payload = {"jsonrpc": "2.0", "id": self._id, "method": method, "params": params}
        r = await self.client.post(self.url, json=payload)
        r.raise_for_status()
        data = r.json()
        if "error" in data:
            e = data["error"]
            if isinstance(e, dict):
                raise RpcError(method, e.get("code"), e.get("message"))
            raise RpcError(method, None, e)
        return data.get("result")

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        return int(await self._call("eth_blockNumber", []), 16)

    async def get_logs(
        self,
        *,
        addresses: Sequence[str],
        topic0s: Sequence[str],
        from_block: int,
        to_block: int,
    ) -> list[LogRecord]:
        """Fetch logs whose topic0 is in `topic0s` within an inclusive block range.

        An empty `addresses` sequence leaves the emitter unfiltered.
        """
        flt: dict[str, Any] = {
            "fromBlock": to_hex_block(from_block),
            "toBlock": to_hex_block(to_block),
            "topics": topics_param(topic0s),
        }
        if addresses:
            flt["address"] = [a.lower() for a in addresses]

        result = await self._call("eth_getLogs", [flt]) or []
        logs = [LogRecord.from_rpc(rl) for rl in result]
        logger.debug("eth_getLogs %d-%d returned %d logs", from_block, to_block, len(logs))
        return logs

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
