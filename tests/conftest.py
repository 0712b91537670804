from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from eth_abi import encode

from eventmirror.core.models import LogRecord
from eventmirror.decoding.registry import Registry, build_registry
from eventmirror.decoding.signatures import event_identifier
from eventmirror.storage.state import DuckDBStateStore


class LogFactory:
    """Encode chain logs for registered events from plain argument values."""

    def __init__(self, registry: Registry) -> None:
        self.registry = registry
        self._tx = 0

    def __call__(
        self,
        signature: str,
        address: str,
        *,
        block: int = 1,
        log_index: int = 0,
        tx_hash: str | None = None,
        **args: Any,
    ) -> LogRecord:
        entry = self.registry[event_identifier(signature)]
        topics = [entry.identifier]
        data_types: list[str] = []
        data_values: list[Any] = []
        for param in entry.fragment.inputs:
            value = args[param.name]
            if param.indexed:
                topics.append("0x" + encode([param.canonical_type], [value]).hex())
            else:
                data_types.append(param.canonical_type)
                data_values.append(value)

        if tx_hash is None:
            self._tx += 1
            tx_hash = f"0x{self._tx:064x}"

        return LogRecord(
            address=address.lower(),
            topics=tuple(topics),
            data_hex="0x" + encode(data_types, data_values).hex(),
            block_number=block,
            tx_hash=tx_hash,
            log_index=log_index,
        )


@pytest.fixture(scope="session")
def registry() -> Registry:
    return build_registry()


@pytest.fixture
def store() -> Iterator[DuckDBStateStore]:
    s = DuckDBStateStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def make_log(registry: Registry) -> LogFactory:
    return LogFactory(registry)


@pytest.fixture
def mock_source():
    source = AsyncMock()
    source.get_logs = AsyncMock(return_value=[])
    source.latest_block = AsyncMock(return_value=100)
    source.aclose = AsyncMock()
    return source
