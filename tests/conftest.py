# tests/conftest.py

"""
Shared fixtures: an in-memory sqlite store with the full schema, and an
in-memory chain double implementing ChainClientInterface.
"""

import itertools
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from relay_indexer.clients.interfaces import ChainClientInterface
from relay_indexer.core.errors import ChainError
from relay_indexer.database.connection import DatabaseManager
from relay_indexer.database.repositories import RepositoryManager
from relay_indexer.pipeline.cursor import CursorManager
from relay_indexer.types.chain import ChainEvent
from relay_indexer.types.config import DatabaseConfig, IndexerSettings

CONTRACT = '0x00000000000000000000000000000000000000c1'
BLOCK_TIME = 1_700_000_000

_tx_counter = itertools.count(1)


def tx_hash(n: Optional[int] = None) -> str:
    n = next(_tx_counter) if n is None else n
    return '0x' + format(n, '064x')


def make_event(event_name: str, block_number: int, log_index: int = 0,
               contract: str = CONTRACT, tx: Optional[str] = None, **args) -> ChainEvent:
    return ChainEvent(
        contract_address=contract,
        event_name=event_name,
        block_number=block_number,
        transaction_hash=tx or tx_hash(),
        log_index=log_index,
        args=tuple(args.values()),
        arg_names=tuple(args.keys()),
    )


class FakeChainClient(ChainClientInterface):
    """Chain double: events are served from a list, failures are injected per method"""

    def __init__(self, height: int = 100):
        self.height = height
        self.events: List[ChainEvent] = []
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.view_results: Dict[str, Any] = {}
        self.failures: Dict[str, Exception] = {}
        self.queries: List[tuple] = []
        self.on_query: Optional[Callable[[], None]] = None

    def _maybe_fail(self, method: str) -> None:
        error = self.failures.get(method)
        if error is not None:
            raise error

    def add(self, *events: ChainEvent) -> None:
        self.events.extend(events)

    def current_height(self) -> int:
        self._maybe_fail('current_height')
        return self.height

    def block_timestamp(self, block_number: int) -> int:
        self._maybe_fail('block_timestamp')
        return BLOCK_TIME + block_number

    def query_events(self, contract_address: str, abi: Sequence[Dict[str, Any]],
                     event_name: str, from_block: int, to_block: int) -> List[ChainEvent]:
        self._maybe_fail('query_events')
        self.queries.append((contract_address, event_name, from_block, to_block))
        if self.on_query is not None:
            self.on_query()
        matched = [
            event for event in self.events
            if event.event_name == event_name
            and event.contract_address.lower() == contract_address.lower()
            and from_block <= event.block_number <= to_block
        ]
        return sorted(matched, key=lambda event: event.position)

    def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self._maybe_fail('get_transaction')
        return self.transactions.get(tx_hash)

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self._maybe_fail('get_transaction_receipt')
        return self.receipts.get(tx_hash)

    def call_view(self, contract_address: str, abi: Sequence[Dict[str, Any]],
                  function_name: str, args: Sequence[Any] = ()) -> Any:
        self._maybe_fail('call_view')
        key = str(args[0]).lower() if args else function_name
        if key not in self.view_results:
            raise ChainError(f"execution reverted: {function_name}", method='eth_call')
        return self.view_results[key]


@pytest.fixture
def db_manager():
    manager = DatabaseManager(DatabaseConfig(url='sqlite://'))
    manager.initialize()
    manager.create_all()
    yield manager
    manager.shutdown()


@pytest.fixture
def repos(db_manager):
    return RepositoryManager(db_manager)


@pytest.fixture
def chain():
    return FakeChainClient(height=100)


@pytest.fixture
def cursor_manager(repos):
    return CursorManager(repos.cursors)


@pytest.fixture
def settings():
    return IndexerSettings(
        batch_size=100,
        confirmations=6,
        max_blocks_per_run=1000,
        default_lookback=10000,
        advance_on_event_failure=True,
    )
