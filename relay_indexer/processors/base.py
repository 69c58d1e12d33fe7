# relay_indexer/processors/base.py

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..clients.interfaces import ChainClientInterface
from ..core.errors import ChainError, EventProcessingError
from ..core.logging import LoggingMixin
from ..database.repositories import RepositoryManager
from ..types.chain import ChainEvent

APPLIED = 'applied'
SKIPPED = 'skipped'

_MISSING = object()

EventHandler = Callable[[Session, ChainEvent, int], Optional[str]]


def address(value: Any) -> Optional[str]:
    return value.lower() if isinstance(value, str) and value else None


def event_arg(event: ChainEvent, name: str, index: int) -> Any:
    """Named lookup when the decoder supplied names, positional otherwise"""
    if event.arg_names:
        value = event.arg(name, _MISSING)
    else:
        value = event.args[index] if index < len(event.args) else _MISSING
    if value is _MISSING:
        raise EventProcessingError(f"{event.event_name} is missing argument '{name}'")
    return value


class EventProcessor(ABC, LoggingMixin):
    """
    Maps decoded chain events onto idempotent State Store writes.

    Subclasses register one handler per event name. Each event is applied in
    its own transaction, so a failing event leaves no partial writes behind
    and cannot poison the rest of the batch.
    """

    abi_name: str = ''

    def __init__(self, chain: ChainClientInterface, repos: RepositoryManager):
        self.chain = chain
        self.repos = repos
        self._handlers = self.handlers()

    @abstractmethod
    def handlers(self) -> Dict[str, EventHandler]:
        pass

    @property
    def event_names(self) -> Tuple[str, ...]:
        return tuple(self._handlers.keys())

    def accepts(self, event: ChainEvent) -> bool:
        return True

    def resolve_timestamp(self, block_number: int) -> int:
        try:
            return self.chain.block_timestamp(block_number)
        except ChainError as e:
            self.log_warning("Block timestamp unavailable, using indexing time",
                             block_number=block_number, error=str(e))
            return int(time.time())

    def apply(self, event: ChainEvent) -> str:
        handler = self._handlers.get(event.event_name)
        if handler is None:
            raise EventProcessingError(
                f"{self.__class__.__name__} has no handler for {event.event_name}"
            )

        if not self.accepts(event):
            return SKIPPED

        timestamp = self.resolve_timestamp(event.block_number)
        with self.repos.get_transaction() as session:
            outcome = handler(session, event, timestamp)

        self.log_debug(f"Applied {event.event_name}",
                       event_name=event.event_name,
                       tx_hash=event.transaction_hash,
                       block_number=event.block_number,
                       log_index=event.log_index)
        return outcome or APPLIED


class SweepTask(ABC, LoggingMixin):
    """
    Job body without a block window: collect a batch of open rows, then
    settle each one independently.

    ``apply`` returns an outcome string. Outcomes listed in
    ``FAILED_OUTCOMES`` count as failures of the run; outcomes in
    ``DEFERRED_OUTCOMES`` leave the item for a later run and count as
    skipped. Anything else counts as indexed.
    """

    name: str = ''

    FAILED_OUTCOMES: FrozenSet[str] = frozenset()
    DEFERRED_OUTCOMES: FrozenSet[str] = frozenset()

    def __init__(self, chain: ChainClientInterface, repos: RepositoryManager, batch_size: int = 100):
        self.chain = chain
        self.repos = repos
        self.batch_size = batch_size

    @abstractmethod
    def collect(self) -> List[Any]:
        pass

    @abstractmethod
    def apply(self, item: Any) -> str:
        pass

    def describe(self, item: Any) -> Dict[str, Any]:
        return {'item': str(item)}

    def resolve_timestamp(self, block_number: int) -> int:
        try:
            return self.chain.block_timestamp(block_number)
        except ChainError as e:
            self.log_warning("Block timestamp unavailable, using indexing time",
                             block_number=block_number, error=str(e))
            return int(time.time())
