# relay_indexer/types/chain.py

from typing import Any, Dict, Optional, Tuple

import msgspec
from msgspec import Struct


class ChainEvent(Struct, frozen=True):
    """A decoded contract log.

    ``args`` keeps the ABI field order; ``arg_names`` carries the matching
    input names so processors can address fields by name.
    """
    contract_address: str
    event_name: str
    block_number: int
    transaction_hash: str
    log_index: int
    args: Tuple[Any, ...]
    arg_names: Tuple[str, ...] = ()

    @property
    def position(self) -> Tuple[int, int]:
        return (self.block_number, self.log_index)

    def arg(self, name: str, default: Any = None) -> Any:
        try:
            return self.args[self.arg_names.index(name)]
        except ValueError:
            return default


class BlockWindow(Struct, frozen=True):
    """Half-open block range ``[from_block, to_block)``"""
    from_block: int
    to_block: int

    @property
    def size(self) -> int:
        return self.to_block - self.from_block

    @property
    def last_block(self) -> int:
        """Inclusive upper bound handed to eth_getLogs"""
        return self.to_block - 1

    def __str__(self) -> str:
        return f"[{self.from_block}, {self.to_block})"


class RunStatus:
    IDLE = 'idle'
    SUCCESS = 'success'
    PARTIAL = 'partial'
    HELD = 'held'
    FAILED = 'failed'


class RunSummary(Struct):
    job_name: str
    status: str = RunStatus.IDLE
    window: Optional[BlockWindow] = None
    indexed: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: Dict[str, int] = msgspec.field(default_factory=dict)
    duration_ms: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != RunStatus.FAILED

    def count(self, outcome: str) -> None:
        self.outcomes[outcome] = self.outcomes.get(outcome, 0) + 1
