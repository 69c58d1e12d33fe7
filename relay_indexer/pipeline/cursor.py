# relay_indexer/pipeline/cursor.py

from typing import Optional

from ..core.logging import LoggingMixin
from ..database.repositories import CursorRepository
from ..types.chain import BlockWindow


def compute_window(last_block: Optional[int], current_height: int, confirmations: int,
                   max_blocks_per_run: int, default_lookback: int,
                   start_block: Optional[int] = None) -> Optional[BlockWindow]:
    """
    Next half-open window ``[from_block, to_block)`` for a job.

    ``to_block`` never passes ``current_height - confirmations``; ``None``
    means there is nothing safe to index yet.
    """
    if last_block is not None:
        from_block = last_block
    elif start_block is not None:
        from_block = start_block
    else:
        from_block = max(0, current_height - default_lookback)

    to_block = min(from_block + max_blocks_per_run, current_height - confirmations)

    if from_block >= to_block:
        return None
    return BlockWindow(from_block=from_block, to_block=to_block)


class CursorManager(LoggingMixin):
    def __init__(self, cursors: CursorRepository):
        self.cursors = cursors

    def next_window(self, job_name: str, current_height: int, confirmations: int,
                    max_blocks_per_run: int, default_lookback: int,
                    start_block: Optional[int] = None) -> Optional[BlockWindow]:
        last_block = self.cursors.get_last_block(job_name)
        window = compute_window(last_block, current_height, confirmations,
                                max_blocks_per_run, default_lookback, start_block)
        if window is None:
            self.log_debug("No new confirmed blocks", job_name=job_name,
                           from_block=last_block, block_number=current_height)
        return window

    def advance(self, job_name: str, window: BlockWindow) -> int:
        return self.cursors.advance(job_name, window.to_block)
