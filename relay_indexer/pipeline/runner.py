# relay_indexer/pipeline/runner.py
"""
Job runners.

A runner is one named job with an explicit single-flight token. ``run()``
either returns a RunSummary or, when a previous run still holds the token,
returns None without touching the chain or the store.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from .cursor import CursorManager
from ..clients.interfaces import ChainClientInterface
from ..core.errors import ChainError, IndexerError, PermanentError, StateStoreError
from ..core.logging import LoggingMixin
from ..database.repositories import CursorRepository, FailedEventRepository
from ..processors.base import SKIPPED, EventProcessor, SweepTask
from ..types.chain import BlockWindow, ChainEvent, RunStatus, RunSummary
from ..types.config import IndexerSettings

# Outcome key for an apply() call that raised
ERROR = 'error'


class JobRunner(ABC, LoggingMixin):
    def __init__(self, name: str):
        self.name = name
        self._token = threading.Lock()
        self.last_summary: Optional[RunSummary] = None

    @property
    def is_running(self) -> bool:
        return self._token.locked()

    def run(self) -> Optional[RunSummary]:
        if not self._token.acquire(blocking=False):
            self.log_debug("Run already in progress, trigger ignored", job_name=self.name)
            return None

        started = time.monotonic()
        summary = RunSummary(job_name=self.name)
        try:
            self._execute(summary)
        except StateStoreError as e:
            summary.status = RunStatus.FAILED
            summary.error = f"state store unavailable: {e}"
            self.log_error("Run aborted, state store unavailable",
                           job_name=self.name, error=str(e))
        except ChainError as e:
            summary.status = RunStatus.FAILED
            summary.error = str(e)
            self.log_error("Run aborted on chain error, cursor not advanced",
                           job_name=self.name, error=str(e),
                           transient=not isinstance(e, PermanentError))
        except IndexerError as e:
            summary.status = RunStatus.FAILED
            summary.error = str(e)
            self.log_error("Run aborted", job_name=self.name, error=str(e))
        finally:
            summary.duration_ms = int((time.monotonic() - started) * 1000)
            self.last_summary = summary
            self._token.release()

        self._log_summary(summary)
        return summary

    @abstractmethod
    def _execute(self, summary: RunSummary) -> None:
        pass

    def _log_summary(self, summary: RunSummary) -> None:
        if summary.status == RunStatus.IDLE:
            self.log_debug(f"{self.name} idle", job_name=self.name, duration_ms=summary.duration_ms)
            return
        if summary.status == RunStatus.FAILED:
            return
        context = {
            'job_name': self.name,
            'indexed': summary.indexed,
            'failed': summary.failed,
            'skipped': summary.skipped,
            'duration_ms': summary.duration_ms,
        }
        if summary.window is not None:
            context['from_block'] = summary.window.from_block
            context['to_block'] = summary.window.to_block
        self.log_info(f"{self.name} completed", **context)


class EventIndexerJob(JobRunner):
    """
    Window-based indexing of one contract.

    read height -> compute window -> fetch every event type -> apply each
    event in isolation -> advance cursor to the window end.
    """

    def __init__(self, name: str, chain: ChainClientInterface, cursor_manager: CursorManager,
                 processor: EventProcessor, contract_address: str, abi: Sequence[Dict[str, Any]],
                 settings: IndexerSettings, failed_events: Optional[FailedEventRepository] = None,
                 start_block: Optional[int] = None):
        super().__init__(name)
        self.chain = chain
        self.cursor_manager = cursor_manager
        self.processor = processor
        self.contract_address = contract_address
        self.abi = abi
        self.settings = settings
        self.failed_events = failed_events
        self.start_block = start_block

    def fetch_events(self, window: BlockWindow) -> List[ChainEvent]:
        events: List[ChainEvent] = []
        for event_name in self.processor.event_names:
            events.extend(self.chain.query_events(
                self.contract_address, self.abi, event_name, window.from_block, window.last_block
            ))
        events.sort(key=lambda event: event.position)
        return events

    def _execute(self, summary: RunSummary) -> None:
        height = self.chain.current_height()
        window = self.cursor_manager.next_window(
            self.name,
            current_height=height,
            confirmations=self.settings.confirmations,
            max_blocks_per_run=self.settings.max_blocks_per_run,
            default_lookback=self.settings.default_lookback,
            start_block=self.start_block,
        )
        if window is None:
            summary.status = RunStatus.IDLE
            return

        summary.window = window
        self.log_info("Scanning blocks", job_name=self.name,
                      from_block=window.from_block, to_block=window.to_block)

        events = self.fetch_events(window)

        for event in events:
            self._apply_isolated(event, summary)

        if summary.failed and not self.settings.advance_on_event_failure:
            summary.status = RunStatus.HELD
            self.log_warning("Cursor held after event failures", job_name=self.name,
                             failed=summary.failed, from_block=window.from_block)
            return

        self.cursor_manager.advance(self.name, window)
        summary.status = RunStatus.PARTIAL if summary.failed else RunStatus.SUCCESS

    def _apply_isolated(self, event: ChainEvent, summary: RunSummary) -> None:
        try:
            outcome = self.processor.apply(event)
        except StateStoreError:
            raise
        except Exception as e:
            summary.failed += 1
            summary.count(ERROR)
            self.log_exception("Failed to index event",
                               job_name=self.name,
                               event_name=event.event_name,
                               tx_hash=event.transaction_hash,
                               block_number=event.block_number,
                               log_index=event.log_index,
                               error=str(e))
            if self.failed_events is not None:
                self.failed_events.record_failure(self.name, event, f"{type(e).__name__}: {e}")
            return

        summary.count(outcome)
        if outcome == SKIPPED:
            summary.skipped += 1
        else:
            summary.indexed += 1
        if self.failed_events is not None:
            self.failed_events.mark_resolved(self.name, event)


class SweepJob(JobRunner):
    """Job driven by open rows in the store rather than a block window"""

    def __init__(self, name: str, task: SweepTask, cursors: CursorRepository):
        super().__init__(name)
        self.task = task
        self.cursors = cursors

    def _execute(self, summary: RunSummary) -> None:
        items = self.task.collect()
        if not items:
            summary.status = RunStatus.IDLE
            self.cursors.touch(self.name)
            return

        self.log_info("Processing batch", job_name=self.name, count=len(items))

        for item in items:
            try:
                outcome = self.task.apply(item)
            except (StateStoreError, PermanentError):
                raise
            except Exception as e:
                summary.failed += 1
                summary.count(ERROR)
                self.log_exception("Failed to process item", job_name=self.name,
                                   error=str(e), **self.task.describe(item))
                continue

            summary.count(outcome)
            if outcome in self.task.FAILED_OUTCOMES:
                summary.failed += 1
            elif outcome == SKIPPED or outcome in self.task.DEFERRED_OUTCOMES:
                summary.skipped += 1
            else:
                summary.indexed += 1

        self.cursors.touch(self.name)
        summary.status = RunStatus.PARTIAL if summary.failed else RunStatus.SUCCESS
