# relay_indexer/pipeline/__init__.py

from .cursor import CursorManager, compute_window
from .runner import EventIndexerJob, JobRunner, SweepJob
from .scheduler import Cadence, Scheduler

__all__ = [
    'CursorManager',
    'compute_window',
    'JobRunner',
    'EventIndexerJob',
    'SweepJob',
    'Cadence',
    'Scheduler',
]
