# relay_indexer/core/__init__.py

from .errors import (
    ChainError, ConfigurationError, EventProcessingError, IndexerError,
    PermanentError, PermanentRPCError, StateStoreError, TransientRPCError,
)
from .logging import IndexerLogger, LoggingMixin, log_with_context

__all__ = [
    'IndexerError',
    'PermanentError',
    'ConfigurationError',
    'ChainError',
    'TransientRPCError',
    'PermanentRPCError',
    'StateStoreError',
    'EventProcessingError',
    'IndexerLogger',
    'LoggingMixin',
    'log_with_context',
]
