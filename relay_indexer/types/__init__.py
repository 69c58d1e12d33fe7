# relay_indexer/types/__init__.py

from .chain import BlockWindow, ChainEvent, RunStatus, RunSummary
from .config import (
    ContractsConfig, DatabaseConfig, IndexerConfig, IndexerSettings,
    JobConfig, LoggingConfig, RpcConfig,
)

__all__ = [
    'ChainEvent',
    'BlockWindow',
    'RunStatus',
    'RunSummary',
    'DatabaseConfig',
    'RpcConfig',
    'ContractsConfig',
    'IndexerSettings',
    'LoggingConfig',
    'JobConfig',
    'IndexerConfig',
]
