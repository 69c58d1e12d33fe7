# relay_indexer/cli/context.py

"""
CLI context.

Builds the indexer lazily so that commands which only need the database
(``db``) never open an RPC connection, and commands which need neither
(``--help``) never touch the environment at all.
"""

import logging
from typing import Mapping, Optional

from .. import Indexer, create_indexer
from ..core.config import load_config
from ..core.logging import IndexerLogger, log_with_context
from ..database.connection import DatabaseManager
from ..types.config import IndexerConfig


class CLIContext:
    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self.env = env
        self.logger = IndexerLogger.get_logger('cli.context')
        self._config: Optional[IndexerConfig] = None
        self._db_manager: Optional[DatabaseManager] = None
        self._indexer: Optional[Indexer] = None

    @property
    def config(self) -> IndexerConfig:
        if self._config is None:
            self._config = load_config(self.env)
        return self._config

    @property
    def db_manager(self) -> DatabaseManager:
        if self._db_manager is None:
            self._db_manager = DatabaseManager(self.config.database)
            self._db_manager.initialize()
        return self._db_manager

    @property
    def indexer(self) -> Indexer:
        if self._indexer is None:
            log_with_context(self.logger, logging.DEBUG, "Creating indexer for CLI")
            self._indexer = create_indexer(env=self.env, db_manager=self.db_manager)
        return self._indexer

    def shutdown(self) -> None:
        if self._indexer is not None:
            self._indexer.scheduler.stop()
        if self._db_manager is not None and self._db_manager.is_initialized:
            self._db_manager.shutdown()
