# relay_indexer/database/__init__.py

from .base import Base
from .connection import DatabaseManager
from .repositories import RepositoryManager
from . import tables

__all__ = ['Base', 'DatabaseManager', 'RepositoryManager', 'tables']
