# relay_indexer/clients/__init__.py

from .interfaces import ChainClientInterface
from .rpc_client import ChainClient

__all__ = ['ChainClientInterface', 'ChainClient']
