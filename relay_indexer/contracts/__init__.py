# relay_indexer/contracts/__init__.py

from .abi_loader import (
    ABILoader, ERC20, ESCROW_SESSION, IDENTITY_REGISTRY, PERP_VENUE, REPUTATION_REGISTRY,
)

__all__ = [
    'ABILoader',
    'IDENTITY_REGISTRY',
    'REPUTATION_REGISTRY',
    'ESCROW_SESSION',
    'ERC20',
    'PERP_VENUE',
]
