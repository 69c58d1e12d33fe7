# relay_indexer/contracts/abi_loader.py

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.errors import ConfigurationError
from ..core.logging import LoggingMixin

ABI_DIR = Path(__file__).parent / "abis"

IDENTITY_REGISTRY = "identity_registry"
REPUTATION_REGISTRY = "reputation_registry"
ESCROW_SESSION = "escrow_session"
ERC20 = "erc20"
PERP_VENUE = "perp_venue"


class ABILoader(LoggingMixin):
    """Loads the per-contract ABI fragments shipped with the package, with caching"""

    def __init__(self, abi_base_path: Optional[Path] = None):
        self.abi_base_path = abi_base_path or ABI_DIR
        self._abi_cache: Dict[str, List[Dict[str, Any]]] = {}

    def load_abi(self, name: str) -> List[Dict[str, Any]]:
        if name in self._abi_cache:
            return self._abi_cache[name]

        abi_path = self.abi_base_path / f"{name}.json"
        if not abi_path.exists():
            raise ConfigurationError(f"ABI file not found: {abi_path}")

        try:
            with open(abi_path, 'r') as f:
                abi_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in ABI file {abi_path}: {e}") from e

        if isinstance(abi_data, dict) and 'abi' in abi_data:
            abi_data = abi_data['abi']

        if not isinstance(abi_data, list):
            raise ConfigurationError(
                f"ABI in {abi_path} must be a list, got {type(abi_data).__name__}"
            )

        self._abi_cache[name] = abi_data

        self.log_debug("ABI loaded",
                       abi_path=str(abi_path),
                       abi_events=len(self.event_names(name)))
        return abi_data

    def event_names(self, name: str) -> List[str]:
        return [item['name'] for item in self.load_abi(name) if item.get('type') == 'event']
