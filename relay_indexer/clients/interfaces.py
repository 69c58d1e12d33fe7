# relay_indexer/clients/interfaces.py
"""
Interface for chain access.

Jobs depend on this contract rather than on web3 directly so tests can
hand them an in-memory double.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..types.chain import ChainEvent


class ChainClientInterface(ABC):
    """Read-only accessor over an EVM JSON-RPC endpoint."""

    @abstractmethod
    def current_height(self) -> int:
        """
        Get the latest block number.

        Returns:
            Latest block number
        """
        pass

    @abstractmethod
    def block_timestamp(self, block_number: int) -> int:
        """
        Get the timestamp of a block.

        Args:
            block_number: Block number

        Returns:
            Unix timestamp in seconds
        """
        pass

    @abstractmethod
    def query_events(self, contract_address: str, abi: Sequence[Dict[str, Any]],
                     event_name: str, from_block: int, to_block: int) -> List[ChainEvent]:
        """
        Fetch and decode one event type emitted by a contract.

        Args:
            contract_address: Emitting contract
            abi: ABI fragment containing the event definition
            event_name: Event to filter on (topic0)
            from_block: First block, inclusive
            to_block: Last block, inclusive

        Returns:
            Decoded events ordered by (block_number, log_index)
        """
        pass

    @abstractmethod
    def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def call_view(self, contract_address: str, abi: Sequence[Dict[str, Any]],
                  function_name: str, args: Sequence[Any] = ()) -> Any:
        """
        Call a view function at the latest block.

        Args:
            contract_address: Target contract
            abi: ABI fragment containing the function definition
            function_name: Function to call
            args: Positional arguments

        Returns:
            Decoded return value
        """
        pass
