# relay_indexer/clients/rpc_client.py

import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Sequence

from eth_utils import event_abi_to_log_topic
from hexbytes import HexBytes
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed
from web3 import Web3
from web3._utils.events import get_event_data
from web3.exceptions import TransactionNotFound

from .interfaces import ChainClientInterface
from ..core.errors import ChainError, PermanentRPCError, TransientRPCError, classify_rpc_error
from ..core.logging import LoggingMixin
from ..types.chain import ChainEvent
from ..types.config import RpcConfig

# Provider responses that mean "ask for a smaller range", not "this call is broken"
RANGE_TOO_LARGE_MARKERS = (
    'too many results',
    'query returned more than',
    'response size',
    'block range',
    'range too large',
)


class RangeTooLargeError(PermanentRPCError):
    """eth_getLogs refused the block range; the caller should split it"""


def is_range_too_large(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in RANGE_TOO_LARGE_MARKERS)


def checksum_args(args: Sequence[Any]) -> List[Any]:
    return [Web3.to_checksum_address(arg) if isinstance(arg, str) and Web3.is_address(arg) else arg
            for arg in args]


def find_abi_entry(abi: Sequence[Dict[str, Any]], entry_type: str, name: str) -> Dict[str, Any]:
    for entry in abi:
        if entry.get('type') == entry_type and entry.get('name') == name:
            return entry
    raise PermanentRPCError(f"{entry_type} '{name}' not found in ABI")


def normalize_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, HexBytes)):
        return Web3.to_hex(value)
    if isinstance(value, (list, tuple)):
        return tuple(normalize_value(item) for item in value)
    return value


def normalize_record(record: Any) -> Dict[str, Any]:
    return {key: normalize_value(value) for key, value in dict(record).items()}


class ChainClient(ChainClientInterface, LoggingMixin):
    """
    web3-backed chain accessor.

    Every RPC goes through ``_call``, which turns raw provider errors into
    TransientRPCError / PermanentRPCError and retries the transient ones a
    bounded number of times. Anything left over belongs to the next
    scheduled trigger.
    """

    TIMESTAMP_CACHE_SIZE = 2048
    MIN_SPLIT_SPAN = 1

    def __init__(self, config: RpcConfig, w3: Optional[Web3] = None):
        self.config = config
        self.endpoint_url = config.endpoint_url
        self.w3 = w3 or Web3(Web3.HTTPProvider(
            config.endpoint_url, request_kwargs={'timeout': config.timeout}
        ))
        self.max_retries = max(1, config.max_retries)
        self.retry_delay = config.retry_delay_seconds
        self._timestamps: "OrderedDict[int, int]" = OrderedDict()
        self._timestamps_lock = threading.Lock()

    def _log_retry(self, retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        self.log_warning("Transient RPC failure, retrying",
                         error=str(exc),
                         attempt=retry_state.attempt_number,
                         max_attempts=self.max_retries)

    def _call(self, method: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        retrying = Retrying(
            retry=retry_if_exception_type(TransientRPCError),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_fixed(self.retry_delay),
            before_sleep=self._log_retry,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                try:
                    return fn(*args, **kwargs)
                except ChainError:
                    raise
                except Exception as e:
                    raise classify_rpc_error(e, method=method) from e

    def current_height(self) -> int:
        return int(self._call('eth_blockNumber', lambda: self.w3.eth.block_number))

    def block_timestamp(self, block_number: int) -> int:
        with self._timestamps_lock:
            cached = self._timestamps.get(block_number)
            if cached is not None:
                self._timestamps.move_to_end(block_number)
                return cached

        block = self._call('eth_getBlockByNumber', self.w3.eth.get_block, block_number)
        timestamp = int(block['timestamp'])

        with self._timestamps_lock:
            self._timestamps[block_number] = timestamp
            while len(self._timestamps) > self.TIMESTAMP_CACHE_SIZE:
                self._timestamps.popitem(last=False)
        return timestamp

    def query_events(self, contract_address: str, abi: Sequence[Dict[str, Any]],
                     event_name: str, from_block: int, to_block: int) -> List[ChainEvent]:
        if to_block < from_block:
            return []

        event_abi = find_abi_entry(abi, 'event', event_name)
        address = Web3.to_checksum_address(contract_address)
        topic = Web3.to_hex(event_abi_to_log_topic(event_abi))

        raw_logs = self._get_logs_with_split(address, topic, from_block, to_block)

        arg_names = tuple(item['name'] for item in event_abi.get('inputs', []))
        events = []
        for log in raw_logs:
            if log.get('removed'):
                continue
            try:
                decoded = get_event_data(self.w3.codec, event_abi, log)
            except Exception as e:
                raise PermanentRPCError(
                    f"Failed to decode {event_name} log in tx {normalize_value(log.get('transactionHash'))}: {e}",
                    method='eth_getLogs',
                ) from e
            events.append(ChainEvent(
                contract_address=decoded['address'],
                event_name=decoded['event'],
                block_number=int(decoded['blockNumber']),
                transaction_hash=normalize_value(decoded['transactionHash']),
                log_index=int(decoded['logIndex']),
                args=tuple(normalize_value(decoded['args'][name]) for name in arg_names),
                arg_names=arg_names,
            ))

        events.sort(key=lambda event: event.position)

        self.log_debug("Fetched events",
                       event_name=event_name,
                       from_block=from_block,
                       to_block=to_block,
                       indexed=len(events))
        return events

    def _get_logs_with_split(self, address: str, topic: str,
                             from_block: int, to_block: int) -> List[Any]:
        filter_params = {
            'address': address,
            'topics': [topic],
            'fromBlock': from_block,
            'toBlock': to_block,
        }

        def fetch():
            try:
                return list(self.w3.eth.get_logs(filter_params))
            except Exception as e:
                # checked before classification: -32005 also covers oversized ranges
                if is_range_too_large(e):
                    raise RangeTooLargeError(str(e), method='eth_getLogs') from e
                raise

        try:
            return self._call('eth_getLogs', fetch)
        except RangeTooLargeError as e:
            span = to_block - from_block
            if span < self.MIN_SPLIT_SPAN:
                raise
            mid = from_block + span // 2
            self.log_info("Splitting log query range",
                          from_block=from_block, to_block=to_block, error=str(e))
            left = self._get_logs_with_split(address, topic, from_block, mid)
            right = self._get_logs_with_split(address, topic, mid + 1, to_block)
            return left + right

    def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            tx = self._call('eth_getTransactionByHash', self.w3.eth.get_transaction, tx_hash)
        except PermanentRPCError as e:
            if isinstance(e.__cause__, TransactionNotFound):
                return None
            raise
        return normalize_record(tx) if tx else None

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            receipt = self._call('eth_getTransactionReceipt', self.w3.eth.get_transaction_receipt, tx_hash)
        except PermanentRPCError as e:
            if isinstance(e.__cause__, TransactionNotFound):
                return None
            raise
        return normalize_record(receipt) if receipt else None

    def call_view(self, contract_address: str, abi: Sequence[Dict[str, Any]],
                  function_name: str, args: Sequence[Any] = ()) -> Any:
        find_abi_entry(abi, 'function', function_name)
        try:
            contract = self.w3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=list(abi))
            function = contract.get_function_by_name(function_name)(*checksum_args(args))
        except Exception as e:
            raise PermanentRPCError(f"Cannot build call to {function_name}: {e}", method='eth_call') from e
        return normalize_value(self._call('eth_call', function.call))
