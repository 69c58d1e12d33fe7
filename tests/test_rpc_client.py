# tests/test_rpc_client.py

import pytest
import requests
from web3 import Web3
from web3.exceptions import TransactionNotFound

from relay_indexer.clients.rpc_client import ChainClient, RangeTooLargeError, checksum_args
from relay_indexer.core.errors import (
    ChainError, PermanentRPCError, TransientRPCError, classify_rpc_error,
)
from relay_indexer.types.config import RpcConfig

CONTRACT = '0x00000000000000000000000000000000000000c1'

TRANSFER_ABI = [{
    'type': 'event',
    'name': 'Transfer',
    'anonymous': False,
    'inputs': [
        {'name': 'from', 'type': 'address', 'indexed': True},
        {'name': 'to', 'type': 'address', 'indexed': True},
        {'name': 'value', 'type': 'uint256', 'indexed': False},
    ],
}]


class StubEth:
    def __init__(self):
        self.height_results = []
        self.blocks_fetched = []
        self.log_requests = []
        self.max_span = None
        self.log_error = None

    @property
    def block_number(self):
        result = self.height_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def get_block(self, block_number):
        self.blocks_fetched.append(block_number)
        return {'number': block_number, 'timestamp': 1_000 + block_number}

    def get_logs(self, params):
        self.log_requests.append((params['fromBlock'], params['toBlock']))
        if self.log_error is not None:
            raise self.log_error
        if self.max_span is not None and params['toBlock'] - params['fromBlock'] > self.max_span:
            raise ValueError({'code': -32005, 'message': 'query returned more than 10000 results'})
        return []

    def get_transaction(self, tx_hash):
        raise TransactionNotFound(f"Transaction with hash: '{tx_hash}' not found.")

    def get_transaction_receipt(self, tx_hash):
        raise TransactionNotFound(f"Transaction with hash: '{tx_hash}' not found.")


class StubWeb3:
    def __init__(self):
        self.eth = StubEth()
        self.codec = None


@pytest.fixture
def w3():
    return StubWeb3()


@pytest.fixture
def client(w3):
    config = RpcConfig(endpoint_url='http://localhost:8545', chain_id=338, max_retries=3, retry_delay_ms=0)
    return ChainClient(config, w3=w3)


def test_transient_errors_are_retried(client, w3):
    w3.eth.height_results = [requests.exceptions.ConnectionError('reset'), 1234]
    assert client.current_height() == 1234


def test_retries_are_bounded(client, w3):
    w3.eth.height_results = [requests.exceptions.Timeout('slow')] * 5
    with pytest.raises(TransientRPCError):
        client.current_height()
    assert len(w3.eth.height_results) == 2


def test_permanent_errors_are_not_retried(client, w3):
    w3.eth.height_results = [ValueError({'code': -32601, 'message': 'method not found'}), 1]
    with pytest.raises(PermanentRPCError):
        client.current_height()
    assert w3.eth.height_results == [1]


def test_block_timestamps_are_cached(client, w3):
    assert client.block_timestamp(10) == 1_010
    assert client.block_timestamp(10) == 1_010
    assert w3.eth.blocks_fetched == [10]


def test_missing_transaction_returns_none(client):
    assert client.get_transaction('0x' + '00' * 32) is None
    assert client.get_transaction_receipt('0x' + '00' * 32) is None


def test_oversized_range_is_split(client, w3):
    w3.eth.max_span = 250

    events = client.query_events(CONTRACT, TRANSFER_ABI, 'Transfer', 0, 999)

    assert events == []
    served = sorted(request for request in w3.eth.log_requests if request[1] - request[0] <= 250)
    assert served[0][0] == 0
    assert served[-1][1] == 999
    for previous, current in zip(served, served[1:]):
        assert current[0] == previous[1] + 1


def test_range_errors_are_not_retried_as_transient(client, w3):
    w3.eth.log_error = ValueError({'code': -32005, 'message': 'query returned more than 10000 results'})
    with pytest.raises(RangeTooLargeError):
        client.query_events(CONTRACT, TRANSFER_ABI, 'Transfer', 5, 5)
    assert w3.eth.log_requests == [(5, 5)]


def test_unknown_event_is_permanent(client):
    with pytest.raises(PermanentRPCError):
        client.query_events(CONTRACT, TRANSFER_ABI, 'Approval', 0, 10)


def test_empty_range_makes_no_request(client, w3):
    assert client.query_events(CONTRACT, TRANSFER_ABI, 'Transfer', 10, 9) == []
    assert w3.eth.log_requests == []


def test_checksum_args_only_touches_addresses():
    address = '0x' + 'ab' * 20
    args = checksum_args([address, 'overall', 7])
    assert args[0] == Web3.to_checksum_address(address)
    assert args[1:] == ['overall', 7]


class TestClassification:
    @pytest.mark.parametrize('exc', [
        requests.exceptions.ConnectionError('refused'),
        requests.exceptions.Timeout('timeout'),
        ConnectionResetError('reset by peer'),
        TimeoutError(),
        ValueError({'code': -32005, 'message': 'limit reached'}),
        ValueError('429 Too Many Requests'),
        ValueError({'code': -32000, 'message': 'header not found'}),
    ])
    def test_transient(self, exc):
        assert isinstance(classify_rpc_error(exc, method='eth_getLogs'), TransientRPCError)

    @pytest.mark.parametrize('exc', [
        ValueError({'code': -32602, 'message': 'invalid argument'}),
        ValueError({'code': -32000, 'message': 'execution reverted'}),
        KeyError('timestamp'),
    ])
    def test_permanent(self, exc):
        assert isinstance(classify_rpc_error(exc), PermanentRPCError)

    def test_http_status(self):
        response = requests.models.Response()
        response.status_code = 503
        assert isinstance(classify_rpc_error(requests.exceptions.HTTPError(response=response)),
                          TransientRPCError)
        response.status_code = 401
        assert isinstance(classify_rpc_error(requests.exceptions.HTTPError(response=response)),
                          PermanentRPCError)

    def test_chain_errors_pass_through(self):
        error = TransientRPCError('x', method='eth_call')
        assert classify_rpc_error(error) is error
        assert issubclass(PermanentRPCError, ChainError)
