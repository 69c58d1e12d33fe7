# tests/test_config.py

import pytest

from relay_indexer.core.config import build_database_url, get_bool, get_int, load_config
from relay_indexer.core.constants import (
    BLOCK_CONFIRMATIONS, DEFAULT_CADENCES, DEFAULT_CHAIN_ID, DEFAULT_CONTRACT_ADDRESSES,
    DEFAULT_LOOKBACK, MAX_BLOCKS_PER_RUN, MAX_RETRIES, RETRY_DELAY_MS,
)
from relay_indexer.core.errors import ConfigurationError


def test_defaults():
    config = load_config(env={})

    assert config.rpc.chain_id == DEFAULT_CHAIN_ID
    assert config.rpc.max_retries == MAX_RETRIES
    assert config.rpc.retry_delay_seconds == RETRY_DELAY_MS / 1000
    assert config.settings.confirmations == BLOCK_CONFIRMATIONS
    assert config.settings.max_blocks_per_run == MAX_BLOCKS_PER_RUN
    assert config.settings.default_lookback == DEFAULT_LOOKBACK
    assert config.settings.advance_on_event_failure is True
    assert config.contracts.identity_registry == DEFAULT_CONTRACT_ADDRESSES['identity_registry']
    assert config.contracts.relay_wallet is None
    assert config.contracts.escrow_deploy_block is None
    assert config.database.url == 'sqlite:///relay_indexer.db'
    assert set(config.jobs) == set(DEFAULT_CADENCES)
    assert all(job.enabled for job in config.jobs.values())


def test_environment_overrides():
    config = load_config(env={
        'INDEXER_RPC_URL': 'http://node:8545',
        'INDEXER_CHAIN_ID': '25',
        'INDEXER_BLOCK_CONFIRMATIONS': '12',
        'INDEXER_MAX_BLOCKS_PER_RUN': '500',
        'INDEXER_ESCROW_CONTRACT_ADDRESS': '0x' + '33' * 20,
        'INDEXER_ESCROW_CONTRACT_DEPLOY_BLOCK': '123456',
        'INDEXER_RELAY_WALLET_ADDRESS': '0x' + '44' * 20,
        'INDEXER_ADVANCE_ON_EVENT_FAILURE': 'no',
        'INDEXER_CRON_ESCROW_INDEXER': '*/1 * * * *',
        'INDEXER_TRADE_INDEXER_ENABLED': 'false',
        'INDEXER_LOG_LEVEL': 'DEBUG',
    })

    assert config.rpc.endpoint_url == 'http://node:8545'
    assert config.rpc.chain_id == 25
    assert config.settings.confirmations == 12
    assert config.settings.max_blocks_per_run == 500
    assert config.settings.advance_on_event_failure is False
    assert config.contracts.escrow == '0x' + '33' * 20
    assert config.contracts.escrow_deploy_block == 123456
    assert config.contracts.relay_wallet == '0x' + '44' * 20
    assert config.jobs['escrow_indexer'].cadence == '*/1 * * * *'
    assert config.jobs['trade_indexer'].enabled is False
    assert config.logging.log_level == 'DEBUG'


@pytest.mark.parametrize('key, value', [
    ('INDEXER_CHAIN_ID', 'cronos'),
    ('INDEXER_MAX_BLOCKS_PER_RUN', '0'),
    ('INDEXER_BLOCK_CONFIRMATIONS', '-1'),
    ('INDEXER_ADVANCE_ON_EVENT_FAILURE', 'maybe'),
])
def test_invalid_values_raise(key, value):
    with pytest.raises(ConfigurationError):
        load_config(env={key: value})


def test_blank_values_fall_back_to_defaults():
    env = {'INDEXER_CHAIN_ID': '  ', 'INDEXER_LOG_CONSOLE': ''}
    assert get_int(env, 'INDEXER_CHAIN_ID', 7) == 7
    assert get_bool(env, 'INDEXER_LOG_CONSOLE', True) is True


def test_database_url_from_parts():
    url = build_database_url({
        'INDEXER_DB_USER': 'relay',
        'INDEXER_DB_PASSWORD': 'secret',
        'INDEXER_DB_NAME': 'indexer',
        'INDEXER_DB_HOST': 'db',
    })
    assert url == 'postgresql+psycopg://relay:secret@db:5432/indexer'


def test_database_url_prefers_explicit_url():
    url = build_database_url({'INDEXER_DB_URL': 'sqlite://', 'INDEXER_DB_USER': 'relay'})
    assert url == 'sqlite://'
