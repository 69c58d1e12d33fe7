# tests/test_indexer.py

import pytest

from conftest import CONTRACT, make_event
from relay_indexer import create_indexer
from relay_indexer.core.errors import ConfigurationError
from relay_indexer.pipeline.runner import EventIndexerJob, SweepJob
from relay_indexer.types.chain import RunStatus

BASE_ENV = {
    'INDEXER_DB_URL': 'sqlite://',
    'INDEXER_IDENTITY_REGISTRY_ADDRESS': CONTRACT,
    'INDEXER_LOG_CONSOLE': 'false',
}


def build(chain, db_manager, **overrides):
    return create_indexer(env=dict(BASE_ENV, **overrides), chain=chain, db_manager=db_manager)


def test_unconfigured_contracts_are_not_scheduled(chain, db_manager):
    indexer = build(chain, db_manager)

    assert set(indexer.jobs) == {
        'agent_indexer', 'feedback_indexer', 'payment_indexer',
        'transaction_indexer', 'reputation_calculator', 'rwa_state_indexer',
    }
    assert isinstance(indexer.jobs['agent_indexer'], EventIndexerJob)
    assert isinstance(indexer.jobs['transaction_indexer'], SweepJob)
    assert set(indexer.scheduler.jobs) == set(indexer.jobs)


def test_all_jobs_with_full_configuration(chain, db_manager):
    indexer = build(
        chain, db_manager,
        INDEXER_ESCROW_CONTRACT_ADDRESS='0x' + '33' * 20,
        INDEXER_ESCROW_CONTRACT_DEPLOY_BLOCK='40',
        INDEXER_PERP_VENUE_ADDRESS='0x' + '55' * 20,
        INDEXER_RELAY_WALLET_ADDRESS='0x' + '44' * 20,
    )

    assert len(indexer.jobs) == 9
    assert indexer.jobs['escrow_indexer'].start_block == 40
    assert indexer.scheduler.cadence_for('usdc_transfer_indexer').interval == 30
    assert indexer.scheduler.cadence_for('reputation_calculator').expression == '0 1 * * *'


def test_disabled_jobs_are_dropped(chain, db_manager):
    indexer = build(chain, db_manager, INDEXER_FEEDBACK_INDEXER_ENABLED='false')
    assert 'feedback_indexer' not in indexer.jobs


def test_invalid_cadence_is_rejected(chain, db_manager):
    with pytest.raises(ConfigurationError):
        build(chain, db_manager, INDEXER_CRON_AGENT_INDEXER='whenever')


def test_get_job_resolves_aliases(chain, db_manager):
    indexer = build(chain, db_manager)

    assert indexer.get_job('agents').name == 'agent_indexer'
    assert indexer.get_job('Reputation').name == 'reputation_calculator'
    assert indexer.get_job('rwa').name == 'rwa_state_indexer'
    with pytest.raises(ConfigurationError) as excinfo:
        indexer.get_job('escrow')
    assert 'agent_indexer' in str(excinfo.value)


def test_wired_job_indexes_events(chain, db_manager):
    chain.add(make_event('AgentRegistered', 10, 0, agentId=5, owner='0x' + '66' * 20, agentURI='u'))
    indexer = build(chain, db_manager)

    summary = indexer.get_job('agent').run()

    assert summary.status == RunStatus.SUCCESS
    assert summary.indexed == 1
    with indexer.repos.get_session() as session:
        assert indexer.repos.agents.get_by_key(session, agent_id='5') is not None
