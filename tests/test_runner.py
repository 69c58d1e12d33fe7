# tests/test_runner.py

import threading

import pytest

from conftest import CONTRACT, make_event
from relay_indexer.core.errors import PermanentRPCError, StateStoreError, TransientRPCError
from relay_indexer.pipeline.runner import EventIndexerJob, JobRunner, SweepJob
from relay_indexer.processors import AgentRegistryProcessor, EscrowProcessor, EventProcessor, SweepTask
from relay_indexer.types.chain import RunStatus
from relay_indexer.types.config import IndexerSettings

OWNER = '0xAbCdEf0000000000000000000000000000000001'


def build_job(chain, repos, cursor_manager, settings, processor=None, name='agent_indexer',
              start_block=None):
    return EventIndexerJob(
        name=name,
        chain=chain,
        cursor_manager=cursor_manager,
        processor=processor or AgentRegistryProcessor(chain, repos),
        contract_address=CONTRACT,
        abi=[],
        settings=settings,
        failed_events=repos.failed_events,
        start_block=start_block,
    )


def get_agent(repos, agent_id):
    with repos.get_session() as session:
        return repos.agents.get_by_key(session, agent_id=agent_id)


def test_register_then_deactivate_in_one_window(chain, repos, cursor_manager, settings):
    chain.add(
        make_event('AgentRegistered', 10, 0, agentId=1, owner=OWNER, agentURI='ipfs://agent-1'),
        make_event('AgentDeactivated', 20, 3, agentId=1),
    )
    job = build_job(chain, repos, cursor_manager, settings)

    summary = job.run()

    assert summary.status == RunStatus.SUCCESS
    assert summary.indexed == 2
    assert summary.window.from_block == 0
    assert summary.window.to_block == 94

    agent = get_agent(repos, '1')
    assert agent.is_active is False
    assert agent.owner_address == OWNER.lower()
    assert agent.agent_uri == 'ipfs://agent-1'
    assert agent.registration_block == 10
    assert repos.cursors.get_last_block('agent_indexer') == 94


def test_events_of_different_types_apply_in_chain_order(chain, repos, cursor_manager, settings):
    """Each event type is fetched separately; the merged stream is still (block, log_index) ordered"""
    chain.add(
        make_event('AgentDeactivated', 10, 3, agentId=7),
        make_event('AgentReactivated', 10, 2, agentId=7),
        make_event('AgentRegistered', 10, 1, agentId=7, owner=OWNER, agentURI='u'),
    )
    job = build_job(chain, repos, cursor_manager, settings)

    job.run()

    assert get_agent(repos, '7').is_active is False


def test_unconfirmed_blocks_are_not_indexed(chain, repos, cursor_manager, settings):
    chain.add(
        make_event('AgentRegistered', 90, 0, agentId=1, owner=OWNER, agentURI='a'),
        make_event('AgentRegistered', 95, 0, agentId=2, owner=OWNER, agentURI='b'),
    )
    job = build_job(chain, repos, cursor_manager, settings)

    job.run()

    assert get_agent(repos, '1') is not None
    assert get_agent(repos, '2') is None
    assert repos.cursors.get_last_block('agent_indexer') == 94

    chain.height = 200
    summary = job.run()

    assert summary.window.from_block == 94
    assert get_agent(repos, '2') is not None
    assert repos.cursors.get_last_block('agent_indexer') == 194


def test_window_boundary_block_is_indexed_once(chain, repos, cursor_manager, settings):
    """The window end is exclusive, so the boundary block belongs to the next run only"""
    chain.add(make_event('AgentRegistered', 94, 0, agentId=3, owner=OWNER, agentURI='x'))
    job = build_job(chain, repos, cursor_manager, settings)

    job.run()
    assert get_agent(repos, '3') is None

    chain.height = 101
    summary = job.run()
    assert summary.indexed == 1
    assert get_agent(repos, '3') is not None


def test_idle_when_nothing_new(chain, repos, cursor_manager, settings):
    job = build_job(chain, repos, cursor_manager, settings)
    job.run()
    queries = len(chain.queries)

    summary = job.run()

    assert summary.status == RunStatus.IDLE
    assert summary.window is None
    assert len(chain.queries) == queries


def test_replayed_window_is_idempotent(chain, repos, cursor_manager, settings):
    """A second job replaying the same blocks changes nothing"""
    chain.add(
        make_event('SessionCreated', 5, 0, sessionId=1, owner=OWNER, escrowAgent=OWNER,
                   maxSpend=1000, expiry=2_000_000_000),
        make_event('FundsDeposited', 6, 0, sessionId=1, depositor=OWNER, amount=500),
        make_event('PaymentReleased', 7, 1, sessionId=1, agent=OWNER, amount=200,
                   executionId='0x' + '11' * 32),
    )
    first = build_job(chain, repos, cursor_manager, settings,
                      processor=EscrowProcessor(chain, repos), name='escrow_indexer')
    replay = build_job(chain, repos, cursor_manager, settings,
                       processor=EscrowProcessor(chain, repos), name='escrow_replay')

    first.run()
    summary = replay.run()

    assert summary.status == RunStatus.SUCCESS
    assert summary.skipped == 2
    with repos.get_session() as session:
        record = repos.escrow_sessions.get_by_key(session, session_id='1')
        earnings = repos.agent_earnings.get_by_key(session, agent_address=OWNER.lower())
        assert record.deposited == 500
        assert record.released == 200
        assert earnings.total_earned == 200
        assert earnings.payment_count == 1
        assert repos.escrow_events.count(session) == 2


def test_failed_event_does_not_block_the_rest(chain, repos, cursor_manager, settings):
    chain.add(
        make_event('AgentRegistered', 10, 0, agentId=1, owner=OWNER, agentURI='a'),
        make_event('AgentRegistered', 11, 0, agentId=2, agentURI='missing owner'),
        make_event('AgentRegistered', 12, 0, agentId=3, owner=OWNER, agentURI='c'),
    )
    job = build_job(chain, repos, cursor_manager, settings)

    summary = job.run()

    assert summary.status == RunStatus.PARTIAL
    assert summary.indexed == 2
    assert summary.failed == 1
    assert summary.ok
    assert get_agent(repos, '1') is not None
    assert get_agent(repos, '2') is None
    assert get_agent(repos, '3') is not None
    assert repos.cursors.get_last_block('agent_indexer') == 94

    failures = repos.failed_events.unresolved('agent_indexer')
    assert len(failures) == 1
    assert failures[0].block_number == 11
    assert failures[0].event_name == 'AgentRegistered'
    assert repos.failed_events.lowest_unresolved_block('agent_indexer') == 11


def test_hold_policy_keeps_cursor_on_failure(chain, repos, cursor_manager):
    settings = IndexerSettings(confirmations=6, max_blocks_per_run=1000, default_lookback=10000,
                               advance_on_event_failure=False)
    chain.add(
        make_event('AgentRegistered', 10, 0, agentId=1, owner=OWNER, agentURI='a'),
        make_event('AgentRegistered', 11, 0, agentId=2, agentURI='missing owner'),
    )
    job = build_job(chain, repos, cursor_manager, settings)

    summary = job.run()

    assert summary.status == RunStatus.HELD
    assert repos.cursors.get_last_block('agent_indexer') is None
    assert get_agent(repos, '1') is not None

    # the retry re-reads the window; the applied event is skipped, not duplicated
    summary = job.run()
    assert summary.status == RunStatus.HELD
    assert summary.skipped == 1
    assert summary.failed == 1
    failures = repos.failed_events.unresolved('agent_indexer')
    assert failures[0].attempts == 2


@pytest.mark.parametrize('error', [
    TransientRPCError('request timed out', method='eth_getLogs'),
    PermanentRPCError('invalid params', method='eth_getLogs'),
])
def test_chain_error_fails_run_without_advancing(chain, repos, cursor_manager, settings, error):
    chain.failures['query_events'] = error
    job = build_job(chain, repos, cursor_manager, settings)

    summary = job.run()

    assert summary.status == RunStatus.FAILED
    assert not summary.ok
    assert summary.error
    assert repos.cursors.get_last_block('agent_indexer') is None
    assert not job.is_running


def test_height_failure_fails_run(chain, repos, cursor_manager, settings):
    chain.failures['current_height'] = TransientRPCError('connection refused')
    summary = build_job(chain, repos, cursor_manager, settings).run()
    assert summary.status == RunStatus.FAILED
    assert repos.cursors.get_last_block('agent_indexer') is None


def test_state_store_error_aborts_run(chain, repos, cursor_manager, settings):
    """An unreachable store stops the batch and leaves the cursor untouched"""
    chain.add(
        make_event('AgentRegistered', 10, 0, agentId=1, owner=OWNER, agentURI='a'),
        make_event('AgentRegistered', 11, 0, agentId=2, owner=OWNER, agentURI='b'),
        make_event('AgentRegistered', 12, 0, agentId=3, owner=OWNER, agentURI='c'),
    )
    processor = AgentRegistryProcessor(chain, repos)
    original_apply = processor.apply
    applied = []

    def flaky_apply(event):
        if event.block_number == 11:
            raise StateStoreError('connection lost')
        applied.append(event.block_number)
        return original_apply(event)

    processor.apply = flaky_apply
    job = build_job(chain, repos, cursor_manager, settings, processor=processor)

    summary = job.run()

    assert summary.status == RunStatus.FAILED
    assert 'state store' in summary.error
    assert applied == [10]
    assert repos.cursors.get_last_block('agent_indexer') is None


def test_overlapping_trigger_is_dropped(chain, repos, cursor_manager, settings):
    started = threading.Event()
    release = threading.Event()

    def block_query():
        started.set()
        release.wait(5)

    chain.on_query = block_query
    job = build_job(chain, repos, cursor_manager, settings)
    results = []
    worker = threading.Thread(target=lambda: results.append(job.run()))
    worker.start()

    try:
        assert started.wait(5)
        assert job.is_running
        assert job.run() is None
    finally:
        release.set()
        worker.join(5)

    assert results[0].status == RunStatus.SUCCESS
    assert not job.is_running
    assert job.last_summary is results[0]


class _ListTask(SweepTask):
    name = 'list_task'

    def __init__(self, chain, repos, items, fail_on=()):
        super().__init__(chain, repos)
        self.items = items
        self.fail_on = fail_on

    def collect(self):
        return list(self.items)

    def apply(self, item):
        if item in self.fail_on:
            raise ValueError(f"bad item {item}")
        return 'done'


def test_sweep_job_isolates_item_failures(chain, repos):
    job = SweepJob('list_task', _ListTask(chain, repos, [1, 2, 3], fail_on=(2,)), repos.cursors)

    summary = job.run()

    assert summary.status == RunStatus.PARTIAL
    assert summary.indexed == 2
    assert summary.failed == 1
    assert summary.outcomes == {'done': 2, 'error': 1}
    cursor = repos.cursors.list_all()[0]
    assert cursor.job_name == 'list_task'
    assert cursor.last_block is None
    assert cursor.last_run_at is not None


def test_sweep_job_idle_without_items(chain, repos):
    summary = SweepJob('list_task', _ListTask(chain, repos, []), repos.cursors).run()
    assert summary.status == RunStatus.IDLE


class _VerdictTask(_ListTask):
    FAILED_OUTCOMES = frozenset({'rejected'})
    DEFERRED_OUTCOMES = frozenset({'waiting'})

    def apply(self, item):
        return item


def test_sweep_job_counts_declared_outcomes(chain, repos):
    task = _VerdictTask(chain, repos, ['done', 'rejected', 'waiting', 'skipped'])

    summary = SweepJob('list_task', task, repos.cursors).run()

    assert summary.status == RunStatus.PARTIAL
    assert summary.indexed == 1
    assert summary.failed == 1
    assert summary.skipped == 2
    assert summary.outcomes == {'done': 1, 'rejected': 1, 'waiting': 1, 'skipped': 1}


def test_sweep_job_with_only_deferred_items_succeeds(chain, repos):
    summary = SweepJob('list_task', _VerdictTask(chain, repos, ['waiting']), repos.cursors).run()

    assert summary.status == RunStatus.SUCCESS
    assert summary.indexed == 0
    assert summary.skipped == 1


@pytest.mark.parametrize('base', [JobRunner, EventProcessor, SweepTask])
def test_bases_cannot_be_instantiated(base, chain, repos):
    with pytest.raises(TypeError):
        if base is JobRunner:
            base('abstract')
        else:
            base(chain, repos)


def test_subclass_missing_apply_cannot_be_instantiated(chain, repos):
    class CollectOnly(SweepTask):
        def collect(self):
            return []

    with pytest.raises(TypeError):
        CollectOnly(chain, repos)
