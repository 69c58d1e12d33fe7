# tests/test_rwa.py

from datetime import datetime, timedelta, timezone

import pytest

from conftest import tx_hash
from relay_indexer.database.base import as_utc
from relay_indexer.database.tables import (
    DBAgentReputation, DBPayment, DBRwaAgentAssignment, DBRwaAlert, DBRwaStateMachine,
    DBRwaStateTransition, DBWorkflowOutcome,
)
from relay_indexer.database.types import PaymentStatus, RwaAssignmentStatus
from relay_indexer.pipeline.runner import SweepJob
from relay_indexer.processors import RwaStateTask
from relay_indexer.processors.rwa import rwa_score
from relay_indexer.types.chain import RunStatus

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
ALICE = '0xa11ce00000000000000000000000000000000001'
BOB = '0xb0b0000000000000000000000000000000000002'


def add_rows(repos, *rows):
    with repos.get_transaction() as session:
        for row in rows:
            session.add(row)


def transition(rwa_id, to_state, ago, payment_hash=None, role='inspector', from_state='created'):
    return DBRwaStateTransition(rwa_id=rwa_id, from_state=from_state, to_state=to_state,
                                agent_address=ALICE, agent_role=role, payment_hash=payment_hash,
                                proof={'signature': '0xsig'}, transitioned_at=NOW - ago)


def assignment(agent, status, completed_ago=None, took=timedelta(hours=1), rwa_id='rwa-1'):
    completed_at = NOW - completed_ago if completed_ago is not None else None
    assigned_at = (completed_at or NOW) - took
    return DBRwaAgentAssignment(rwa_id=rwa_id, agent_address=agent, agent_role='inspector',
                                status=status, assigned_at=assigned_at, completed_at=completed_at)


def machine(rwa_id, state, idle_for):
    return DBRwaStateMachine(rwa_id=rwa_id, current_state=state, updated_at=NOW - idle_for)


def run(chain, repos):
    task = RwaStateTask(chain, repos, batch_size=50, clock=lambda: NOW)
    return SweepJob('rwa_state_indexer', task, repos.cursors).run()


class TestTransitionOutcomes:
    def test_paid_transition_records_outcome_once(self, chain, repos):
        payment_hash = tx_hash()
        add_rows(
            repos,
            DBPayment(payment_id='pay-1', tx_hash=payment_hash, amount=1_000_000, status=PaymentStatus.SETTLED),
            transition('rwa-1', 'inspected', timedelta(minutes=3), payment_hash=payment_hash),
        )

        summary = run(chain, repos)

        assert summary.outcomes == {'outcome_recorded': 1, 'aggregated': 1}
        assert summary.status == RunStatus.SUCCESS
        with repos.get_session() as session:
            outcome = repos.workflow_outcomes.get_by_key(session, payment_id='pay-1')
            assert outcome.outcome_type == 'success'
            assert outcome.evidence['rwa_id'] == 'rwa-1'
            assert outcome.evidence['to_state'] == 'inspected'
            assert outcome.evidence['agent_address'] == ALICE
            assert as_utc(outcome.occurred_at) == NOW - timedelta(minutes=3)

        assert run(chain, repos).outcomes == {'aggregated': 1}
        with repos.get_session() as session:
            assert session.query(DBWorkflowOutcome).count() == 1

    def test_unpaid_transition_waits_for_its_payment(self, chain, repos):
        payment_hash = tx_hash()
        add_rows(repos, transition('rwa-2', 'inspected', timedelta(minutes=1), payment_hash=payment_hash))

        summary = run(chain, repos)

        assert summary.outcomes == {'pending': 1, 'aggregated': 1}
        assert summary.status == RunStatus.SUCCESS
        assert summary.skipped == 1
        assert summary.failed == 0

        add_rows(repos, DBPayment(payment_id='pay-2', tx_hash=payment_hash, amount=5,
                                  status=PaymentStatus.SETTLED))

        assert run(chain, repos).outcomes == {'outcome_recorded': 1, 'aggregated': 1}

    def test_transitions_outside_the_lookback_are_ignored(self, chain, repos):
        add_rows(repos, transition('rwa-3', 'inspected', timedelta(days=2), payment_hash=tx_hash()))

        assert run(chain, repos).status == RunStatus.IDLE


class TestAgentPerformance:
    def test_completion_time_and_rwa_reputation(self, chain, repos):
        add_rows(
            repos,
            DBAgentReputation(agent_address=ALICE, tag='overall', reputation_score=70, feedback_count=4,
                              successful_transactions=0, failed_transactions=0, success_rate=0.5),
            assignment(ALICE, RwaAssignmentStatus.COMPLETED, completed_ago=timedelta(hours=1),
                       took=timedelta(minutes=90)),
            assignment(ALICE, RwaAssignmentStatus.FAILED, rwa_id='rwa-9'),
        )

        summary = run(chain, repos)

        assert summary.outcomes == {'metric_recorded': 1, 'reputation_updated': 1}
        with repos.get_session() as session:
            [metric] = repos.performance_metrics.get_all(session)
            assert metric.agent_address == ALICE
            assert metric.metric_type == 'rwa_execution'
            assert metric.value == 90 * 60 * 1000
            assert metric.details['rwa_id'] == 'rwa-1'

            rwa = repos.reputation.get_by_key(session, agent_address=ALICE, tag='rwa')
            assert rwa.reputation_score == 75
            assert rwa.successful_transactions == 1
            assert rwa.failed_transactions == 1
            assert rwa.success_rate == pytest.approx(0.5)
            assert rwa.feedback_count == 4
            assert repos.reputation.get_by_key(session, agent_address=ALICE, tag='overall').reputation_score == 70

    def test_metric_is_recorded_once_per_completion(self, chain, repos):
        add_rows(repos, assignment(BOB, RwaAssignmentStatus.COMPLETED, completed_ago=timedelta(hours=2)))

        run(chain, repos)
        summary = run(chain, repos)

        assert summary.outcomes == {'reputation_updated': 1}
        with repos.get_session() as session:
            assert repos.performance_metrics.count(session) == 1
            assert repos.reputation.get_by_key(session, agent_address=BOB, tag='rwa').reputation_score == 60

    def test_old_completions_are_not_rescored(self, chain, repos):
        add_rows(repos, assignment(BOB, RwaAssignmentStatus.COMPLETED, completed_ago=timedelta(days=3)))

        assert run(chain, repos).status == RunStatus.IDLE


class TestStaleWorkflows:
    def test_alert_once_per_stuck_state(self, chain, repos):
        add_rows(
            repos,
            machine('rwa-stuck', 'escrowed', timedelta(days=2)),
            machine('rwa-done', 'settled', timedelta(days=2)),
            machine('rwa-live', 'escrowed', timedelta(hours=1)),
        )

        summary = run(chain, repos)

        assert summary.outcomes == {'alerted': 1}
        with repos.get_session() as session:
            [alert] = session.query(DBRwaAlert).all()
            assert alert.rwa_id == 'rwa-stuck'
            assert alert.state == 'escrowed'
            assert alert.severity == 'warning'
            assert alert.message == 'RWA stuck in escrowed for >24h'

        assert run(chain, repos).status == RunStatus.IDLE

    def test_new_state_raises_a_new_alert(self, chain, repos):
        add_rows(repos, machine('rwa-stuck', 'escrowed', timedelta(days=2)))
        run(chain, repos)

        with repos.get_transaction() as session:
            stuck = repos.rwa_state_machines.get_by_key(session, rwa_id='rwa-stuck')
            stuck.current_state = 'inspected'
            stuck.updated_at = NOW - timedelta(days=2)

        assert run(chain, repos).outcomes == {'alerted': 1}
        with repos.get_session() as session:
            assert {alert.state for alert in session.query(DBRwaAlert).all()} == {'escrowed', 'inspected'}


class TestDailyMetrics:
    def test_rollup_counts_states_and_roles(self, chain, repos):
        add_rows(
            repos,
            transition('rwa-1', 'inspected', timedelta(hours=1)),
            transition('rwa-2', 'inspected', timedelta(hours=2), role='appraiser'),
            transition('rwa-3', 'settled', timedelta(hours=3), role=None),
            transition('rwa-4', 'disputed', timedelta(days=3)),
        )

        run(chain, repos)

        with repos.get_session() as session:
            metrics = repos.rwa_metrics.get_by_key(session, metric_date='2026-10-17')
            assert metrics.total_transitions == 3
            assert metrics.state_distribution == {'inspected': 2, 'settled': 1}
            assert metrics.role_distribution == {'inspector': 1, 'appraiser': 1}

    def test_rollup_is_rewritten_in_place(self, chain, repos):
        add_rows(repos, transition('rwa-1', 'inspected', timedelta(hours=1)))
        run(chain, repos)
        add_rows(repos, transition('rwa-2', 'settled', timedelta(minutes=5)))
        run(chain, repos)

        with repos.get_session() as session:
            assert repos.rwa_metrics.count(session) == 1
            assert repos.rwa_metrics.get_by_key(session, metric_date='2026-10-17').total_transitions == 2


def test_rwa_score_bounds():
    assert rwa_score(50, 1.0) == 60
    assert rwa_score(70, 0.5) == 75
    assert rwa_score(95, 1.0) == 100
    assert rwa_score(0, 0.0) == 0
    assert rwa_score(50, 0.25) == 53
