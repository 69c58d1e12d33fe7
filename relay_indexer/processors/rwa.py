# relay_indexer/processors/rwa.py
"""
RWA workflow bookkeeping.

Nothing here reads the chain. The marketplace writes workflow state,
transitions and agent assignments; this task derives outcomes, agent
performance metrics, an RWA reputation row, stale-workflow alerts and a
daily transition rollup from them. Every write is keyed, so overlapping
lookback windows only rewrite the same rows.
"""

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Tuple

from .base import SKIPPED, SweepTask
from ..core.constants import (
    DEFAULT_ONCHAIN_SCORE, REPUTATION_TAG, RWA_EXECUTION_METRIC, RWA_LOOKBACK_HOURS,
    RWA_REPUTATION_TAG, RWA_STALE_AFTER_HOURS, RWA_STATE_INDEXER, RWA_SUCCESS_BONUS,
    RWA_TERMINAL_STATES,
)
from ..database.base import as_utc, utcnow

OUTCOME_RECORDED = 'outcome_recorded'
METRIC_RECORDED = 'metric_recorded'
REPUTATION_UPDATED = 'reputation_updated'
ALERTED = 'alerted'
AGGREGATED = 'aggregated'
PENDING = 'pending'

TRANSITION = 'transition'
ASSIGNMENT = 'assignment'
REPUTATION = 'reputation'
STALE = 'stale'
METRICS = 'metrics'

STALE_STATE_ALERT = 'stale_state'

RwaItem = Tuple[str, Any]


def rwa_score(base_score: float, success_rate: float) -> int:
    bonus = success_rate * RWA_SUCCESS_BONUS
    return max(0, min(100, math.floor(base_score + bonus + 0.5)))


class RwaStateTask(SweepTask):
    """
    One sweep over recent RWA activity. Items are ``(stage, key)`` pairs,
    so a bad transition or assignment fails alone.
    """

    name = RWA_STATE_INDEXER

    DEFERRED_OUTCOMES = frozenset({PENDING})

    def __init__(self, chain, repos, batch_size: int = 100,
                 clock: Callable[[], datetime] = utcnow):
        super().__init__(chain, repos, batch_size)
        self.clock = clock

    @property
    def lookback_start(self) -> datetime:
        return self.clock() - timedelta(hours=RWA_LOOKBACK_HOURS)

    def collect(self) -> List[RwaItem]:
        now = self.clock()
        since = self.lookback_start
        stale_before = now - timedelta(hours=RWA_STALE_AFTER_HOURS)

        with self.repos.get_session() as session:
            items: List[RwaItem] = []
            items.extend((TRANSITION, transition_id) for transition_id in
                         self.repos.rwa_transitions.without_outcome(session, since, self.batch_size))
            items.extend((ASSIGNMENT, assignment_id) for assignment_id in
                         self.repos.rwa_assignments.unmeasured_completions(
                             session, since, RWA_EXECUTION_METRIC, self.batch_size))
            items.extend((REPUTATION, agent) for agent in
                         self.repos.rwa_assignments.agents_completed_since(session, since, self.batch_size))
            items.extend((STALE, rwa_id) for rwa_id in
                         self.repos.rwa_state_machines.stale_without_alert(
                             session, stale_before, RWA_TERMINAL_STATES, STALE_STATE_ALERT,
                             self.batch_size))
            if self.repos.rwa_transitions.any_since(session, since):
                items.append((METRICS, now.date().isoformat()))
        return items

    def describe(self, item: RwaItem) -> Dict[str, Any]:
        stage, key = item
        return {'stage': stage, 'key': str(key)}

    def apply(self, item: RwaItem) -> str:
        stage, key = item
        handler = {
            TRANSITION: self.record_outcome,
            ASSIGNMENT: self.record_performance,
            REPUTATION: self.update_reputation,
            STALE: self.raise_stale_alert,
            METRICS: self.aggregate_metrics,
        }[stage]
        return handler(key)

    def record_outcome(self, transition_id: int) -> str:
        with self.repos.get_transaction() as session:
            transition = self.repos.rwa_transitions.get_by_key(session, id=transition_id)
            if transition is None:
                return SKIPPED

            payment = None
            if transition.payment_hash:
                payment = self.repos.payments.get_by_tx_hash(session, transition.payment_hash)
            if payment is None:
                self.log_warning("Payment not found for RWA transition",
                                 rwa_id=transition.rwa_id,
                                 transition=f"{transition.from_state}->{transition.to_state}",
                                 tx_hash=transition.payment_hash)
                return PENDING

            self.repos.workflow_outcomes.upsert(
                session,
                {'payment_id': payment.payment_id},
                transition_id=transition.id,
                outcome_type='success',
                latency_ms=0,
                evidence={
                    'rwa_id': transition.rwa_id,
                    'from_state': transition.from_state,
                    'to_state': transition.to_state,
                    'agent_address': transition.agent_address,
                    'agent_role': transition.agent_role,
                    'proof': transition.proof,
                },
                occurred_at=transition.transitioned_at,
            )
        return OUTCOME_RECORDED

    def record_performance(self, assignment_id: int) -> str:
        with self.repos.get_transaction() as session:
            assignment = self.repos.rwa_assignments.get_by_key(session, id=assignment_id)
            if assignment is None or assignment.completed_at is None:
                return SKIPPED

            elapsed = as_utc(assignment.completed_at) - as_utc(assignment.assigned_at)
            self.repos.performance_metrics.upsert(
                session,
                {
                    'agent_address': assignment.agent_address,
                    'metric_type': RWA_EXECUTION_METRIC,
                    'recorded_at': assignment.completed_at,
                },
                value=int(elapsed.total_seconds() * 1000),
                details={
                    'rwa_id': assignment.rwa_id,
                    'role': assignment.agent_role,
                    'completed_at': as_utc(assignment.completed_at).isoformat(),
                },
            )
        return METRIC_RECORDED

    def update_reputation(self, agent_address: str) -> str:
        agent_address = agent_address.lower()
        with self.repos.get_transaction() as session:
            completed, failed = self.repos.rwa_assignments.outcome_counts(session, agent_address)
            total = completed + failed
            if total == 0:
                return SKIPPED
            success_rate = completed / total

            base = self.repos.reputation.get_by_key(session, agent_address=agent_address, tag=REPUTATION_TAG)
            base_score = base.reputation_score if base is not None else DEFAULT_ONCHAIN_SCORE
            score = rwa_score(base_score, success_rate)

            self.repos.reputation.upsert(
                session,
                {'agent_address': agent_address, 'tag': RWA_REPUTATION_TAG},
                reputation_score=score,
                feedback_count=base.feedback_count if base is not None else 0,
                successful_transactions=completed,
                failed_transactions=failed,
                success_rate=success_rate,
                last_calculated=self.clock(),
            )

        self.log_info("Updated RWA agent reputation", agent_address=agent_address,
                      success_rate=success_rate, score=score)
        return REPUTATION_UPDATED

    def raise_stale_alert(self, rwa_id: str) -> str:
        with self.repos.get_transaction() as session:
            machine = self.repos.rwa_state_machines.get_by_key(session, rwa_id=rwa_id)
            if machine is None or machine.current_state in RWA_TERMINAL_STATES:
                return SKIPPED

            _, created = self.repos.rwa_alerts.insert_if_absent(
                session,
                {'rwa_id': rwa_id, 'alert_type': STALE_STATE_ALERT, 'state': machine.current_state},
                severity='warning',
                message=f"RWA stuck in {machine.current_state} for >{RWA_STALE_AFTER_HOURS}h",
                details={
                    'current_state': machine.current_state,
                    'last_updated': as_utc(machine.updated_at).isoformat(),
                },
            )
            state = machine.current_state

        if not created:
            return SKIPPED
        self.log_warning("Stale RWA workflow", rwa_id=rwa_id, state=state)
        return ALERTED

    def aggregate_metrics(self, metric_date: str) -> str:
        with self.repos.get_transaction() as session:
            rows = self.repos.rwa_transitions.distribution_since(session, self.lookback_start)
            if not rows:
                return SKIPPED

            states = Counter(to_state for to_state, _ in rows)
            roles = Counter(role for _, role in rows if role)
            self.repos.rwa_metrics.upsert(
                session,
                {'metric_date': metric_date},
                total_transitions=len(rows),
                state_distribution=dict(states),
                role_distribution=dict(roles),
            )

        self.log_info("Aggregated RWA metrics", total_transitions=len(rows),
                      states=len(states), roles=len(roles))
        return AGGREGATED
