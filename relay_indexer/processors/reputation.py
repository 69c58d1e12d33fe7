# relay_indexer/processors/reputation.py

import math
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .base import SweepTask
from ..core.constants import (
    DAYS_FOR_FULL_DECAY, DEFAULT_ONCHAIN_SCORE, DEFAULT_SUCCESS_RATE, MIN_DECAY_WEIGHT,
    ONCHAIN_SCORE_WEIGHT, REPUTATION_CALCULATOR, REPUTATION_TAG, SUCCESS_RATE_WEIGHT,
    TIME_DECAY_FACTOR,
)
from ..core.errors import ChainError
from ..database.base import utcnow

CALCULATED = 'calculated'

SECONDS_PER_DAY = 86400


def decay_factor(days_since_event: float) -> float:
    if days_since_event <= 0:
        return 1.0
    if days_since_event >= DAYS_FOR_FULL_DECAY:
        return MIN_DECAY_WEIGHT
    return TIME_DECAY_FACTOR ** (days_since_event / 7)


def decayed_average(scores: Sequence[Tuple[int, int]], now: Optional[float] = None) -> Optional[float]:
    """Time-weighted mean of (score, unix timestamp) pairs; None when there is nothing to weigh"""
    if not scores:
        return None
    now = time.time() if now is None else now
    total_weight = 0.0
    weighted = 0.0
    for score, timestamp in scores:
        weight = decay_factor((now - timestamp) / SECONDS_PER_DAY)
        weighted += score * weight
        total_weight += weight
    return weighted / total_weight if total_weight else None


def combine_score(onchain_score: float, success_rate: float) -> int:
    # half-up rounding, not banker's
    combined = math.floor(onchain_score * ONCHAIN_SCORE_WEIGHT + success_rate * 100 * SUCCESS_RATE_WEIGHT + 0.5)
    return max(0, min(100, combined))


class ReputationTask(SweepTask):
    """
    Recomputes the ``overall`` reputation of every active agent owner from
    the registry's on-chain average and the owner's payment record.
    """

    name = REPUTATION_CALCULATOR

    def __init__(self, chain, repos, reputation_registry: str, abi: List[Dict[str, Any]], batch_size: int = 100):
        super().__init__(chain, repos, batch_size)
        self.reputation_registry = reputation_registry
        self.abi = abi

    def collect(self) -> List[str]:
        with self.repos.get_session() as session:
            return self.repos.agents.active_owner_addresses(session)

    def describe(self, item: str) -> Dict[str, Any]:
        return {'agent_address': item}

    def onchain_score(self, agent_address: str, local_scores: Sequence[Tuple[int, int]]) -> float:
        try:
            return float(self.chain.call_view(
                self.reputation_registry, self.abi, 'getAverageScore', [agent_address, REPUTATION_TAG]
            ))
        except ChainError as e:
            fallback = decayed_average(local_scores)
            self.log_debug("On-chain score unavailable, using local feedback",
                           agent_address=agent_address, error=str(e),
                           fallback=fallback if fallback is not None else DEFAULT_ONCHAIN_SCORE)
            return fallback if fallback is not None else float(DEFAULT_ONCHAIN_SCORE)

    def apply(self, agent_address: str) -> str:
        with self.repos.get_session() as session:
            successful, failed = self.repos.payments.outcome_counts(session, agent_address)
            local_scores = self.repos.feedback.active_scores(session, agent_address)

        onchain = self.onchain_score(agent_address, local_scores)

        total = successful + failed
        success_rate = successful / total if total > 0 else DEFAULT_SUCCESS_RATE
        score = combine_score(onchain, success_rate)

        with self.repos.get_transaction() as session:
            self.repos.reputation.upsert(
                session,
                {'agent_address': agent_address.lower(), 'tag': REPUTATION_TAG},
                reputation_score=score,
                feedback_count=len(local_scores),
                successful_transactions=successful,
                failed_transactions=failed,
                success_rate=success_rate,
                last_calculated=utcnow(),
            )

        self.log_debug("Reputation calculated", agent_address=agent_address, score=score)
        return CALCULATED
