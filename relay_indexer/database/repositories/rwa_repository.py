# relay_indexer/database/repositories/rwa_repository.py

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, exists, func
from sqlalchemy.orm import Session

from ..base_repository import BaseRepository
from ..tables import (
    DBAgentPerformanceMetric, DBRwaAgentAssignment, DBRwaAlert, DBRwaDailyMetrics, DBRwaStateMachine,
    DBRwaStateTransition, DBWorkflowOutcome,
)
from ..types import RwaAssignmentStatus


class RwaTransitionRepository(BaseRepository[DBRwaStateTransition]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBRwaStateTransition)

    def without_outcome(self, session: Session, since: datetime, limit: int) -> List[int]:
        """Ids of transitions since ``since`` that have no outcome row yet, oldest first"""
        rows = session.query(DBRwaStateTransition.id).filter(
            DBRwaStateTransition.transitioned_at >= since,
            ~exists().where(DBWorkflowOutcome.transition_id == DBRwaStateTransition.id),
        ).order_by(DBRwaStateTransition.transitioned_at, DBRwaStateTransition.id).limit(limit).all()
        return [row[0] for row in rows]

    def any_since(self, session: Session, since: datetime) -> bool:
        return session.query(
            exists().where(DBRwaStateTransition.transitioned_at >= since)
        ).scalar()

    def distribution_since(self, session: Session, since: datetime) -> List[Tuple[str, Optional[str]]]:
        """(to_state, agent_role) of every transition since ``since``"""
        rows = session.query(DBRwaStateTransition.to_state, DBRwaStateTransition.agent_role).filter(
            DBRwaStateTransition.transitioned_at >= since
        ).all()
        return [(row[0], row[1]) for row in rows]


class RwaAssignmentRepository(BaseRepository[DBRwaAgentAssignment]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBRwaAgentAssignment)

    def unmeasured_completions(self, session: Session, since: datetime, metric_type: str,
                               limit: int) -> List[int]:
        """Completed assignments since ``since`` with no matching performance metric"""
        measured = exists().where(and_(
            DBAgentPerformanceMetric.agent_address == DBRwaAgentAssignment.agent_address,
            DBAgentPerformanceMetric.metric_type == metric_type,
            DBAgentPerformanceMetric.recorded_at == DBRwaAgentAssignment.completed_at,
        ))
        rows = session.query(DBRwaAgentAssignment.id).filter(
            DBRwaAgentAssignment.status == RwaAssignmentStatus.COMPLETED,
            DBRwaAgentAssignment.completed_at >= since,
            ~measured,
        ).order_by(DBRwaAgentAssignment.completed_at, DBRwaAgentAssignment.id).limit(limit).all()
        return [row[0] for row in rows]

    def agents_completed_since(self, session: Session, since: datetime, limit: int) -> List[str]:
        rows = session.query(DBRwaAgentAssignment.agent_address).filter(
            DBRwaAgentAssignment.status == RwaAssignmentStatus.COMPLETED,
            DBRwaAgentAssignment.completed_at >= since,
        ).distinct().order_by(DBRwaAgentAssignment.agent_address).limit(limit).all()
        return [row[0] for row in rows]

    def outcome_counts(self, session: Session, agent_address: str) -> Tuple[int, int]:
        """(completed, failed) assignment counts for ``agent_address`` over all time"""
        rows = session.query(DBRwaAgentAssignment.status, func.count()).filter(
            DBRwaAgentAssignment.agent_address == agent_address.lower()
        ).group_by(DBRwaAgentAssignment.status).all()
        counts = {status: count for status, count in rows}
        return counts.get(RwaAssignmentStatus.COMPLETED, 0), counts.get(RwaAssignmentStatus.FAILED, 0)


class RwaStateMachineRepository(BaseRepository[DBRwaStateMachine]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBRwaStateMachine)

    def stale_without_alert(self, session: Session, before: datetime, terminal_states: Sequence[str],
                            alert_type: str, limit: int) -> List[str]:
        """Non-terminal workflows untouched since ``before`` that have no alert for their current state"""
        alerted = exists().where(and_(
            DBRwaAlert.rwa_id == DBRwaStateMachine.rwa_id,
            DBRwaAlert.alert_type == alert_type,
            DBRwaAlert.state == DBRwaStateMachine.current_state,
        ))
        rows = session.query(DBRwaStateMachine.rwa_id).filter(
            DBRwaStateMachine.updated_at < before,
            DBRwaStateMachine.current_state.not_in(list(terminal_states)),
            ~alerted,
        ).order_by(DBRwaStateMachine.updated_at).limit(limit).all()
        return [row[0] for row in rows]


class WorkflowOutcomeRepository(BaseRepository[DBWorkflowOutcome]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBWorkflowOutcome)


class PerformanceMetricRepository(BaseRepository[DBAgentPerformanceMetric]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBAgentPerformanceMetric)


class RwaAlertRepository(BaseRepository[DBRwaAlert]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBRwaAlert)


class RwaMetricsRepository(BaseRepository[DBRwaDailyMetrics]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBRwaDailyMetrics)
