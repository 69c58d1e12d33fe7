# relay_indexer/database/repositories/repository_manager.py

from .cursor_repository import CursorRepository
from .agent_repository import AgentRepository
from .feedback_repository import FeedbackRepository
from .escrow_repository import (
    AgentEarningsRepository, EscrowEventRepository, EscrowSessionRepository, SessionAgentRepository,
)
from .payment_repository import PaymentEventRepository, PaymentRepository
from .trade_repository import PositionEventRepository, TradeRepository
from .handoff_repository import (
    OnChainTransactionRepository, PendingTransactionRepository, StateHistoryRepository,
)
from .reputation_repository import ReputationRepository
from .failed_event_repository import FailedEventRepository
from .rwa_repository import (
    PerformanceMetricRepository, RwaAlertRepository, RwaAssignmentRepository, RwaMetricsRepository,
    RwaStateMachineRepository, RwaTransitionRepository, WorkflowOutcomeRepository,
)
from ..connection import DatabaseManager
from ...core.logging import IndexerLogger


class RepositoryManager:
    """Every repository over one DatabaseManager, built once and shared by processors and jobs."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.logger = IndexerLogger.get_logger('database.repository_manager')

        self.cursors = CursorRepository(db_manager)
        self.failed_events = FailedEventRepository(db_manager)
        self.agents = AgentRepository(db_manager)
        self.feedback = FeedbackRepository(db_manager)
        self.escrow_sessions = EscrowSessionRepository(db_manager)
        self.escrow_events = EscrowEventRepository(db_manager)
        self.session_agents = SessionAgentRepository(db_manager)
        self.agent_earnings = AgentEarningsRepository(db_manager)
        self.payment_events = PaymentEventRepository(db_manager)
        self.payments = PaymentRepository(db_manager)
        self.trades = TradeRepository(db_manager)
        self.position_events = PositionEventRepository(db_manager)
        self.pending_transactions = PendingTransactionRepository(db_manager)
        self.state_history = StateHistoryRepository(db_manager)
        self.onchain_transactions = OnChainTransactionRepository(db_manager)
        self.reputation = ReputationRepository(db_manager)
        self.rwa_state_machines = RwaStateMachineRepository(db_manager)
        self.rwa_transitions = RwaTransitionRepository(db_manager)
        self.rwa_assignments = RwaAssignmentRepository(db_manager)
        self.workflow_outcomes = WorkflowOutcomeRepository(db_manager)
        self.performance_metrics = PerformanceMetricRepository(db_manager)
        self.rwa_alerts = RwaAlertRepository(db_manager)
        self.rwa_metrics = RwaMetricsRepository(db_manager)

    def get_transaction(self):
        return self.db_manager.get_transaction()

    def get_session(self):
        return self.db_manager.get_session()
