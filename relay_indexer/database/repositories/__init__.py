# relay_indexer/database/repositories/__init__.py

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
from .repository_manager import RepositoryManager

__all__ = [
    'CursorRepository',
    'AgentRepository',
    'FeedbackRepository',
    'EscrowSessionRepository',
    'EscrowEventRepository',
    'SessionAgentRepository',
    'AgentEarningsRepository',
    'PaymentEventRepository',
    'PaymentRepository',
    'TradeRepository',
    'PositionEventRepository',
    'PendingTransactionRepository',
    'StateHistoryRepository',
    'OnChainTransactionRepository',
    'ReputationRepository',
    'FailedEventRepository',
    'RwaStateMachineRepository',
    'RwaTransitionRepository',
    'RwaAssignmentRepository',
    'WorkflowOutcomeRepository',
    'PerformanceMetricRepository',
    'RwaAlertRepository',
    'RwaMetricsRepository',
    'RepositoryManager',
]
