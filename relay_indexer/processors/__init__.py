# relay_indexer/processors/__init__.py

from .base import APPLIED, SKIPPED, EventProcessor, SweepTask
from .agents import AgentRegistryProcessor
from .feedback import FeedbackProcessor
from .escrow import EscrowProcessor
from .payments import PaymentEnrichmentTask, PaymentTransferProcessor
from .trades import TradeProcessor
from .handoff import HandoffCleanupTask
from .reputation import ReputationTask
from .rwa import RwaStateTask

__all__ = [
    'APPLIED',
    'SKIPPED',
    'EventProcessor',
    'SweepTask',
    'AgentRegistryProcessor',
    'FeedbackProcessor',
    'EscrowProcessor',
    'PaymentTransferProcessor',
    'PaymentEnrichmentTask',
    'TradeProcessor',
    'HandoffCleanupTask',
    'ReputationTask',
    'RwaStateTask',
]
