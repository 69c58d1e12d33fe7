# relay_indexer/processors/escrow.py

from typing import Dict, Optional

from sqlalchemy.orm import Session

from .base import APPLIED, SKIPPED, EventHandler, EventProcessor, address, event_arg
from ..contracts.abi_loader import ESCROW_SESSION
from ..database.types import SessionEventType
from ..types.chain import ChainEvent


class EscrowProcessor(EventProcessor):
    """
    EscrowSession events.

    Every event except SessionCreated lands in ``escrow_session_events``
    keyed by (tx_hash, log_index). Running totals, earnings and agent
    authorizations only move when that row is inserted for the first time,
    which keeps replays of a window from double counting.
    """

    abi_name = ESCROW_SESSION

    def handlers(self) -> Dict[str, EventHandler]:
        return {
            'SessionCreated': self._on_created,
            'FundsDeposited': self._on_deposited,
            'PaymentReleased': self._on_released,
            'SessionRefunded': self._on_refunded,
            'SessionClosed': self._on_closed,
            'AgentAuthorized': self._on_authorized,
            'AgentRevoked': self._on_revoked,
        }

    def _record_event(self, session: Session, event: ChainEvent, timestamp: int,
                      event_type: SessionEventType, actor: Optional[str] = None,
                      amount: Optional[int] = None, execution_id: Optional[str] = None) -> bool:
        _, created = self.repos.escrow_events.insert_if_absent(
            session,
            {'tx_hash': event.transaction_hash.lower(), 'log_index': event.log_index},
            session_id=str(event_arg(event, 'sessionId', 0)),
            event_type=event_type,
            actor_address=address(actor),
            amount=amount,
            execution_id=execution_id.lower() if execution_id else None,
            block_number=event.block_number,
            timestamp=timestamp,
        )
        return created

    def _on_created(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        record = self.repos.escrow_sessions.get_or_create(session, str(event_arg(event, 'sessionId', 0)))
        record.owner_address = address(event_arg(event, 'owner', 1))
        record.escrow_agent = address(event_arg(event, 'escrowAgent', 2))
        record.max_spend = int(event_arg(event, 'maxSpend', 3))
        record.expiry = int(event_arg(event, 'expiry', 4))
        record.created_tx_hash = event.transaction_hash.lower()
        record.created_block = event.block_number
        record.timestamp = timestamp
        return APPLIED

    def _on_deposited(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        amount = int(event_arg(event, 'amount', 2))
        if not self._record_event(session, event, timestamp, SessionEventType.DEPOSIT,
                                  actor=event_arg(event, 'depositor', 1), amount=amount):
            return SKIPPED
        record = self.repos.escrow_sessions.get_or_create(session, str(event_arg(event, 'sessionId', 0)))
        record.deposited = (record.deposited or 0) + amount
        return APPLIED

    def _on_released(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        agent = event_arg(event, 'agent', 1)
        amount = int(event_arg(event, 'amount', 2))
        if not self._record_event(session, event, timestamp, SessionEventType.RELEASE,
                                  actor=agent, amount=amount,
                                  execution_id=event_arg(event, 'executionId', 3)):
            return SKIPPED
        record = self.repos.escrow_sessions.get_or_create(session, str(event_arg(event, 'sessionId', 0)))
        record.released = (record.released or 0) + amount
        self.repos.agent_earnings.increment(session, agent, amount)
        return APPLIED

    def _on_refunded(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        amount = int(event_arg(event, 'amount', 2))
        if not self._record_event(session, event, timestamp, SessionEventType.REFUND,
                                  actor=event_arg(event, 'owner', 1), amount=amount):
            return SKIPPED
        record = self.repos.escrow_sessions.get_or_create(session, str(event_arg(event, 'sessionId', 0)))
        record.refunded = (record.refunded or 0) + amount
        return APPLIED

    def _on_closed(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        if not self._record_event(session, event, timestamp, SessionEventType.CLOSE):
            return SKIPPED
        record = self.repos.escrow_sessions.get_or_create(session, str(event_arg(event, 'sessionId', 0)))
        record.is_active = False
        record.closed_at = timestamp
        record.closed_tx_hash = event.transaction_hash.lower()
        record.closed_block = event.block_number
        return APPLIED

    def _on_authorized(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        agent = address(event_arg(event, 'agent', 1))
        if not self._record_event(session, event, timestamp, SessionEventType.AUTHORIZE, actor=agent):
            return SKIPPED
        self.repos.session_agents.upsert(
            session,
            {'session_id': str(event_arg(event, 'sessionId', 0)), 'agent_address': agent},
            is_authorized=True,
            authorized_at=timestamp,
            auth_tx_hash=event.transaction_hash.lower(),
            auth_block=event.block_number,
            revoked_at=None,
        )
        return APPLIED

    def _on_revoked(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        agent = address(event_arg(event, 'agent', 1))
        if not self._record_event(session, event, timestamp, SessionEventType.REVOKE, actor=agent):
            return SKIPPED
        self.repos.session_agents.upsert(
            session,
            {'session_id': str(event_arg(event, 'sessionId', 0)), 'agent_address': agent},
            is_authorized=False,
            revoked_at=timestamp,
        )
        return APPLIED
