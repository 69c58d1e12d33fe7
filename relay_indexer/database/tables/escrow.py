# relay_indexer/database/tables/escrow.py

from sqlalchemy import Boolean, Column, Enum, Integer, String

from ..base import DBBaseModel, DBEventLogModel
from ..types import EvmAddressType, EvmHashType, SessionEventType, TokenAmountType


class DBEscrowSession(DBBaseModel):
    __tablename__ = 'escrow_sessions'

    session_id = Column(String(78), primary_key=True)
    owner_address = Column(EvmAddressType(), nullable=True, index=True)
    escrow_agent = Column(EvmAddressType(), nullable=True)
    max_spend = Column(TokenAmountType(), nullable=False, default=0)
    expiry = Column(Integer, nullable=True)
    deposited = Column(TokenAmountType(), nullable=False, default=0)
    released = Column(TokenAmountType(), nullable=False, default=0)
    refunded = Column(TokenAmountType(), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_tx_hash = Column(EvmHashType(), nullable=True)
    created_block = Column(Integer, nullable=True)
    timestamp = Column(Integer, nullable=True)
    closed_at = Column(Integer, nullable=True)
    closed_tx_hash = Column(EvmHashType(), nullable=True)
    closed_block = Column(Integer, nullable=True)

    @property
    def remaining(self) -> int:
        return (self.deposited or 0) - (self.released or 0) - (self.refunded or 0)


class DBEscrowSessionEvent(DBEventLogModel):
    __tablename__ = 'escrow_session_events'

    session_id = Column(String(78), nullable=False, index=True)
    event_type = Column(Enum(SessionEventType, native_enum=False), nullable=False, index=True)
    actor_address = Column(EvmAddressType(), nullable=True)
    amount = Column(TokenAmountType(), nullable=True)
    execution_id = Column(EvmHashType(), nullable=True)


class DBEscrowSessionAgent(DBBaseModel):
    __tablename__ = 'escrow_session_agents'

    session_id = Column(String(78), primary_key=True)
    agent_address = Column(EvmAddressType(), primary_key=True)
    is_authorized = Column(Boolean, nullable=False, default=True)
    authorized_at = Column(Integer, nullable=True)
    auth_tx_hash = Column(EvmHashType(), nullable=True)
    auth_block = Column(Integer, nullable=True)
    revoked_at = Column(Integer, nullable=True)


class DBAgentEarnings(DBBaseModel):
    __tablename__ = 'agent_earnings'

    agent_address = Column(EvmAddressType(), primary_key=True)
    total_earned = Column(TokenAmountType(), nullable=False, default=0)
    payment_count = Column(Integer, nullable=False, default=0)
