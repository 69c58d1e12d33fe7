# relay_indexer/database/tables/handoff.py

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, DateTime, Enum, Integer, JSON, String, Text

from ..base import DBBaseModel, as_utc, utcnow
from ..types import EvmAddressType, EvmHashType, OnChainTxStatus, PendingTxStatus


class DBPendingTransaction(DBBaseModel):
    """Handoff signing request. Created by the API, settled by the transaction indexer."""
    __tablename__ = 'pending_transactions'

    transaction_id = Column(String(64), primary_key=True)
    chain_id = Column(Integer, nullable=False)
    tool = Column(String(64), nullable=True)
    status = Column(Enum(PendingTxStatus, native_enum=False), nullable=False,
                    default=PendingTxStatus.PENDING, index=True)
    session_id = Column(String(78), nullable=True)
    agent_id = Column(String(78), nullable=True)
    tx_hash = Column(EvmHashType(), nullable=True, index=True)
    block_number = Column(Integer, nullable=True)
    block_hash = Column(EvmHashType(), nullable=True)
    gas_used = Column(BigInteger, nullable=True)
    error_message = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return as_utc(self.expires_at) < (now or utcnow())

    def mark_confirmed(self, block_number: int, block_hash: Optional[str], gas_used: Optional[int],
                       confirmed_at: Optional[datetime] = None) -> None:
        self.status = PendingTxStatus.CONFIRMED
        self.block_number = block_number
        self.block_hash = block_hash
        self.gas_used = gas_used
        self.confirmed_at = confirmed_at or utcnow()

    def mark_failed(self, error_message: str, block_number: Optional[int] = None) -> None:
        self.status = PendingTxStatus.FAILED
        self.error_message = error_message
        if block_number is not None:
            self.block_number = block_number

    def mark_expired(self) -> None:
        self.status = PendingTxStatus.EXPIRED
        self.error_message = 'Transaction expired before confirmation'


class DBPendingTxStateHistory(DBBaseModel):
    __tablename__ = 'pending_tx_state_history'

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(64), nullable=False, index=True)
    status = Column(Enum(PendingTxStatus, native_enum=False), nullable=False)
    details = Column(JSON, nullable=True)


class DBOnChainTransaction(DBBaseModel):
    __tablename__ = 'on_chain_transactions'

    tx_hash = Column(EvmHashType(), primary_key=True)
    chain_id = Column(Integer, nullable=False)
    block_number = Column(Integer, nullable=False, index=True)
    block_hash = Column(EvmHashType(), nullable=True)
    from_address = Column(EvmAddressType(), nullable=True)
    to_address = Column(EvmAddressType(), nullable=True)
    gas_used = Column(BigInteger, nullable=True)
    gas_price = Column(BigInteger, nullable=True)
    status = Column(Enum(OnChainTxStatus, native_enum=False), nullable=False)
    timestamp = Column(Integer, nullable=True)
    tool = Column(String(64), nullable=True)
    session_id = Column(String(78), nullable=True)
    agent_id = Column(String(78), nullable=True)
    pending_tx_id = Column(String(64), nullable=True, index=True)
