# relay_indexer/database/tables/payments.py

from sqlalchemy import Column, Enum, Integer, String

from ..base import DBBaseModel, DBEventLogModel
from ..types import EvmAddressType, EvmHashType, PaymentStatus, TokenAmountType, TransferDirection


class DBPaymentEvent(DBEventLogModel):
    """USDC transfer touching the relay wallet"""
    __tablename__ = 'payment_events'

    token_address = Column(EvmAddressType(), nullable=False)
    from_address = Column(EvmAddressType(), nullable=False, index=True)
    to_address = Column(EvmAddressType(), nullable=False, index=True)
    amount = Column(TokenAmountType(), nullable=False)
    direction = Column(Enum(TransferDirection, native_enum=False), nullable=False)


class DBPayment(DBBaseModel):
    """Facilitator-settled payment. Rows are written upstream; the indexer fills block_number."""
    __tablename__ = 'payments'

    payment_id = Column(String(128), primary_key=True)
    tx_hash = Column(EvmHashType(), nullable=True, index=True)
    from_address = Column(EvmAddressType(), nullable=True, index=True)
    to_address = Column(EvmAddressType(), nullable=True, index=True)
    amount = Column(TokenAmountType(), nullable=False, default=0)
    token_address = Column(EvmAddressType(), nullable=True)
    status = Column(Enum(PaymentStatus, native_enum=False), nullable=False,
                    default=PaymentStatus.VERIFIED, index=True)
    block_number = Column(Integer, nullable=False, default=0)
    timestamp = Column(Integer, nullable=True)

    @property
    def needs_block(self) -> bool:
        return self.status == PaymentStatus.SETTLED and not self.block_number
