# relay_indexer/database/types.py

import enum
from decimal import Decimal
from typing import Optional

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator


class EvmAddressType(TypeDecorator):
    impl = String(42)
    cache_ok = True

    def process_bind_param(self, value: Optional[str], dialect) -> Optional[str]:
        return str(value).lower() if value else None

    def process_result_value(self, value: Optional[str], dialect) -> Optional[str]:
        return value if value else None


class EvmHashType(TypeDecorator):
    impl = String(66)
    cache_ok = True

    def process_bind_param(self, value: Optional[str], dialect) -> Optional[str]:
        return str(value).lower() if value else None

    def process_result_value(self, value: Optional[str], dialect) -> Optional[str]:
        return value if value else None


class TokenAmountType(TypeDecorator):
    """uint256-sized integer. NUMERIC(78, 0) on Postgres, text elsewhere so ints round-trip exactly."""
    impl = Numeric(precision=78, scale=0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(Numeric(precision=78, scale=0))
        return dialect.type_descriptor(String(80))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == 'postgresql':
            return Decimal(int(value))
        return str(int(value))

    def process_result_value(self, value, dialect) -> Optional[int]:
        if value is None:
            return None
        return int(value)


class SessionEventType(enum.Enum):
    DEPOSIT = "DEPOSIT"
    RELEASE = "RELEASE"
    REFUND = "REFUND"
    CLOSE = "CLOSE"
    AUTHORIZE = "AUTHORIZE"
    REVOKE = "REVOKE"


class TransferDirection(enum.Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    EXTERNAL = "external"


class PaymentStatus(enum.Enum):
    VERIFIED = "verified"
    SETTLED = "settled"
    FAILED = "failed"


class TradeSide(enum.Enum):
    LONG = "long"
    SHORT = "short"


class TradeStatus(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    LIQUIDATED = "liquidated"


class PositionEventType(enum.Enum):
    OPEN = "open"
    CLOSE = "close"
    LIQUIDATE = "liquidate"


class PendingTxStatus(enum.Enum):
    PENDING = "pending"
    SIGNED = "signed"
    BROADCAST = "broadcast"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    EXPIRED = "expired"


class OnChainTxStatus(enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class RwaAssignmentStatus(enum.Enum):
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    FAILED = "failed"
