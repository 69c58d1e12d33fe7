# relay_indexer/processors/trades.py

from typing import Dict

from sqlalchemy.orm import Session

from .base import APPLIED, SKIPPED, EventHandler, EventProcessor, address, event_arg
from ..contracts.abi_loader import PERP_VENUE
from ..database.types import PositionEventType, TradeSide, TradeStatus
from ..types.chain import ChainEvent


class TradeProcessor(EventProcessor):
    abi_name = PERP_VENUE

    def handlers(self) -> Dict[str, EventHandler]:
        return {
            'PositionOpened': self._on_opened,
            'PositionClosed': self._on_closed,
            'PositionLiquidated': self._on_liquidated,
        }

    def _record_event(self, session: Session, event: ChainEvent, timestamp: int,
                      event_type: PositionEventType) -> bool:
        _, created = self.repos.position_events.insert_if_absent(
            session,
            {'tx_hash': event.transaction_hash.lower(), 'log_index': event.log_index},
            position_key=str(event_arg(event, 'positionKey', 0)).lower(),
            event_type=event_type,
            block_number=event.block_number,
            timestamp=timestamp,
        )
        return created

    def _on_opened(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        if not self._record_event(session, event, timestamp, PositionEventType.OPEN):
            return SKIPPED
        trade = self.repos.trades.get_or_create(session, str(event_arg(event, 'positionKey', 0)))
        trade.user_address = address(event_arg(event, 'trader', 1))
        trade.pair = event_arg(event, 'pair', 2)
        trade.side = TradeSide.LONG if event_arg(event, 'isLong', 3) else TradeSide.SHORT
        trade.size_usd = int(event_arg(event, 'sizeUsd', 4))
        trade.entry_price = int(event_arg(event, 'entryPrice', 5))
        trade.leverage = int(event_arg(event, 'leverage', 6))
        trade.tx_hash_open = event.transaction_hash.lower()
        trade.opened_at = timestamp
        return APPLIED

    def _on_closed(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        if not self._record_event(session, event, timestamp, PositionEventType.CLOSE):
            return SKIPPED
        trade = self.repos.trades.get_or_create(session, str(event_arg(event, 'positionKey', 0)))
        trade.exit_price = int(event_arg(event, 'exitPrice', 1))
        trade.pnl_usd = int(event_arg(event, 'pnlUsd', 2))
        trade.status = TradeStatus.CLOSED
        trade.tx_hash_close = event.transaction_hash.lower()
        trade.closed_at = timestamp
        return APPLIED

    def _on_liquidated(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        if not self._record_event(session, event, timestamp, PositionEventType.LIQUIDATE):
            return SKIPPED
        trade = self.repos.trades.get_or_create(session, str(event_arg(event, 'positionKey', 0)))
        trade.liquidation_price = int(event_arg(event, 'liquidationPrice', 1))
        trade.pnl_usd = int(event_arg(event, 'pnlUsd', 2))
        trade.status = TradeStatus.LIQUIDATED
        trade.tx_hash_close = event.transaction_hash.lower()
        trade.closed_at = timestamp
        return APPLIED
