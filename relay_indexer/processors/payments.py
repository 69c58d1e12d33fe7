# relay_indexer/processors/payments.py

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from .base import APPLIED, SKIPPED, EventHandler, EventProcessor, SweepTask, address, event_arg
from ..contracts.abi_loader import ERC20
from ..core.constants import PAYMENT_INDEXER
from ..database.types import TransferDirection
from ..types.chain import ChainEvent

ENRICHED = 'enriched'
PENDING = 'pending'


class PaymentTransferProcessor(EventProcessor):
    """USDC ``Transfer`` logs, classified relative to the relay wallet"""

    abi_name = ERC20

    def __init__(self, chain, repos, relay_wallet: Optional[str] = None):
        super().__init__(chain, repos)
        self.relay_wallet = address(relay_wallet)

    def handlers(self) -> Dict[str, EventHandler]:
        return {'Transfer': self._on_transfer}

    def direction(self, sender: Optional[str], recipient: Optional[str]) -> Optional[TransferDirection]:
        if self.relay_wallet is None:
            return TransferDirection.EXTERNAL
        if recipient == self.relay_wallet:
            return TransferDirection.INCOMING
        if sender == self.relay_wallet:
            return TransferDirection.OUTGOING
        return None

    def accepts(self, event: ChainEvent) -> bool:
        sender = address(event_arg(event, 'from', 0))
        recipient = address(event_arg(event, 'to', 1))
        return self.direction(sender, recipient) is not None

    def _on_transfer(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        sender = address(event_arg(event, 'from', 0))
        recipient = address(event_arg(event, 'to', 1))
        direction = self.direction(sender, recipient)
        if direction is None:
            return SKIPPED

        _, created = self.repos.payment_events.insert_if_absent(
            session,
            {'tx_hash': event.transaction_hash.lower(), 'log_index': event.log_index},
            token_address=address(event.contract_address),
            from_address=sender,
            to_address=recipient,
            amount=int(event_arg(event, 'value', 2)),
            direction=direction,
            block_number=event.block_number,
            timestamp=timestamp,
        )
        return APPLIED if created else SKIPPED


class PaymentEnrichmentTask(SweepTask):
    """Backfills ``payments.block_number`` for facilitator-settled payments"""

    name = PAYMENT_INDEXER

    DEFERRED_OUTCOMES = frozenset({PENDING})

    def collect(self) -> List[Tuple[str, str]]:
        with self.repos.get_session() as session:
            payments = self.repos.payments.settled_without_block(session, self.batch_size)
            return [(payment.payment_id, payment.tx_hash) for payment in payments]

    def describe(self, item: Tuple[str, str]) -> Dict[str, Any]:
        return {'payment_id': item[0], 'tx_hash': item[1]}

    def apply(self, item: Tuple[str, str]) -> str:
        payment_id, tx_hash = item
        tx = self.chain.get_transaction(tx_hash)
        block_number = tx.get('blockNumber') if tx else None
        if not block_number:
            return PENDING

        timestamp = self.resolve_timestamp(int(block_number))
        with self.repos.get_transaction() as session:
            payment = self.repos.payments.get_by_key(session, payment_id=payment_id)
            if payment is None or payment.block_number:
                return SKIPPED
            payment.block_number = int(block_number)
            if payment.timestamp is None:
                payment.timestamp = timestamp

        self.log_debug("Payment enriched", payment_id=payment_id,
                       tx_hash=tx_hash, block_number=block_number)
        return ENRICHED
