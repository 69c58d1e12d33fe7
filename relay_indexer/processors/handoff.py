# relay_indexer/processors/handoff.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import SKIPPED, SweepTask
from ..core.constants import SUPPORTED_CHAIN_IDS, TRANSACTION_INDEXER
from ..database.types import OnChainTxStatus, PendingTxStatus

CONFIRMED = 'confirmed'
FAILED = 'failed'
PENDING = 'pending'
EXPIRED = 'expired'

REVERTED_MESSAGE = 'Transaction reverted on-chain'


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        return int(value, 16) if value.startswith('0x') else int(value)
    return int(value)


class HandoffCleanupTask(SweepTask):
    """
    Settles handoff signing requests.

    Stale un-broadcast requests expire, mined transactions are confirmed or
    failed from their receipt, everything else stays pending for the next
    trigger. A reverted receipt or an unsupported chain id counts against
    the run.
    """

    name = TRANSACTION_INDEXER

    FAILED_OUTCOMES = frozenset({FAILED})
    DEFERRED_OUTCOMES = frozenset({PENDING})

    def collect(self) -> List[str]:
        with self.repos.get_session() as session:
            return self.repos.pending_transactions.open_transaction_ids(session, self.batch_size)

    def describe(self, item: str) -> Dict[str, Any]:
        return {'transaction_id': item}

    def apply(self, transaction_id: str) -> str:
        with self.repos.get_transaction() as session:
            pending = self.repos.pending_transactions.get_by_key(session, transaction_id=transaction_id)
            if pending is None:
                return SKIPPED

            if pending.status == PendingTxStatus.PENDING and pending.is_expired():
                pending.mark_expired()
                self.repos.state_history.record(session, transaction_id, PendingTxStatus.EXPIRED, {
                    'reason': 'timeout',
                    'expires_at': pending.expires_at.isoformat(),
                })
                return EXPIRED

            if not pending.tx_hash:
                return PENDING

            if pending.chain_id not in SUPPORTED_CHAIN_IDS:
                self.log_error("Unknown chain id for handoff transaction",
                               transaction_id=transaction_id, chain_id=pending.chain_id)
                return FAILED

            tx_hash = pending.tx_hash

        receipt = self.chain.get_transaction_receipt(tx_hash)
        if not receipt or receipt.get('blockNumber') is None:
            return PENDING

        block_number = _as_int(receipt['blockNumber'])
        timestamp = self.resolve_timestamp(block_number)
        succeeded = _as_int(receipt.get('status')) == 1
        gas_used = _as_int(receipt.get('gasUsed'))
        gas_price = _as_int(receipt.get('effectiveGasPrice'))

        with self.repos.get_transaction() as session:
            pending = self.repos.pending_transactions.get_by_key(session, transaction_id=transaction_id)
            if pending is None or pending.status not in (PendingTxStatus.PENDING, PendingTxStatus.BROADCAST):
                return SKIPPED

            if succeeded:
                pending.mark_confirmed(block_number, receipt.get('blockHash'), gas_used,
                                       confirmed_at=datetime.fromtimestamp(timestamp, tz=timezone.utc))
                self.repos.state_history.record(session, transaction_id, PendingTxStatus.CONFIRMED, {
                    'block_number': block_number,
                    'gas_used': gas_used,
                    'effective_gas_price': gas_price,
                })
            else:
                pending.mark_failed(REVERTED_MESSAGE, block_number=block_number)
                self.repos.state_history.record(session, transaction_id, PendingTxStatus.FAILED, {
                    'block_number': block_number,
                    'reason': 'reverted',
                    'gas_used': gas_used,
                })

            self.repos.onchain_transactions.upsert(
                session,
                {'tx_hash': tx_hash.lower()},
                chain_id=pending.chain_id,
                block_number=block_number,
                block_hash=receipt.get('blockHash'),
                from_address=receipt.get('from'),
                to_address=receipt.get('to'),
                gas_used=gas_used,
                gas_price=gas_price,
                status=OnChainTxStatus.SUCCESS if succeeded else OnChainTxStatus.FAILED,
                timestamp=timestamp,
                tool=pending.tool,
                session_id=pending.session_id,
                agent_id=pending.agent_id,
                pending_tx_id=transaction_id,
            )

        self.log_debug("Handoff transaction settled",
                       transaction_id=transaction_id,
                       tx_hash=tx_hash,
                       block_number=block_number,
                       outcome=CONFIRMED if succeeded else FAILED)
        return CONFIRMED if succeeded else FAILED
