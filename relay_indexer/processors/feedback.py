# relay_indexer/processors/feedback.py

from typing import Dict

from sqlalchemy.orm import Session

from .base import APPLIED, SKIPPED, EventHandler, EventProcessor, address, event_arg
from ..contracts.abi_loader import REPUTATION_REGISTRY
from ..types.chain import ChainEvent


class FeedbackProcessor(EventProcessor):
    abi_name = REPUTATION_REGISTRY

    def handlers(self) -> Dict[str, EventHandler]:
        return {
            'FeedbackSubmitted': self._on_submitted,
            'FeedbackRevoked': self._on_revoked,
        }

    def _on_submitted(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        _, created = self.repos.feedback.insert_if_absent(
            session,
            {'tx_hash': event.transaction_hash.lower(), 'log_index': event.log_index},
            block_number=event.block_number,
            timestamp=timestamp,
            subject_address=address(event_arg(event, 'subject', 0)),
            submitter_address=address(event_arg(event, 'submitter', 1)),
            tag=event_arg(event, 'tag', 2),
            score=int(event_arg(event, 'score', 3)),
            comment=event_arg(event, 'comment', 4),
            is_revoked=False,
        )
        return APPLIED if created else SKIPPED

    def _on_revoked(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        revoked = self.repos.feedback.revoke_matching(
            session,
            subject=event_arg(event, 'subject', 0),
            submitter=event_arg(event, 'submitter', 1),
            tag=event_arg(event, 'tag', 2),
            block_number=event.block_number,
            log_index=event.log_index,
            revoked_tx_hash=event.transaction_hash.lower(),
        )
        self.log_debug("Feedback revoked", tx_hash=event.transaction_hash, revoked=revoked)
        return APPLIED
