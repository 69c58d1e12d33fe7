# relay_indexer/database/repositories/feedback_repository.py

from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..base_repository import BaseRepository
from ..tables import DBFeedbackEvent


class FeedbackRepository(BaseRepository[DBFeedbackEvent]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBFeedbackEvent)

    def revoke_matching(self, session: Session, subject: str, submitter: str, tag: str,
                        block_number: int, log_index: int, revoked_tx_hash: str) -> int:
        """Flag feedback from ``submitter`` about ``subject`` that precedes the revocation."""
        rows = session.query(DBFeedbackEvent).filter(
            DBFeedbackEvent.subject_address == subject.lower(),
            DBFeedbackEvent.submitter_address == submitter.lower(),
            DBFeedbackEvent.tag == tag,
            or_(
                DBFeedbackEvent.block_number < block_number,
                (DBFeedbackEvent.block_number == block_number) & (DBFeedbackEvent.log_index < log_index),
            ),
        ).all()
        for row in rows:
            row.is_revoked = True
            row.revoked_tx_hash = revoked_tx_hash
        session.flush()
        return len(rows)

    def active_scores(self, session: Session, subject: str,
                      tag: Optional[str] = None) -> List[Tuple[int, int]]:
        """(score, timestamp) for unrevoked feedback about ``subject``"""
        query = session.query(DBFeedbackEvent.score, DBFeedbackEvent.timestamp).filter(
            DBFeedbackEvent.subject_address == subject.lower(),
            DBFeedbackEvent.is_revoked.is_(False),
        )
        if tag is not None:
            query = query.filter(DBFeedbackEvent.tag == tag)
        return [(row[0], row[1]) for row in query.all()]
