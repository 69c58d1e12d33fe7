# relay_indexer/database/tables/feedback.py

from sqlalchemy import Boolean, Column, Index, Integer, String, Text

from ..base import DBEventLogModel
from ..types import EvmAddressType, EvmHashType


class DBFeedbackEvent(DBEventLogModel):
    __tablename__ = 'feedback_events'

    subject_address = Column(EvmAddressType(), nullable=False, index=True)
    submitter_address = Column(EvmAddressType(), nullable=False, index=True)
    tag = Column(String(128), nullable=False)
    score = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_revoked = Column(Boolean, nullable=False, default=False)
    revoked_tx_hash = Column(EvmHashType(), nullable=True)

    __table_args__ = (
        Index('idx_feedback_subject_tag', 'subject_address', 'tag'),
    )
