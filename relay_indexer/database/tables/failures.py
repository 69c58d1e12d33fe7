# relay_indexer/database/tables/failures.py

from sqlalchemy import Boolean, Column, Integer, String, Text

from ..base import DBBaseModel
from ..types import EvmHashType


class DBFailedEvent(DBBaseModel):
    """Events whose processing failed while the cursor moved past them"""
    __tablename__ = 'indexer_failed_events'

    job_name = Column(String(64), primary_key=True)
    tx_hash = Column(EvmHashType(), primary_key=True)
    log_index = Column(Integer, primary_key=True)
    block_number = Column(Integer, nullable=False, index=True)
    event_name = Column(String(128), nullable=False)
    error = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=1)
    resolved = Column(Boolean, nullable=False, default=False, index=True)
