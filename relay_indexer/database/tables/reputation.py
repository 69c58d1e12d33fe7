# relay_indexer/database/tables/reputation.py

from sqlalchemy import Column, DateTime, Float, Integer, String

from ..base import DBBaseModel
from ..types import EvmAddressType


class DBAgentReputation(DBBaseModel):
    __tablename__ = 'agent_reputation'

    agent_address = Column(EvmAddressType(), primary_key=True)
    tag = Column(String(128), primary_key=True)
    reputation_score = Column(Integer, nullable=False, default=0)
    feedback_count = Column(Integer, nullable=False, default=0)
    successful_transactions = Column(Integer, nullable=False, default=0)
    failed_transactions = Column(Integer, nullable=False, default=0)
    success_rate = Column(Float, nullable=False, default=0.0)
    last_calculated = Column(DateTime(timezone=True), nullable=True)
