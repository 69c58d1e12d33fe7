# relay_indexer/database/tables/agents.py

from typing import Tuple

from sqlalchemy import Boolean, Column, Integer, String, Text

from ..base import DBBaseModel
from ..types import EvmAddressType, EvmHashType


class DBAgent(DBBaseModel):
    __tablename__ = 'agents'

    agent_id = Column(String(78), primary_key=True)
    owner_address = Column(EvmAddressType(), nullable=True, index=True)
    agent_uri = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    registered_at = Column(Integer, nullable=True)
    registration_tx_hash = Column(EvmHashType(), nullable=True)
    registration_block = Column(Integer, nullable=True)

    # Position of the newest registry event folded into this row
    last_event_block = Column(Integer, nullable=False, default=0)
    last_log_index = Column(Integer, nullable=False, default=-1)

    @property
    def last_position(self) -> Tuple[int, int]:
        return (self.last_event_block, self.last_log_index)

    def has_applied(self, position: Tuple[int, int]) -> bool:
        return position <= self.last_position

    def mark_applied(self, position: Tuple[int, int]) -> None:
        self.last_event_block, self.last_log_index = position
