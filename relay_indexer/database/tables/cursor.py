# relay_indexer/database/tables/cursor.py

from sqlalchemy import Column, DateTime, Integer, String

from ..base import DBBaseModel, utcnow


class DBIndexerCursor(DBBaseModel):
    __tablename__ = 'indexer_state'

    job_name = Column(String(64), primary_key=True)
    last_block = Column(Integer, nullable=True)
    last_run_at = Column(DateTime(timezone=True), nullable=True)

    def advance_to(self, block: int) -> None:
        if self.last_block is None or block > self.last_block:
            self.last_block = block
        self.last_run_at = utcnow()

    def touch(self) -> None:
        self.last_run_at = utcnow()
