# relay_indexer/database/repositories/reputation_repository.py

from ..base_repository import BaseRepository
from ..tables import DBAgentReputation


class ReputationRepository(BaseRepository[DBAgentReputation]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBAgentReputation)
