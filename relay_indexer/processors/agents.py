# relay_indexer/processors/agents.py

from typing import Dict

from sqlalchemy.orm import Session

from .base import APPLIED, SKIPPED, EventHandler, EventProcessor, address, event_arg
from ..contracts.abi_loader import IDENTITY_REGISTRY
from ..types.chain import ChainEvent


class AgentRegistryProcessor(EventProcessor):
    """
    IdentityRegistry lifecycle events folded into one ``agents`` row per id.

    The row remembers the (block, log_index) of the last event applied to
    it; anything at or before that position is a replay and is skipped.
    """

    abi_name = IDENTITY_REGISTRY

    def handlers(self) -> Dict[str, EventHandler]:
        return {
            'AgentRegistered': self._on_registered,
            'AgentDeactivated': self._on_deactivated,
            'AgentReactivated': self._on_reactivated,
            'AgentURIUpdated': self._on_uri_updated,
        }

    def _load(self, session: Session, event: ChainEvent):
        agent_id = str(event_arg(event, 'agentId', 0))
        agent = self.repos.agents.get_or_create(session, agent_id)
        if agent.has_applied(event.position):
            self.log_debug("Skipping already applied registry event",
                           event_name=event.event_name,
                           tx_hash=event.transaction_hash,
                           log_index=event.log_index)
            return None
        return agent

    def _on_registered(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        agent = self._load(session, event)
        if agent is None:
            return SKIPPED
        agent.owner_address = address(event_arg(event, 'owner', 1))
        agent.agent_uri = event_arg(event, 'agentURI', 2)
        agent.is_active = True
        agent.registered_at = timestamp
        agent.registration_tx_hash = event.transaction_hash.lower()
        agent.registration_block = event.block_number
        agent.mark_applied(event.position)
        return APPLIED

    def _on_deactivated(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        agent = self._load(session, event)
        if agent is None:
            return SKIPPED
        agent.is_active = False
        agent.mark_applied(event.position)
        return APPLIED

    def _on_reactivated(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        agent = self._load(session, event)
        if agent is None:
            return SKIPPED
        agent.is_active = True
        agent.mark_applied(event.position)
        return APPLIED

    def _on_uri_updated(self, session: Session, event: ChainEvent, timestamp: int) -> str:
        agent = self._load(session, event)
        if agent is None:
            return SKIPPED
        agent.agent_uri = event_arg(event, 'newURI', 1)
        agent.mark_applied(event.position)
        return APPLIED
