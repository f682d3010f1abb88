"""Agent registry.

Tracks the identities of agents that submit and stake on claims. Agents
are auto-registered on first contact with a deterministic wallet and a
neutral trust score; the reward workflow feeds accuracy back into that
score as an exponential moving average.
"""

from __future__ import annotations

import hashlib
import logging
import re
from datetime import UTC, datetime
from typing import Any

from ..core.exceptions import NotFoundError, ValidationException
from .constants import WorkflowConstants
from .models import AgentIdentity

logger = logging.getLogger(__name__)

_WALLET_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def derive_wallet_address(agent_id: str) -> str:
    """Deterministic placeholder wallet for agents that bring none."""
    digest = hashlib.sha256(agent_id.encode("utf-8")).hexdigest()
    return f"0x{digest[:40]}"


def validate_wallet_address(address: str) -> bool:
    return bool(_WALLET_RE.match(address or ""))


def extract_agent_id(ctx: dict[str, Any] | None) -> str | None:
    """Find an agent id in a caller context.

    Looks, in order, at ``agent.id``, ``session.agentId``, ``user.agentId``
    and the ``x-agent-id`` header.
    """
    if not ctx:
        return None
    candidates = (
        (ctx.get("agent") or {}).get("id"),
        (ctx.get("session") or {}).get("agentId"),
        (ctx.get("user") or {}).get("agentId"),
        (ctx.get("headers") or {}).get("x-agent-id"),
    )
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return None


def extract_agent_name(ctx: dict[str, Any] | None) -> str | None:
    if not ctx:
        return None
    for candidate in (
        (ctx.get("agent") or {}).get("name"),
        (ctx.get("session") or {}).get("agentName"),
        (ctx.get("user") or {}).get("name"),
    ):
        if candidate:
            return str(candidate)
    return None


class AgentRegistry:
    """In-process registry of agent identities.

    Agents are never removed; only their trust score and activity
    timestamp change.
    """

    def __init__(self) -> None:
        self._agents: dict[str, AgentIdentity] = {}

    def __len__(self) -> int:
        return len(self._agents)

    def register(
        self,
        agent_id: str,
        display_name: str | None = None,
        wallet_address: str | None = None,
        capabilities: list[str] | None = None,
    ) -> AgentIdentity:
        """Register an agent, replacing nothing if it already exists.

        Raises:
            ValidationException: If agent_id is empty or the wallet is malformed
        """
        if not agent_id:
            raise ValidationException("Agent id is required", "agent_id")
        existing = self._agents.get(agent_id)
        if existing is not None:
            return existing

        if wallet_address is not None and not validate_wallet_address(wallet_address):
            raise ValidationException("Invalid wallet address", "wallet_address", wallet_address)

        agent = AgentIdentity(
            agent_id=agent_id,
            display_name=display_name or f"Agent {agent_id[-4:]}",
            wallet_address=wallet_address or derive_wallet_address(agent_id),
            capabilities=list(capabilities or WorkflowConstants.DEFAULT_CAPABILITIES),
        )
        self._agents[agent_id] = agent
        logger.info(f"Agent registered: {agent_id} ({agent.display_name}) wallet={agent.wallet_address}")
        return agent

    def get(self, agent_id: str) -> AgentIdentity | None:
        return self._agents.get(agent_id)

    def get_or_register(self, agent_id: str, display_name: str | None = None) -> AgentIdentity:
        agent = self._agents.get(agent_id)
        if agent is None:
            agent = self.register(agent_id, display_name=display_name)
        return self.touch(agent_id) or agent

    def track(self, agent: AgentIdentity) -> AgentIdentity:
        """Adopt an identity built elsewhere, keeping an already-registered one."""
        registered = self._agents.setdefault(agent.agent_id, agent)
        registered.last_active = datetime.now(UTC)
        return registered

    def resolve_from_context(self, ctx: dict[str, Any] | None) -> AgentIdentity | None:
        """Identity of the agent named in a caller context, registering it if new."""
        agent_id = extract_agent_id(ctx)
        if agent_id is None:
            logger.warning("No agent id found in context")
            return None
        return self.get_or_register(agent_id, display_name=extract_agent_name(ctx))

    def touch(self, agent_id: str) -> AgentIdentity | None:
        """Mark an agent as active now."""
        agent = self._agents.get(agent_id)
        if agent is not None:
            agent.last_active = datetime.now(UTC)
        return agent

    def update_trust_score(self, agent_id: str, accuracy_score: float) -> AgentIdentity:
        """Move an agent's trust toward ``accuracy_score``.

        Raises:
            NotFoundError: If the agent is not registered
        """
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError("Agent", agent_id)

        alpha = WorkflowConstants.TRUST_EMA_ALPHA
        old_score = agent.trust_score
        new_score = old_score * (1 - alpha) + accuracy_score * alpha
        agent.trust_score = min(1.0, max(0.0, new_score))
        logger.info(f"Agent {agent_id} trust score updated: {old_score:.3f} -> {agent.trust_score:.3f}")
        return agent

    def list_agents(self) -> list[AgentIdentity]:
        return list(self._agents.values())
