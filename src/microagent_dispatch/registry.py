# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Agent registry with copy-on-write snapshots.

The registry owns the authoritative set of microagents. Its contents live in
an immutable ``RegistrySnapshot``; every mutation builds a new snapshot and
publishes it with a single reference assignment. Readers grab the current
snapshot once and see a consistent set for as long as they hold it, so
``dispatch`` and ``all()`` never observe a half-applied ``replace``.

Writers (``register``, ``add``, ``replace``) are serialized by a lock.
Readers take no lock.

Usage:
    >>> from microagent_dispatch.registry import Registry
    >>>
    >>> registry = Registry()
    >>> _ = registry.register("backend", ["django", "backend", "api"], "# Backend")
    >>> _ = registry.register("qa", ["test", "pytest", "qa"], "# QA")
    >>> [agent.id for agent in registry.all()]
    ['backend', 'qa']
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from microagent_dispatch.errors import (
    DuplicateAgentError,
    InvalidAgentError,
    NotFoundError,
)
from microagent_dispatch.models import Agent, AgentSpec

__all__ = ["Registry", "RegistrySnapshot"]

logger = logging.getLogger(__name__)


class RegistrySnapshot:
    """Immutable, registration-ordered view of a registry's agents.

    Iterating a snapshot is restartable and always yields the same agents in
    the same order. Membership tests accept either an agent id or an Agent.
    """

    __slots__ = ("_agents", "_index")

    def __init__(self, agents: tuple[Agent, ...] = ()) -> None:
        self._agents = agents
        self._index: Mapping[str, Agent] = MappingProxyType(
            {agent.id: agent for agent in agents}
        )

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Agent):
            return self._index.get(item.id) == item
        return item in self._index

    def __repr__(self) -> str:
        return f"RegistrySnapshot(ids={list(self._index)!r})"

    @property
    def agents(self) -> tuple[Agent, ...]:
        """All agents, in registration order."""
        return self._agents

    def ids(self) -> tuple[str, ...]:
        """Agent ids in registration order."""
        return tuple(agent.id for agent in self._agents)

    def get(self, agent_id: str) -> Agent:
        """Return the agent with ``agent_id``.

        Raises:
            NotFoundError: If no such agent is in this snapshot.
        """
        try:
            return self._index[agent_id]
        except KeyError:
            raise NotFoundError(agent_id) from None


def _coerce_agent(value: Agent | Mapping[str, Any]) -> Agent:
    """Accept an Agent or a raw mapping and return a validated Agent."""
    if isinstance(value, Agent):
        agent = value
    else:
        try:
            agent = Agent.model_validate(value)
        except ValidationError as e:
            agent_id = value.get("id") if isinstance(value, Mapping) else None
            raise InvalidAgentError(
                f"Invalid agent definition: {e.error_count()} validation error(s)",
                agent_id=agent_id if isinstance(agent_id, str) else None,
            ) from e
    _validate_agent(agent)
    return agent


def _validate_agent(agent: Agent) -> None:
    if not agent.id:
        raise InvalidAgentError("Agent id must not be blank")
    if not agent.triggers:
        raise InvalidAgentError(
            f"Agent {agent.id!r} has no trigger phrases", agent_id=agent.id
        )
    if any(not phrase for phrase in agent.triggers):
        raise InvalidAgentError(
            f"Agent {agent.id!r} has an empty or whitespace-only trigger phrase",
            agent_id=agent.id,
        )


def _build_snapshot(agents: Iterable[Agent | Mapping[str, Any]]) -> RegistrySnapshot:
    """Validate every agent and build a snapshot, or raise without side effects."""
    collected: dict[str, Agent] = {}
    for value in agents:
        agent = _coerce_agent(value)
        if agent.id in collected:
            raise DuplicateAgentError(agent.id)
        collected[agent.id] = agent
    return RegistrySnapshot(tuple(collected.values()))


class Registry:
    """Mapping of agent id to Agent, preserving registration order.

    Registration order is the dispatcher's output order, so it is part of the
    registry's contract.
    """

    def __init__(self, agents: Iterable[Agent | Mapping[str, Any]] = ()) -> None:
        """Initialize the registry.

        Args:
            agents: Optional initial agents, validated as a whole.

        Raises:
            InvalidAgentError: If any agent is structurally invalid.
            DuplicateAgentError: If two agents share an id.
        """
        self._lock = threading.Lock()
        self._snapshot = _build_snapshot(agents)

    @classmethod
    def from_specs(cls, specs: Iterable[AgentSpec | Mapping[str, Any]]) -> Registry:
        """Build a registry from loader output."""
        return cls(specs)

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    def snapshot(self) -> RegistrySnapshot:
        """Return the current snapshot. Safe to call from any thread."""
        return self._snapshot

    def all(self) -> RegistrySnapshot:
        """Return every registered agent in registration order.

        The returned snapshot can be iterated any number of times and is not
        affected by later mutations of the registry.
        """
        return self._snapshot

    def get(self, agent_id: str) -> Agent:
        """Return the agent registered under ``agent_id``.

        Raises:
            NotFoundError: If the id is not registered.
        """
        return self._snapshot.get(agent_id)

    def ids(self) -> tuple[str, ...]:
        return self._snapshot.ids()

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, item: object) -> bool:
        return item in self._snapshot

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._snapshot)

    def __repr__(self) -> str:
        return f"Registry(ids={list(self._snapshot.ids())!r})"

    # -------------------------------------------------------------------------
    # Writers
    # -------------------------------------------------------------------------

    def register(
        self,
        agent_id: str,
        triggers: Iterable[str],
        payload: str = "",
        *,
        description: str = "",
        source: str | None = None,
    ) -> Agent:
        """Build an agent from its parts and add it to the registry.

        Args:
            agent_id: Unique identifier.
            triggers: Trigger phrases, in priority order.
            payload: Guidance text returned on match.
            description: Optional one-line summary.
            source: Optional origin, for diagnostics.

        Returns:
            The registered Agent (with normalized triggers).

        Raises:
            InvalidAgentError: If triggers are empty or contain a blank phrase.
            DuplicateAgentError: If ``agent_id`` is already registered.
        """
        if isinstance(triggers, str):
            raise InvalidAgentError(
                "triggers must be a sequence of phrases, not a string",
                agent_id=agent_id,
            )
        agent = _coerce_agent(
            {
                "id": agent_id,
                "triggers": tuple(triggers),
                "payload": payload,
                "description": description,
                "source": source,
            }
        )
        return self.add(agent)

    def add(self, agent: Agent) -> Agent:
        """Add a pre-built agent.

        The registry is left unchanged if the call fails.

        Raises:
            InvalidAgentError: If the agent is structurally invalid.
            DuplicateAgentError: If the agent's id is already registered.
        """
        agent = _coerce_agent(agent)
        with self._lock:
            current = self._snapshot
            if agent.id in current:
                raise DuplicateAgentError(agent.id)
            self._snapshot = RegistrySnapshot(current.agents + (agent,))
        logger.debug(
            "Registered agent %s with %d trigger(s)", agent.id, len(agent.triggers)
        )
        return agent

    def replace(self, agents: Iterable[AgentSpec | Mapping[str, Any]]) -> None:
        """Atomically swap the entire registry contents.

        The new set is validated in full before anything is published. On
        failure the previous contents remain in place.

        Raises:
            InvalidAgentError: If any agent is structurally invalid.
            DuplicateAgentError: If two of the new agents share an id.
        """
        new_snapshot = _build_snapshot(agents)
        with self._lock:
            old_count = len(self._snapshot)
            self._snapshot = new_snapshot
        logger.info(
            "Registry replaced: %d agent(s) -> %d agent(s)",
            old_count,
            len(new_snapshot),
        )
