# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Exception types for the microagent registry and dispatcher.

This module defines a hierarchy of exceptions:

- MicroagentError: Base exception for all microagent errors
- InvalidAgentError: Structurally invalid agent (no triggers, blank trigger)
- DuplicateAgentError: Agent id already registered
- NotFoundError: Unknown agent id
- EmptyPromptError: Blank prompt passed to the dispatcher
- AgentLoadError: A microagent source file failed to load or validate

All errors are raised at the offending call. Nothing here is retried.
"""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "AgentLoadError",
    "DuplicateAgentError",
    "EmptyPromptError",
    "InvalidAgentError",
    "MicroagentError",
    "NotFoundError",
]


class MicroagentError(Exception):
    """Base exception for microagent errors."""

    pass


class InvalidAgentError(MicroagentError, ValueError):
    """Raised when an agent is structurally invalid at registration time.

    Attributes:
        agent_id: Id of the offending agent, if one was given.
    """

    def __init__(self, message: str, agent_id: str | None = None) -> None:
        self.agent_id = agent_id
        super().__init__(message)


class DuplicateAgentError(MicroagentError):
    """Raised when an agent id is already present in the registry.

    Example:
        >>> raise DuplicateAgentError("backend")
        DuplicateAgentError: Agent already registered: 'backend'
    """

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent already registered: {agent_id!r}")


class NotFoundError(MicroagentError, KeyError):
    """Raised when looking up an agent id that is not registered."""

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(agent_id)

    def __str__(self) -> str:
        # KeyError would repr() the key
        return f"Agent not found: {self.agent_id!r}"


class EmptyPromptError(MicroagentError, ValueError):
    """Raised when the dispatcher receives an empty or whitespace-only prompt."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Prompt is empty or whitespace only")


class AgentLoadError(MicroagentError):
    """Raised when a microagent source fails to load or validate.

    Attributes:
        path: Path to the file that failed.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self, message: str, path: Path, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.path = path
        self.cause = cause
