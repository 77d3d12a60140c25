# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Microagent dispatch - keyword-triggered context loading.

A registry of named agents (guidance text plus trigger phrases) and a
dispatcher that decides which agents a free-text prompt activates.

Usage:
    from microagent_dispatch import Registry, dispatch

    registry = Registry()
    registry.register("backend", ["django", "backend", "api"], backend_md)
    registry.register("qa", ["test", "pytest", "qa"], qa_md)

    for result in dispatch("Implement the Django backend", registry):
        print(result.agent_id, result.matched_triggers)
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("microagent-dispatch")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from microagent_dispatch.dispatcher import TriggerMatcher, dispatch
from microagent_dispatch.errors import (
    AgentLoadError,
    DuplicateAgentError,
    EmptyPromptError,
    InvalidAgentError,
    MicroagentError,
    NotFoundError,
)
from microagent_dispatch.models import Agent, AgentSpec, MatchResult
from microagent_dispatch.registry import Registry, RegistrySnapshot

__all__ = [
    "Agent",
    "AgentLoadError",
    "AgentSpec",
    "DuplicateAgentError",
    "EmptyPromptError",
    "InvalidAgentError",
    "MatchResult",
    "MicroagentError",
    "NotFoundError",
    "Registry",
    "RegistrySnapshot",
    "TriggerMatcher",
    "__version__",
    "dispatch",
]
