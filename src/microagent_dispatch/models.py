# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pydantic models for microagents and dispatch results.

Models:
    Agent: A named unit of guidance with its trigger phrases.
    AgentSpec: Alias of Agent, the value produced by loaders.
    MatchResult: One selected agent and the triggers that selected it.

Trigger phrases are normalized when the model is built: lower-cased,
surrounding whitespace stripped, internal whitespace collapsed to single
spaces, and repeated phrases dropped (first occurrence wins). Structural
checks (no triggers, blank phrases) are left to the registry so that they
surface as ``InvalidAgentError`` at registration time.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "Agent",
    "AgentSpec",
    "MatchResult",
    "normalize_phrase",
]


def normalize_phrase(phrase: str) -> str:
    """Lower-case a trigger phrase and collapse its whitespace.

    Example:
        >>> normalize_phrase("  API   Spec ")
        'api spec'
    """
    return " ".join(phrase.lower().split())


class Agent(BaseModel):
    """A registered microagent.

    Attributes:
        id: Unique identifier (e.g. "backend", "qa").
        triggers: Ordered, distinct, normalized trigger phrases.
        payload: Guidance text returned to the caller on match. Never parsed.
        description: Optional one-line summary used in listings.
        source: Where the agent was loaded from, if known.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., description="Unique agent identifier")
    triggers: tuple[str, ...] = Field(
        ...,
        description="Trigger phrases in registration order",
    )
    payload: str = Field(
        default="",
        description="Opaque guidance text (markdown body)",
    )
    description: str = Field(
        default="",
        description="Optional one-line summary",
    )
    source: str | None = Field(
        default=None,
        description="Origin of the agent definition (file path)",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _strip_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("triggers", mode="before")
    @classmethod
    def _normalize_triggers(cls, value: Any) -> Any:
        if isinstance(value, str):
            raise ValueError("triggers must be a sequence of phrases, not a string")
        if not isinstance(value, Iterable):
            return value

        seen: set[str] = set()
        normalized: list[str] = []
        for phrase in value:
            if not isinstance(phrase, str):
                raise ValueError(
                    f"trigger phrases must be strings, got {type(phrase).__name__}"
                )
            norm = normalize_phrase(phrase)
            # Blank phrases are kept so the registry can reject them
            if norm and norm in seen:
                continue
            seen.add(norm)
            normalized.append(norm)
        return tuple(normalized)


# Loaders produce AgentSpec values; the registry stores them as-is.
AgentSpec = Agent


class MatchResult(BaseModel):
    """One agent selected by the dispatcher.

    Attributes:
        agent_id: Which agent matched.
        matched_triggers: Every trigger of that agent found in the prompt,
            in trigger registration order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    agent_id: str
    matched_triggers: tuple[str, ...] = Field(..., min_length=1)
