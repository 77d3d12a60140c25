# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Render dispatch results into a markdown context block.

The host decides where the block goes; this module only builds it.

Selection is deterministic and constraint-first:
1. Sections are taken in result order (registry order).
2. A section that would push the block past ``max_chars`` is skipped whole;
   later, smaller sections may still fit.
3. Payloads are never truncated mid-text.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from microagent_dispatch.models import Agent, MatchResult
from microagent_dispatch.registry import Registry, RegistrySnapshot

__all__ = [
    "INJECTION_HEADER",
    "InjectionResult",
    "format_agent_section",
    "render_context",
]

INJECTION_HEADER = "## Microagent Guidance\n\n"

SECTION_SEPARATOR = "\n---\n\n"


@dataclass(frozen=True)
class InjectionResult:
    """Rendered context for one dispatch.

    Attributes:
        content: Markdown block, empty when nothing was selected.
        agent_ids: Agents whose payloads are in ``content``, in order.
        skipped_agent_ids: Matched agents left out by the character budget.
    """

    content: str
    agent_ids: tuple[str, ...]
    skipped_agent_ids: tuple[str, ...]

    @property
    def char_count(self) -> int:
        return len(self.content)


def format_agent_section(agent: Agent, result: MatchResult) -> str:
    """Format one selected agent as a markdown section."""
    lines = [
        f"### {agent.id}",
        "",
        f"*Triggered by: {', '.join(result.matched_triggers)}*",
        "",
    ]
    payload = agent.payload.strip()
    if payload:
        lines.append(payload)
        lines.append("")
    return "\n".join(lines)


def render_context(
    results: Sequence[MatchResult],
    registry: Registry | RegistrySnapshot,
    max_chars: int = 16000,
) -> InjectionResult:
    """Build the context block for a set of match results.

    Args:
        results: Output of ``dispatch``.
        registry: Registry (or snapshot) the results were produced from.
        max_chars: Upper bound on the rendered block, header included.

    Returns:
        InjectionResult with the block and the included/skipped agent ids.

    Raises:
        NotFoundError: If a result names an agent the registry does not hold.
        ValueError: If ``max_chars`` is negative.
    """
    if max_chars < 0:
        raise ValueError(f"max_chars must be >= 0, got {max_chars}")
    if isinstance(registry, Registry):
        registry = registry.snapshot()

    if not results:
        return InjectionResult(content="", agent_ids=(), skipped_agent_ids=())

    sections: list[str] = []
    included: list[str] = []
    skipped: list[str] = []
    used = len(INJECTION_HEADER)

    for result in results:
        section = format_agent_section(registry.get(result.agent_id), result)
        cost = len(section) + (len(SECTION_SEPARATOR) if sections else 0)
        if used + cost > max_chars:
            skipped.append(result.agent_id)
            continue
        sections.append(section)
        included.append(result.agent_id)
        used += cost

    content = INJECTION_HEADER + SECTION_SEPARATOR.join(sections) if sections else ""
    return InjectionResult(
        content=content,
        agent_ids=tuple(included),
        skipped_agent_ids=tuple(skipped),
    )
