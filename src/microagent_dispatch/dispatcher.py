# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Keyword-triggered microagent dispatch.

Matches a free-text prompt against every agent's trigger phrases and returns
the selected agents in registry order.

Matching rules:
1. The prompt is lower-cased. Whitespace and punctuation are left as-is.
2. A trigger matches when it occurs in the prompt starting and ending on a
   word boundary, so "react" does not fire on "reactor" and "poly" does not
   fire on "polymorphic".
3. Multi-word triggers match only as the same words separated by single
   spaces: "api spec" fires on "an api spec now" but not on
   "spec out the api".
4. The last word may carry a plain plural suffix ("s" or "es"), so "test"
   fires on "write tests".
5. Every matching trigger of a selected agent is reported, in the order the
   triggers were registered.

Dispatch is pure: it reads one registry snapshot, performs no I/O and does
not log, so it can be called from any number of threads at once.

Usage:
    >>> from microagent_dispatch import Registry, dispatch
    >>> registry = Registry()
    >>> _ = registry.register("frontend", ["react", "component"])
    >>> dispatch("Build react components", registry)
    [MatchResult(agent_id='frontend', matched_triggers=('react', 'component'))]
"""

from __future__ import annotations

import functools
import re

from microagent_dispatch.errors import EmptyPromptError
from microagent_dispatch.models import Agent, MatchResult, normalize_phrase
from microagent_dispatch.registry import Registry, RegistrySnapshot

__all__ = [
    "TriggerMatcher",
    "dispatch",
    "normalize_prompt",
    "phrase_matches",
]

_PLURAL_SUFFIX = r"(?:e?s)?"

_CompiledAgent = tuple[Agent, tuple[tuple[str, re.Pattern[str]], ...]]


def normalize_prompt(prompt: str) -> str:
    """Lower-case a prompt, keeping whitespace and punctuation intact.

    Raises:
        EmptyPromptError: If the prompt is empty or whitespace only.
    """
    if not prompt or not prompt.strip():
        raise EmptyPromptError()
    return prompt.lower()


@functools.lru_cache(maxsize=4096)
def _compile_phrase(phrase: str) -> re.Pattern[str]:
    """Compile a normalized trigger phrase into a word-bounded pattern.

    Lookarounds are used instead of ``\\b`` so that phrases starting or ending
    with punctuation ("c++", ".net") still get a sensible boundary.
    """
    suffix = _PLURAL_SUFFIX if phrase[-1].isalnum() else ""
    return re.compile(r"(?<!\w)" + re.escape(phrase) + suffix + r"(?!\w)")


def phrase_matches(trigger: str, text: str) -> bool:
    """Check whether ``trigger`` occurs in ``text`` as whole word(s).

    Both arguments are normalized here, so callers can pass raw strings.

    Example:
        >>> phrase_matches("react", "I need a reactor core")
        False
        >>> phrase_matches("React", "Build react components")
        True
    """
    phrase = normalize_phrase(trigger)
    if not phrase:
        return False
    return _compile_phrase(phrase).search(text.lower()) is not None


class TriggerMatcher:
    """Trigger matcher bound to one registry snapshot.

    Compiles every trigger of every agent once, then matches any number of
    prompts against that fixed agent set. A matcher never observes later
    registry changes; build a new one after ``Registry.replace``.
    """

    def __init__(self, snapshot: RegistrySnapshot | Registry) -> None:
        if isinstance(snapshot, Registry):
            snapshot = snapshot.snapshot()
        self._snapshot = snapshot
        self._compiled: tuple[_CompiledAgent, ...] = tuple(
            (
                agent,
                tuple((trigger, _compile_phrase(trigger)) for trigger in agent.triggers),
            )
            for agent in snapshot
        )

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def match(self, prompt: str) -> list[MatchResult]:
        """Return the agents whose triggers occur in ``prompt``.

        Args:
            prompt: Raw user input.

        Returns:
            One MatchResult per selected agent, in registry order. Empty if
            nothing matched.

        Raises:
            EmptyPromptError: If the prompt is empty or whitespace only.
        """
        text = normalize_prompt(prompt)
        results: list[MatchResult] = []
        for agent, triggers in self._compiled:
            matched = tuple(
                trigger for trigger, pattern in triggers if pattern.search(text)
            )
            if matched:
                results.append(
                    MatchResult(agent_id=agent.id, matched_triggers=matched)
                )
        return results


def dispatch(
    prompt: str, registry: Registry | RegistrySnapshot
) -> list[MatchResult]:
    """Match ``prompt`` against ``registry`` and return the selected agents.

    The registry snapshot is read once, so a concurrent ``Registry.replace``
    is either fully visible to this call or not at all.

    Args:
        prompt: Raw user input.
        registry: A Registry, or a snapshot previously taken from one.

    Returns:
        MatchResults in registry registration order.

    Raises:
        EmptyPromptError: If the prompt is empty or whitespace only.
    """
    # Fail on blank input before touching the registry
    normalize_prompt(prompt)
    return TriggerMatcher(registry).match(prompt)
