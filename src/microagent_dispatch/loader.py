# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Loaders that turn microagent files into AgentSpec values.

The registry and dispatcher never read files. This module is the adapter
between on-disk microagent definitions and the core.

Two sources are supported:

Markdown microagents, one per file, with YAML front matter::

    ---
    name: backend
    triggers:
      - django
      - backend
    description: Django backend conventions
    ---
    # Backend guidance
    ...

``keywords`` is accepted as an alias for ``triggers``. When ``name`` is
missing the file stem is used. Files without front matter or without
triggers are always-on knowledge rather than triggered agents; they are
skipped with a warning.

A YAML registry file::

    agents:
      backend:
        triggers: [django, backend, api]
        description: Django backend conventions
        definition_path: backend.md   # payload taken from this file's body
      qa:
        activation_triggers: [test, pytest]
        payload: |
          # QA guidance

Usage:
    >>> from pathlib import Path
    >>> from microagent_dispatch.loader import MarkdownAgentLoader
    >>>
    >>> loader = MarkdownAgentLoader(Path(".microagents"))
    >>> specs = loader.load_all()
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from microagent_dispatch.errors import AgentLoadError
from microagent_dispatch.models import Agent, AgentSpec
from microagent_dispatch.registry import Registry

__all__ = [
    "MarkdownAgentLoader",
    "load_registry_yaml",
    "parse_front_matter",
    "reload_registry",
]

logger = logging.getLogger(__name__)

_FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)

_TRIGGER_KEYS = ("triggers", "keywords", "activation_triggers")


def parse_front_matter(text: str) -> tuple[dict[str, Any] | None, str]:
    """Split a markdown document into front matter and body.

    Returns:
        ``(metadata, body)``. ``metadata`` is None when the document has no
        front matter block; the body is then the whole text.

    Raises:
        yaml.YAMLError: If the front matter is not valid YAML.
        ValueError: If the front matter is not a YAML mapping.
    """
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return None, text

    metadata = yaml.safe_load(match.group(1) or "")
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ValueError(
            f"Front matter must be a YAML mapping, got {type(metadata).__name__}"
        )
    return metadata, text[match.end() :].lstrip("\n")


def _triggers_from(metadata: Mapping[str, Any]) -> list[str] | None:
    """Return the declared trigger list, or None when no trigger key is set.

    Raises:
        ValueError: If the trigger value is neither a string nor a list.
    """
    for key in _TRIGGER_KEYS:
        value = metadata.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            # "triggers: django" in hand-written front matter
            return [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError(
                f"'{key}' must be a list of phrases, got {type(value).__name__}"
            )
        return list(value)
    return None


def _format_validation_error(e: ValidationError) -> str:
    details = []
    for error in e.errors():
        loc = ".".join(str(x) for x in error["loc"])
        details.append(f"  - {loc}: {error['msg']}")
    return "\n".join(details)


class MarkdownAgentLoader:
    """Loader for markdown microagents with YAML front matter.

    Attributes:
        root: Directory scanned for microagent files.
    """

    GLOB_PATTERN = "**/*.md"
    """Glob pattern for discovering microagent files."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        logger.debug("MarkdownAgentLoader initialized with root: %s", self._root)

    @property
    def root(self) -> Path:
        return self._root

    def discover(self) -> list[Path]:
        """Find every markdown file under the root, sorted by path.

        Returns an empty list if the root does not exist or is not a
        directory.
        """
        if not self._root.is_dir():
            logger.warning("Microagent directory does not exist: %s", self._root)
            return []

        discovered = sorted(
            path
            for path in self._root.glob(self.GLOB_PATTERN)
            if path.is_file() and path.name.lower() != "readme.md"
        )
        logger.info("Discovered %d microagent file(s) in %s", len(discovered), self._root)
        return discovered

    def load_file(self, path: Path) -> AgentSpec | None:
        """Load one microagent file.

        Returns:
            The AgentSpec, or None if the file is not a triggered agent.

        Raises:
            AgentLoadError: If the file cannot be read, its front matter is
                malformed, or the resulting agent fails validation.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise AgentLoadError(f"Cannot read microagent file: {path}", path, e) from e

        try:
            metadata, body = parse_front_matter(text)
        except (yaml.YAMLError, ValueError) as e:
            raise AgentLoadError(
                f"Invalid front matter in microagent file: {path}", path, e
            ) from e

        if metadata is None:
            logger.warning("Skipping %s: no front matter", path)
            return None

        try:
            triggers = _triggers_from(metadata)
        except ValueError as e:
            raise AgentLoadError(
                f"Invalid triggers in microagent file: {path}", path, e
            ) from e
        if not triggers:
            logger.warning("Skipping %s: no triggers declared", path)
            return None

        agent_id = metadata.get("name") or metadata.get("id") or path.stem
        try:
            return Agent(
                id=str(agent_id),
                triggers=tuple(triggers),
                payload=body,
                description=str(metadata.get("description") or ""),
                source=str(path),
            )
        except ValidationError as e:
            raise AgentLoadError(
                f"Microagent validation failed for {path}:\n"
                f"{_format_validation_error(e)}",
                path,
                e,
            ) from e

    def load_all(self) -> list[AgentSpec]:
        """Load every triggered microagent under the root, in path order."""
        specs = []
        for path in self.discover():
            spec = self.load_file(path)
            if spec is not None:
                specs.append(spec)
        logger.info("Loaded %d microagent(s) from %s", len(specs), self._root)
        return specs

    def __call__(self) -> list[AgentSpec]:
        return self.load_all()


def load_registry_yaml(path: Path) -> list[AgentSpec]:
    """Load agents from a YAML registry file, preserving file order.

    Raises:
        AgentLoadError: If the file is missing, malformed, or an entry is
            invalid.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise AgentLoadError(f"Registry file not found: {path}", path, e) from e
    except (OSError, UnicodeDecodeError) as e:
        raise AgentLoadError(f"Cannot read registry file: {path}", path, e) from e
    except yaml.YAMLError as e:
        raise AgentLoadError(f"Invalid YAML in registry file: {path}", path, e) from e

    if not isinstance(raw_data, dict) or not isinstance(raw_data.get("agents"), dict):
        raise AgentLoadError(
            f"Registry file must contain an 'agents' mapping: {path}", path
        )

    specs: list[AgentSpec] = []
    for agent_id, entry in raw_data["agents"].items():
        if not isinstance(entry, dict):
            raise AgentLoadError(
                f"Registry entry {agent_id!r} must be a mapping: {path}", path
            )

        payload = entry.get("payload")
        definition_path = entry.get("definition_path")
        if payload is None and definition_path:
            payload = _read_definition_body(path.parent / definition_path, path)

        try:
            triggers = _triggers_from(entry) or []
        except ValueError as e:
            raise AgentLoadError(
                f"Registry entry {agent_id!r} has invalid triggers in {path}", path, e
            ) from e

        try:
            specs.append(
                Agent(
                    id=str(agent_id),
                    triggers=tuple(triggers),
                    payload=payload or "",
                    description=str(entry.get("description") or ""),
                    source=str(path),
                )
            )
        except ValidationError as e:
            raise AgentLoadError(
                f"Registry entry {agent_id!r} failed validation in {path}:\n"
                f"{_format_validation_error(e)}",
                path,
                e,
            ) from e

    logger.info("Loaded %d agent(s) from registry file %s", len(specs), path)
    return specs


def _read_definition_body(definition: Path, registry_path: Path) -> str:
    try:
        text = definition.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise AgentLoadError(
            f"Cannot read definition file {definition} referenced by {registry_path}",
            registry_path,
            e,
        ) from e
    try:
        _, body = parse_front_matter(text)
    except (yaml.YAMLError, ValueError) as e:
        raise AgentLoadError(
            f"Invalid front matter in definition file: {definition}", definition, e
        ) from e
    return body


def reload_registry(
    registry: Registry, loader: Callable[[], Iterable[AgentSpec]]
) -> int:
    """Load a fresh agent set and swap it into ``registry``.

    If loading or validation fails the registry keeps its previous contents
    and the error propagates.

    Returns:
        Number of agents now registered.
    """
    specs = list(loader())
    registry.replace(specs)
    return len(registry)
