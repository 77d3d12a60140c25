# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Shared fixtures for microagent dispatch tests.

Provides:
- A registry with the backend/frontend/qa agents used throughout the tests
- A helper for writing markdown microagents into a temporary directory
- Settings isolation (fresh cache, no stray .env files)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from textwrap import dedent

import pytest

from microagent_dispatch.registry import Registry
from microagent_dispatch.settings import clear_settings_cache

BACKEND_PAYLOAD = "# Backend\n\nUse Django REST framework for every endpoint.\n"
FRONTEND_PAYLOAD = "# Frontend\n\nComponents live under src/components.\n"
QA_PAYLOAD = "# QA\n\nRun pytest with coverage before every commit.\n"


@pytest.fixture
def registry() -> Registry:
    """Registry with backend, frontend and qa agents, in that order."""
    reg = Registry()
    reg.register("backend", ["django", "backend", "api"], BACKEND_PAYLOAD)
    reg.register("frontend", ["react", "frontend", "component"], FRONTEND_PAYLOAD)
    reg.register("qa", ["test", "pytest", "qa"], QA_PAYLOAD)
    return reg


@pytest.fixture
def agents_dir(tmp_path: Path) -> Path:
    path = tmp_path / "microagents"
    path.mkdir()
    return path


@pytest.fixture
def write_microagent(agents_dir: Path) -> Callable[..., Path]:
    """Write a markdown microagent and return its path."""

    def _write(
        filename: str,
        triggers: list[str] | None,
        body: str = "Guidance.\n",
        name: str | None = None,
        description: str | None = None,
        trigger_key: str = "triggers",
    ) -> Path:
        lines = ["---"]
        if name is not None:
            lines.append(f"name: {name}")
        if description is not None:
            lines.append(f"description: {description}")
        if triggers is not None:
            lines.append(f"{trigger_key}:")
            lines.extend(f"  - {t}" for t in triggers)
        lines.append("---")
        path = agents_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n" + dedent(body), encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Run each test from an empty directory with a fresh settings cache."""
    for var in (
        "MICROAGENTS_AGENTS_DIR",
        "MICROAGENTS_REGISTRY_FILE",
        "MICROAGENTS_MAX_CONTEXT_CHARS",
        "MICROAGENTS_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()
