# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for Registry and RegistrySnapshot."""

from __future__ import annotations

import pytest

from microagent_dispatch.errors import (
    DuplicateAgentError,
    InvalidAgentError,
    NotFoundError,
)
from microagent_dispatch.models import Agent
from microagent_dispatch.registry import Registry, RegistrySnapshot

pytestmark = pytest.mark.unit


class TestRegister:
    """Tests for Registry.register() and Registry.add()."""

    def test_register_returns_normalized_agent(self) -> None:
        reg = Registry()

        agent = reg.register("frontend", ["React", "  UI   Component "], "# Frontend")

        assert agent.id == "frontend"
        assert agent.triggers == ("react", "ui component")
        assert agent.payload == "# Frontend"
        assert reg.get("frontend") == agent

    def test_duplicate_phrases_collapse_to_first(self) -> None:
        reg = Registry()

        agent = reg.register("frontend", ["react", "React", " REACT ", "jsx"])

        assert agent.triggers == ("react", "jsx")

    def test_duplicate_id_rejected_and_state_unchanged(self, registry: Registry) -> None:
        before = registry.snapshot()

        with pytest.raises(DuplicateAgentError) as exc_info:
            registry.register("backend", ["flask"])

        assert exc_info.value.agent_id == "backend"
        assert registry.snapshot() is before
        assert registry.get("backend").triggers == ("django", "backend", "api")

    def test_empty_triggers_rejected(self) -> None:
        reg = Registry()

        with pytest.raises(InvalidAgentError):
            reg.register("empty", [])

        assert len(reg) == 0

    @pytest.mark.parametrize("triggers", [[""], ["   "], ["react", "\t"]])
    def test_blank_trigger_rejected(self, triggers: list[str]) -> None:
        reg = Registry()

        with pytest.raises(InvalidAgentError) as exc_info:
            reg.register("frontend", triggers)

        assert exc_info.value.agent_id == "frontend"
        assert "frontend" not in reg

    def test_string_triggers_rejected(self) -> None:
        with pytest.raises(InvalidAgentError):
            Registry().register("frontend", "react")

    def test_blank_id_rejected(self) -> None:
        with pytest.raises(InvalidAgentError):
            Registry().register("   ", ["react"])

    def test_invalid_agent_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Registry().register("x", [])

    def test_add_prebuilt_agent(self) -> None:
        reg = Registry()
        agent = Agent(id="qa", triggers=("test", "pytest"))

        assert reg.add(agent) is agent
        assert reg.ids() == ("qa",)

    def test_add_rejects_agent_with_blank_trigger(self) -> None:
        agent = Agent(id="qa", triggers=("test", "   "))

        with pytest.raises(InvalidAgentError):
            Registry().add(agent)


class TestLookup:
    def test_get_unknown_raises_not_found(self, registry: Registry) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            registry.get("devops")

        assert exc_info.value.agent_id == "devops"
        assert "devops" in str(exc_info.value)

    def test_not_found_is_key_error(self, registry: Registry) -> None:
        with pytest.raises(KeyError):
            registry.get("devops")

    def test_contains_accepts_ids_and_agents(self, registry: Registry) -> None:
        assert "backend" in registry
        assert registry.get("qa") in registry
        assert "devops" not in registry
        assert Agent(id="qa", triggers=("other",)) not in registry


class TestAll:
    def test_preserves_registration_order(self, registry: Registry) -> None:
        assert [a.id for a in registry.all()] == ["backend", "frontend", "qa"]

    def test_is_restartable(self, registry: Registry) -> None:
        agents = registry.all()

        assert list(agents) == list(agents)
        assert len(agents) == 3

    def test_unaffected_by_later_registration(self, registry: Registry) -> None:
        agents = registry.all()

        registry.register("devops", ["docker"])

        assert [a.id for a in agents] == ["backend", "frontend", "qa"]
        assert registry.ids() == ("backend", "frontend", "qa", "devops")


class TestReplace:
    def test_swaps_contents(self, registry: Registry) -> None:
        registry.replace(
            [
                Agent(id="architect", triggers=("design",)),
                {"id": "startup", "triggers": ["new project"], "payload": "# Start"},
            ]
        )

        assert registry.ids() == ("architect", "startup")
        assert registry.get("startup").payload == "# Start"
        with pytest.raises(NotFoundError):
            registry.get("backend")

    def test_duplicate_in_new_set_leaves_old_contents(self, registry: Registry) -> None:
        before = registry.snapshot()

        with pytest.raises(DuplicateAgentError):
            registry.replace(
                [
                    Agent(id="architect", triggers=("design",)),
                    Agent(id="architect", triggers=("api spec",)),
                ]
            )

        assert registry.snapshot() is before

    def test_invalid_agent_in_new_set_leaves_old_contents(
        self, registry: Registry
    ) -> None:
        before = registry.snapshot()

        with pytest.raises(InvalidAgentError):
            registry.replace(
                [
                    {"id": "architect", "triggers": ["design"]},
                    {"id": "broken", "triggers": []},
                ]
            )

        assert registry.snapshot() is before

    def test_replace_with_empty_set(self, registry: Registry) -> None:
        registry.replace([])

        assert len(registry) == 0

    def test_invalid_mapping_reports_agent_id(self) -> None:
        with pytest.raises(InvalidAgentError) as exc_info:
            Registry().replace([{"id": "broken", "triggers": "not-a-list"}])

        assert exc_info.value.agent_id == "broken"


class TestConstruction:
    def test_initial_agents(self) -> None:
        reg = Registry([{"id": "qa", "triggers": ["test"]}])

        assert reg.ids() == ("qa",)

    def test_from_specs(self) -> None:
        reg = Registry.from_specs([Agent(id="qa", triggers=("test",))])

        assert isinstance(reg.snapshot(), RegistrySnapshot)
        assert reg.get("qa").triggers == ("test",)

    def test_initial_duplicates_rejected(self) -> None:
        with pytest.raises(DuplicateAgentError):
            Registry(
                [
                    {"id": "qa", "triggers": ["test"]},
                    {"id": "qa", "triggers": ["pytest"]},
                ]
            )
