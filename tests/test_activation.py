"""Tests for prompt composition, token estimation, classification and activation."""
from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from bmad_common.errors import AgentNotFoundError, MissingRequiredDependencyError
from bmad_kb.classifier import classify, matches_category
from bmad_kb.composer import ActivationComposer
from bmad_kb.manager import AgentManager, agent_summary
from bmad_kb.tokens import estimate_tokens, fits_in_token_limit, token_usage_summary
from bmad_kb.types import Agent, Command, Dependency, DependencyKind

from conftest import write_file

if TYPE_CHECKING:
    from pathlib import Path

    from bmad_kb.store import ContentStore


def _full_agent() -> Agent:
    return Agent(
        name="dev",
        role="Developer",
        display_name="James",
        persona="Calm and precise.",
        responsibilities=["Write code"],
        activation_instructions=["Load the story", "Start coding"],
        commands=[
            Command(name="run", description="Run it", syntax="*run", example="*run now"),
            Command(name="help", description="Help", syntax="*help"),
        ],
        dependencies=[
            Dependency(DependencyKind.TASK, "implement-story"),
            Dependency(DependencyKind.TASK, "review"),
            Dependency(DependencyKind.CHECKLIST, "story-dod"),
            Dependency(DependencyKind.DATA, "prefs"),
        ],
        works_with=["qa"],
    )


# ── Composition ──────────────────────────────────────────────────────


class TestActivationComposer:

    def test_section_order(self) -> None:
        prompt = ActivationComposer().compose(_full_agent(), "/work/app", "*run")

        headings = [
            "# James",
            "## Persona",
            "## Responsibilities",
            "## Activation Instructions",
            "## Available Commands",
            "## Project Context",
            "## Initial Task",
            "## Dependencies Available",
            "## Collaborates With",
        ]
        positions = [prompt.text.index(h) for h in headings]
        assert positions == sorted(positions)

    def test_rendered_lines(self) -> None:
        text = ActivationComposer().compose(_full_agent(), "/work/app", "*run").text

        assert text.startswith("# James\n**Role:** Developer\n")
        assert "1. Load the story\n2. Start coding" in text
        assert "### run\nRun it\n**Syntax:** `*run`\n**Example:** `*run now`" in text
        assert "### help\nHelp\n**Syntax:** `*help`\n\n" in text
        assert "Working in project: /work/app" in text
        assert "Execute command: *run" in text
        assert "**Tasks:** implement-story, review" in text
        assert "**Checklists:** story-dod" in text
        assert "**Templates:**" not in text
        assert "prefs" not in text
        assert text.endswith("## Collaborates With\n- qa\n")

    def test_minimal_agent(self) -> None:
        prompt = ActivationComposer().compose(Agent(name="bare", role="Helper"))

        assert prompt.text == "# bare\n**Role:** Helper\n"
        assert prompt.token_estimate == estimate_tokens(prompt.text)

    def test_optional_context_omitted(self) -> None:
        text = ActivationComposer().compose(_full_agent()).text

        assert "## Project Context" not in text
        assert "## Initial Task" not in text

    def test_sections_concatenate_to_prompt(self) -> None:
        composer = ActivationComposer()
        agent = _full_agent()

        sections = composer.sections(agent, "/p", None)

        assert [s.key for s in sections] == [
            "header",
            "persona",
            "responsibilities",
            "activation_instructions",
            "commands",
            "project_context",
            "dependencies",
            "collaborators",
        ]
        joined = "\n".join(line for s in sections for line in s.lines)
        assert joined == composer.compose(agent, "/p").text


# ── Tokens ───────────────────────────────────────────────────────────


class TestTokens:

    def test_empty_text(self) -> None:
        assert estimate_tokens("") == 0

    def test_plain_words(self) -> None:
        # 11 chars / 3.5 plus one whitespace run at 0.2
        assert estimate_tokens("hello world") == 4

    def test_special_characters_cost_more(self) -> None:
        assert estimate_tokens("a{b}c;") > estimate_tokens("abcdef")

    def test_monotonic_under_appending(self) -> None:
        text = ""
        previous = 0
        for chunk in ["word ", "{x}", "   ", "more text", ";;;", "\n\n"]:
            text += chunk
            current = estimate_tokens(text)
            assert current >= previous
            previous = current

    def test_fits_in_token_limit(self) -> None:
        assert fits_in_token_limit("hello world", 4)
        assert not fits_in_token_limit("hello world", 3)

    def test_usage_summary_sorted(self) -> None:
        summary = token_usage_summary({
            "short": "hi",
            "long": "a much longer piece of text than the other one",
            "empty": "",
        })

        assert [item.name for item in summary.items] == ["long", "short", "empty"]
        assert summary.total_tokens == sum(i.tokens for i in summary.items)
        assert sum(i.percentage for i in summary.items) == pytest.approx(100.0)

    def test_usage_summary_all_empty(self) -> None:
        summary = token_usage_summary({"a": ""})
        assert summary.total_tokens == 0
        assert summary.items[0].percentage == 0.0


# ── Classification ───────────────────────────────────────────────────


class TestClassifier:

    @pytest.mark.parametrize(
        ("name", "role", "expected"),
        [
            ("analyst", "Business Analyst", "planning"),
            ("qa-architect", "Quality Architect", "planning"),
            ("dev", "Full Stack Developer", "development"),
            ("qa", "Test Lead", "quality"),
            ("bmad-orchestrator", "Coordinator", "orchestration"),
            ("writer", "Technical Writer", "general"),
        ],
    )
    def test_classify(self, name: str, role: str, expected: str) -> None:
        assert classify(Agent(name=name, role=role)) == expected

    def test_all_matches_everything(self) -> None:
        assert matches_category(Agent(name="writer", role="Writer"), "all")

    def test_unknown_category_matches_nothing(self) -> None:
        assert not matches_category(Agent(name="dev", role="Developer"), "wizardry")

    def test_case_insensitive(self) -> None:
        assert matches_category(Agent(name="X", role="QA Lead"), "quality")


# ── Activation pipeline ──────────────────────────────────────────────


class TestAgentManager:

    async def test_activate_dev(self, store: ContentStore) -> None:
        result = await AgentManager(store).activate_agent(
            "dev", project_path="/srv/shop", initial_command="*implement 1.2"
        )

        assert result.agent.name == "dev"
        assert [t.name for t in result.dependencies.tasks] == ["implement-story"]
        assert result.activation_prompt.startswith("# James the Developer")
        assert "Working in project: /srv/shop" in result.activation_prompt
        assert result.token_estimate == estimate_tokens(result.activation_prompt)
        assert result.token_estimate > 0

    async def test_activate_nonexistent(self, store: ContentStore) -> None:
        with pytest.raises(AgentNotFoundError, match="Agent not found: nonexistent"):
            await AgentManager(store).activate_agent("nonexistent")

    async def test_activate_with_missing_required_dependency(
        self, store: ContentStore, content_root: Path
    ) -> None:
        (content_root / "tasks" / "implement-story.md").unlink()

        with pytest.raises(MissingRequiredDependencyError):
            await AgentManager(store).activate_agent("dev")

    async def test_activate_optional_misses_tolerated(
        self, store: ContentStore, content_root: Path
    ) -> None:
        write_file(content_root, "agents/sm.md", """\
            ---
            name: sm
            role: Scrum Master
            dependencies:
              tasks: [create-next-story]
              checklists: [story-draft]
            ---
        """)

        result = await AgentManager(store).activate_agent("sm")

        assert result.dependencies.is_empty()
        assert "**Tasks:** create-next-story" in result.activation_prompt

    async def test_list_by_category(self, store: ContentStore) -> None:
        manager = AgentManager(store)

        planning = await manager.list_agents(category="planning")
        everyone = await manager.list_agents()

        assert sorted(a.name for a in planning) == ["pm", "qa-architect"]
        assert len(everyone) == 3

    async def test_summary(self, store: ContentStore) -> None:
        agent = await store.get_agent("dev")
        assert agent is not None

        summary = agent_summary(agent)

        assert summary.display_name == "James the Developer"
        assert summary.command_count == 2
        assert summary.dependency_count == 4
        assert summary.category == "development"
        assert summary.source == "core"

    async def test_phase_agent_details(self, store: ContentStore) -> None:
        manager = AgentManager(store)
        workflow = await store.get_workflow("brownfield-service")
        assert workflow is not None

        assert await manager.phase_agent_details(workflow) == [None]
