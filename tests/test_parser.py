"""Tests for bmad_kb.parser: front matter, YAML blocks, and entity parsers."""
from __future__ import annotations

import textwrap

import pytest
from bmad_common.errors import ParseError
from bmad_kb.parser import (
    extract_yaml_block,
    parse_agent,
    parse_checklist,
    parse_pack_metadata,
    parse_structured,
    parse_task,
    parse_team,
    parse_template,
    parse_workflow,
    split_front_matter,
)
from bmad_kb.types import DependencyKind

from conftest import (
    CREATE_DOC_TASK,
    DEV_AGENT,
    GREENFIELD_WORKFLOW,
    IMPLEMENT_STORY_TASK,
    PM_AGENT,
    PRD_TEMPLATE,
    STORY_DOD_CHECKLIST,
    TEAM_ALL,
)


def _d(text: str) -> str:
    return textwrap.dedent(text)


# ── Structured-text primitives ───────────────────────────────────────


class TestSplitFrontMatter:

    def test_splits_front_matter_and_body(self) -> None:
        fm, body = split_front_matter("---\nname: x\n---\n\n# Body\n")
        assert fm == "name: x"
        assert body == "\n# Body\n"

    def test_no_front_matter(self) -> None:
        fm, body = split_front_matter("# Just markdown\n")
        assert fm is None
        assert body == "# Just markdown\n"

    def test_unclosed_front_matter(self) -> None:
        text = "---\nname: x\n# never closed\n"
        fm, body = split_front_matter(text)
        assert fm is None
        assert body == text

    def test_empty_front_matter(self) -> None:
        fm, body = split_front_matter("---\n---\nbody\n")
        assert fm == ""
        assert body == "body\n"


class TestStructuredText:

    def test_extract_yaml_block(self) -> None:
        text = "intro\n```yaml\nname: pm\nrole: PM\n```\ntrailer\n"
        assert extract_yaml_block(text) == "name: pm\nrole: PM"

    def test_extract_yaml_block_absent(self) -> None:
        assert extract_yaml_block("```python\nx = 1\n```") is None

    def test_parse_structured_mapping(self) -> None:
        assert parse_structured("a: 1\nb: [x]", "test") == {"a": 1, "b": ["x"]}

    def test_parse_structured_rejects_list(self) -> None:
        with pytest.raises(ParseError, match="must be a mapping"):
            parse_structured("- a\n- b", "test")

    def test_parse_structured_rejects_invalid_yaml(self) -> None:
        with pytest.raises(ParseError, match="Invalid YAML"):
            parse_structured("key: [unclosed", "test")


# ── Agents ───────────────────────────────────────────────────────────


class TestParseAgent:

    def test_full_agent_from_front_matter(self) -> None:
        agent = parse_agent(_d(DEV_AGENT), "dev.md")

        assert agent.name == "dev"
        assert agent.display_name == "James the Developer"
        assert agent.role == "Full Stack Developer"
        assert agent.primary_domain == "development"
        assert agent.responsibilities == ["Implement stories", "Write tests"]
        assert agent.activation_instructions == [
            "Read the story file",
            "Confirm the acceptance criteria",
        ]
        assert agent.works_with == ["qa", "sm"]
        assert agent.source == "core"

    def test_commands_full_and_shorthand(self) -> None:
        agent = parse_agent(_d(DEV_AGENT), "dev.md")

        implement, help_cmd = agent.commands
        assert implement.name == "implement"
        assert implement.syntax == "*implement {story}"
        assert implement.example == "*implement 1.2"
        assert help_cmd.name == "help"
        assert help_cmd.description == "Show available commands"
        assert help_cmd.syntax == "help"

    def test_list_form_dependencies_keep_order(self) -> None:
        agent = parse_agent(_d(DEV_AGENT), "dev.md")

        assert [(d.kind, d.name, d.required) for d in agent.dependencies] == [
            (DependencyKind.TASK, "implement-story", True),
            (DependencyKind.TEMPLATE, "story-tmpl", False),
            (DependencyKind.CHECKLIST, "story-dod", False),
            (DependencyKind.DATA, "technical-preferences", False),
        ]

    def test_yaml_block_and_grouped_dependencies(self) -> None:
        agent = parse_agent(_d(PM_AGENT), "pm.md")

        assert agent.name == "pm"
        assert agent.display_name == "John the PM"
        assert [(d.kind, d.name) for d in agent.dependencies] == [
            (DependencyKind.TASK, "create-doc"),
            (DependencyKind.TEMPLATE, "prd-tmpl"),
        ]
        assert all(not d.required for d in agent.dependencies)

    def test_defaults(self) -> None:
        agent = parse_agent("---\nname: bare\nrole: Helper\n---\n", "bare.md")

        assert agent.display_name == "bare"
        assert agent.persona == ""
        assert agent.primary_domain == "general"
        assert agent.commands == []
        assert agent.dependencies == []

    def test_kebab_case_keys(self) -> None:
        text = "---\nname: a\nrole: b\ndisplay-name: Ann\nworks-with: [c]\n---\n"
        agent = parse_agent(text, "a.md")
        assert agent.display_name == "Ann"
        assert agent.works_with == ["c"]

    def test_missing_role(self) -> None:
        with pytest.raises(ParseError, match="name and role"):
            parse_agent("---\nname: lonely\n---\n", "lonely.md")

    def test_no_yaml(self) -> None:
        with pytest.raises(ParseError, match="No YAML data"):
            parse_agent("# Just a heading\n", "empty.md")

    def test_unknown_dependency_type(self) -> None:
        text = _d("""\
            ---
            name: a
            role: b
            dependencies:
              - type: spell
                name: fireball
            ---
        """)
        with pytest.raises(ParseError, match="Unknown dependency type"):
            parse_agent(text, "a.md")


# ── Other entities ───────────────────────────────────────────────────


class TestParseTask:

    def test_full_task(self) -> None:
        task = parse_task(_d(IMPLEMENT_STORY_TASK), "t.md", "fallback")

        assert task.name == "implement-story"
        assert task.agents == ["dev"]
        assert task.inputs[0].name == "story"
        assert task.inputs[0].required is True
        assert [s.order for s in task.steps] == [1, 2]
        assert task.steps[1].action == "code"
        assert task.outputs[0].location == "src/"

    def test_name_defaults_to_file_stem(self) -> None:
        task = parse_task(_d(CREATE_DOC_TASK), "create-doc.md", "create-doc")

        assert task.name == "create-doc"
        assert [s.description for s in task.steps] == [
            "Pick a template",
            "Fill in every section",
        ]

    def test_numeric_string_order(self) -> None:
        text = "---\nsteps:\n  - order: '3'\n    description: Ship it\n---\n"
        assert parse_task(text, "t.md", "t").steps[0].order == 3

    @pytest.mark.parametrize("order", ["first", "null", "[1]", "true", "{at: 1}"])
    def test_non_integer_order(self, order: str) -> None:
        text = f"---\nsteps:\n  - order: {order}\n    description: Ship it\n---\n"

        with pytest.raises(ParseError, match="'order' must be an integer"):
            parse_task(text, "t.md", "t")


class TestParseTemplate:

    def test_header_and_sections(self) -> None:
        template = parse_template(_d(PRD_TEMPLATE), "prd.yaml", "prd-tmpl")

        assert template.name == "Product Requirements"
        assert template.type == "planning-document"
        assert [s.name for s in template.sections] == ["goals", "requirements"]
        assert template.sections[0].title == "Goals"
        assert template.sections[0].required is True
        assert template.sections[1].subsections[0].name == "functional"
        assert [v.name for v in template.variables] == ["project_name", "product_owner"]
        assert template.llm_instructions == ["Ask before assuming"]


class TestParseWorkflow:

    def test_nested_workflow_key(self) -> None:
        workflow = parse_workflow(_d(GREENFIELD_WORKFLOW), "w.yaml", "w")

        assert workflow.name == "greenfield-fullstack"
        assert workflow.type == "greenfield"
        assert [p.name for p in workflow.phases] == ["planning", "phase-2"]
        assert workflow.phases[0].next_phase == "development"
        assert workflow.metadata is not None
        assert workflow.metadata.estimated_duration == "2 weeks"
        assert workflow.metadata.complexity == "medium"

    def test_type_defaults_to_greenfield(self) -> None:
        workflow = parse_workflow("phases: []\n", "w.yaml", "plain")
        assert workflow.name == "plain"
        assert workflow.type == "greenfield"

    def test_invalid_type(self) -> None:
        with pytest.raises(ParseError, match="type"):
            parse_workflow("type: sideways\n", "w.yaml", "w")


class TestParseChecklist:

    def test_items_and_severity(self) -> None:
        checklist = parse_checklist(_d(STORY_DOD_CHECKLIST), "c.md", "c")

        assert checklist.severity == "high"
        assert [i.id for i in checklist.items] == ["tests", "2"]
        assert checklist.items[0].required is True

    def test_invalid_severity(self) -> None:
        with pytest.raises(ParseError, match="severity"):
            parse_checklist("---\nseverity: apocalyptic\n---\n", "c.md", "c")


class TestParseTeamAndPack:

    def test_team_bundle(self) -> None:
        team = parse_team(_d(TEAM_ALL), "team-all.yaml", "team-all")

        assert team.name == "team-all"
        assert team.description == "Every core agent"
        assert team.agents == ["pm", "dev"]
        assert team.workflow == "greenfield-fullstack"
        assert team.collaboration[0].from_agent == "pm"
        assert team.collaboration[0].via == "prd"

    def test_pack_metadata_defaults(self) -> None:
        pack = parse_pack_metadata("agents: [x]\n", "meta.yaml", "infra")

        assert pack.name == "infra"
        assert pack.version == "1.0.0"
        assert pack.category == "general"
        assert pack.description == "BMAD expansion pack: infra"
        assert pack.agents == ["x"]
