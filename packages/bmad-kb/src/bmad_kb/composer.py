"""Activation prompt composition for a single agent."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bmad_kb.tokens import estimate_tokens
from bmad_kb.types import ActivationPrompt, DependencyKind

if TYPE_CHECKING:
    from bmad_kb.types import Agent


@dataclass(frozen=True, slots=True)
class PromptSection:
    """One rendered block of the activation prompt.

    ``lines`` ends with an empty string, which becomes the blank line
    separating this section from the next.
    """

    key: str
    lines: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


_DEPENDENCY_LABELS: tuple[tuple[DependencyKind, str], ...] = (
    (DependencyKind.TASK, "Tasks"),
    (DependencyKind.TEMPLATE, "Templates"),
    (DependencyKind.CHECKLIST, "Checklists"),
)


class ActivationComposer:
    """Renders an agent into its activation prompt.

    Sections are emitted in a fixed order and skipped when their backing
    data is empty:

    1. Header (display name and role)
    2. Persona
    3. Responsibilities
    4. Activation instructions (numbered from 1)
    5. Available commands
    6. Project context (caller supplied)
    7. Initial task (caller supplied)
    8. Declared task/template/checklist dependencies
    9. Collaborators

    Every section is followed by exactly one blank line.
    """

    def compose(
        self,
        agent: Agent,
        project_context: str | None = None,
        initial_command: str | None = None,
    ) -> ActivationPrompt:
        """Render the prompt and estimate its token cost."""
        lines: list[str] = []
        for section in self.sections(agent, project_context, initial_command):
            lines.extend(section.lines)

        text = "\n".join(lines)
        return ActivationPrompt(text=text, token_estimate=estimate_tokens(text))

    def sections(
        self,
        agent: Agent,
        project_context: str | None = None,
        initial_command: str | None = None,
    ) -> list[PromptSection]:
        """Return the populated sections in rendering order."""
        candidates = [
            self._header(agent),
            self._persona(agent),
            self._responsibilities(agent),
            self._activation_instructions(agent),
            self._commands(agent),
            self._project_context(project_context),
            self._initial_task(initial_command),
            self._dependencies(agent),
            self._collaborators(agent),
        ]
        return [section for section in candidates if section is not None]

    # ── Sections ─────────────────────────────────────────────────────

    @staticmethod
    def _header(agent: Agent) -> PromptSection:
        return PromptSection("header", [
            f"# {agent.display_name or agent.name}",
            f"**Role:** {agent.role}",
            "",
        ])

    @staticmethod
    def _persona(agent: Agent) -> PromptSection | None:
        if not agent.persona:
            return None
        return PromptSection("persona", ["## Persona", agent.persona, ""])

    @staticmethod
    def _responsibilities(agent: Agent) -> PromptSection | None:
        if not agent.responsibilities:
            return None
        return PromptSection("responsibilities", [
            "## Responsibilities",
            *(f"- {resp}" for resp in agent.responsibilities),
            "",
        ])

    @staticmethod
    def _activation_instructions(agent: Agent) -> PromptSection | None:
        if not agent.activation_instructions:
            return None
        return PromptSection("activation_instructions", [
            "## Activation Instructions",
            *(
                f"{i}. {inst}"
                for i, inst in enumerate(agent.activation_instructions, start=1)
            ),
            "",
        ])

    @staticmethod
    def _commands(agent: Agent) -> PromptSection | None:
        if not agent.commands:
            return None
        lines = ["## Available Commands"]
        for cmd in agent.commands:
            lines.append(f"### {cmd.name}")
            lines.append(cmd.description)
            lines.append(f"**Syntax:** `{cmd.syntax}`")
            if cmd.example:
                lines.append(f"**Example:** `{cmd.example}`")
            lines.append("")
        return PromptSection("commands", lines)

    @staticmethod
    def _project_context(project_context: str | None) -> PromptSection | None:
        if not project_context:
            return None
        return PromptSection("project_context", [
            "## Project Context",
            f"Working in project: {project_context}",
            "",
        ])

    @staticmethod
    def _initial_task(initial_command: str | None) -> PromptSection | None:
        if not initial_command:
            return None
        return PromptSection("initial_task", [
            "## Initial Task",
            f"Execute command: {initial_command}",
            "",
        ])

    @staticmethod
    def _dependencies(agent: Agent) -> PromptSection | None:
        # Lists declared names, not resolved content
        if not agent.dependencies:
            return None
        lines = ["## Dependencies Available"]
        for kind, label in _DEPENDENCY_LABELS:
            declared = agent.dependencies_of(kind)
            if declared:
                lines.append(f"**{label}:** " + ", ".join(d.name for d in declared))
        lines.append("")
        return PromptSection("dependencies", lines)

    @staticmethod
    def _collaborators(agent: Agent) -> PromptSection | None:
        if not agent.works_with:
            return None
        return PromptSection("collaborators", [
            "## Collaborates With",
            *(f"- {collaborator}" for collaborator in agent.works_with),
            "",
        ])
