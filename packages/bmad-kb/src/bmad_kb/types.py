"""Record types for BMAD knowledge-base entities."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Literal

AgentCategory = Literal["planning", "development", "quality", "orchestration", "general"]
WorkflowType = Literal["greenfield", "brownfield", "maintenance"]
Severity = Literal["critical", "high", "medium", "low"]

WORKFLOW_TYPES: tuple[str, ...] = ("greenfield", "brownfield", "maintenance")
SEVERITIES: tuple[str, ...] = ("critical", "high", "medium", "low")

CORE_SOURCE = "core"


class DependencyKind(enum.Enum):
    TASK = "task"
    TEMPLATE = "template"
    CHECKLIST = "checklist"
    DATA = "data"
    WORKFLOW = "workflow"


# ── Agents ───────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class CommandParameter:
    name: str
    type: str = "string"
    required: bool = False
    description: str = ""
    default: str | int | float | bool | None = None


@dataclass(frozen=True, slots=True)
class Command:
    """A named command an agent exposes to its user."""
    name: str
    description: str = ""
    syntax: str = ""
    example: str | None = None
    parameters: list[CommandParameter] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Dependency:
    """An agent's reference to another entity needed at activation time."""
    kind: DependencyKind
    name: str
    path: str | None = None
    required: bool = False


@dataclass(frozen=True, slots=True)
class AgentMetadata:
    version: str | None = None
    category: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Agent:
    """A parsed agent persona definition.

    ``name`` is the stable identifier; ``source`` is ``"core"`` for agents
    under the content root or the expansion pack name otherwise.
    """

    name: str
    role: str
    display_name: str = ""
    persona: str = ""
    primary_domain: str = "general"
    responsibilities: list[str] = field(default_factory=list)
    activation_instructions: list[str] = field(default_factory=list)
    commands: list[Command] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)
    works_with: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    metadata: AgentMetadata | None = None
    source: str = CORE_SOURCE

    def dependencies_of(self, kind: DependencyKind) -> list[Dependency]:
        return [d for d in self.dependencies if d.kind is kind]


# ── Tasks ────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class TaskInput:
    name: str
    type: str = "string"
    description: str = ""
    required: bool = False


@dataclass(frozen=True, slots=True)
class TaskStep:
    order: int
    description: str = ""
    action: str = ""
    validation: str | None = None


@dataclass(frozen=True, slots=True)
class TaskOutput:
    name: str
    type: str = "string"
    description: str = ""
    location: str | None = None


@dataclass(frozen=True, slots=True)
class Task:
    name: str
    description: str = ""
    agents: list[str] = field(default_factory=list)
    inputs: list[TaskInput] = field(default_factory=list)
    steps: list[TaskStep] = field(default_factory=list)
    outputs: list[TaskOutput] = field(default_factory=list)
    validation: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)


# ── Templates ────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class TemplateSection:
    name: str
    title: str = ""
    description: str | None = None
    content: str | None = None
    subsections: list[TemplateSection] = field(default_factory=list)
    required: bool = False


@dataclass(frozen=True, slots=True)
class TemplateVariable:
    name: str
    type: str = "string"
    description: str = ""
    default: str | None = None
    required: bool = False


@dataclass(frozen=True, slots=True)
class Template:
    name: str
    description: str = ""
    type: str = ""
    sections: list[TemplateSection] = field(default_factory=list)
    variables: list[TemplateVariable] = field(default_factory=list)
    llm_instructions: list[str] = field(default_factory=list)
    validation: list[str] = field(default_factory=list)


# ── Workflows ────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class WorkflowPhase:
    name: str
    description: str = ""
    agent: str = ""
    tasks: list[str] = field(default_factory=list)
    deliverables: list[str] = field(default_factory=list)
    next_phase: str | None = None
    conditions: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class WorkflowMetadata:
    estimated_duration: str | None = None
    complexity: Literal["low", "medium", "high"] | None = None
    prerequisites: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Workflow:
    name: str
    description: str = ""
    type: WorkflowType = "greenfield"
    phases: list[WorkflowPhase] = field(default_factory=list)
    metadata: WorkflowMetadata | None = None


# ── Checklists ───────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ChecklistItem:
    id: str
    description: str = ""
    category: str = ""
    validation: str = ""
    auto_fixable: bool = False
    required: bool = False


@dataclass(frozen=True, slots=True)
class Checklist:
    name: str
    description: str = ""
    type: str = ""
    agent: str = ""
    items: list[ChecklistItem] = field(default_factory=list)
    severity: Severity | None = None


# ── Teams & expansion packs ──────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class TeamCollaboration:
    from_agent: str
    to_agent: str
    via: str = ""
    description: str = ""


@dataclass(frozen=True, slots=True)
class Team:
    name: str
    description: str = ""
    agents: list[str] = field(default_factory=list)
    workflow: str | None = None
    collaboration: list[TeamCollaboration] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ExpansionPack:
    name: str
    version: str = "1.0.0"
    description: str = ""
    category: str = "general"
    agents: list[str] = field(default_factory=list)
    templates: list[str] = field(default_factory=list)
    tasks: list[str] = field(default_factory=list)
    workflows: list[str] = field(default_factory=list)
    checklists: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    author: str | None = None
    license: str | None = None


# ── Activation ───────────────────────────────────────────────────────

@dataclass(slots=True)
class ResolvedDependencies:
    """Entities fetched for one activation request.

    ``data`` maps data-file names to their text and ``workflow-<name>``
    keys to resolved :class:`Workflow` records.
    """

    tasks: list[Task] = field(default_factory=list)
    templates: list[Template] = field(default_factory=list)
    checklists: list[Checklist] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.tasks or self.templates or self.checklists or self.data)


@dataclass(frozen=True, slots=True)
class ActivationPrompt:
    text: str
    token_estimate: int


@dataclass(frozen=True, slots=True)
class ActivationResult:
    agent: Agent
    dependencies: ResolvedDependencies
    activation_prompt: str
    token_estimate: int


# ── Summaries ────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class AgentSummary:
    name: str
    display_name: str
    role: str
    primary_domain: str
    command_count: int
    dependency_count: int
    category: str
    source: str = CORE_SOURCE


@dataclass(frozen=True, slots=True)
class TaskSummary:
    name: str
    description: str
    agents: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TemplateSummary:
    name: str
    description: str
    type: str
    section_count: int
    variables: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class WorkflowSummary:
    name: str
    description: str
    type: str
    phase_count: int
    estimated_duration: str | None = None


@dataclass(frozen=True, slots=True)
class TeamSummary:
    name: str
    description: str
    agents: list[str] = field(default_factory=list)
    agent_count: int = 0
    workflow: str | None = None
