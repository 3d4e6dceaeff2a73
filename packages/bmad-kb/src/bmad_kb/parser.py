"""Definition parsers: YAML front matter, fenced YAML blocks, and plain YAML files.

Markdown definitions (agents, tasks, checklists) keep their structured part
in YAML front matter delimited by ``---`` lines.  When there is no front
matter, the first fenced ``yaml`` block in the body is used instead.
Templates, workflows, teams and pack metadata are plain YAML documents.

Keys are read in camelCase (``displayName``) with kebab-case and
snake_case spellings accepted as equivalents.
"""
from __future__ import annotations

import re
from typing import Any

import yaml
from bmad_common.errors import ParseError

from bmad_kb.types import (
    SEVERITIES,
    WORKFLOW_TYPES,
    Agent,
    AgentMetadata,
    Checklist,
    ChecklistItem,
    Command,
    CommandParameter,
    Dependency,
    DependencyKind,
    ExpansionPack,
    Task,
    TaskInput,
    TaskOutput,
    TaskStep,
    Team,
    TeamCollaboration,
    Template,
    TemplateSection,
    TemplateVariable,
    Workflow,
    WorkflowMetadata,
    WorkflowPhase,
)

_YAML_BLOCK = re.compile(r"```ya?ml\s*\n(.*?)\n```", re.IGNORECASE | re.DOTALL)
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_PLURAL_KINDS: dict[str, DependencyKind] = {
    "tasks": DependencyKind.TASK,
    "templates": DependencyKind.TEMPLATE,
    "checklists": DependencyKind.CHECKLIST,
    "data": DependencyKind.DATA,
    "workflows": DependencyKind.WORKFLOW,
}


# ── Structured-text primitives ───────────────────────────────────────


def split_front_matter(text: str) -> tuple[str | None, str]:
    """Split text into YAML front matter and markdown body.

    Returns:
        A (front_matter, body) tuple.  ``front_matter`` is *None* when the
        text does not open with a ``---`` line or the block is never closed.
    """
    stripped = text.lstrip("\n")
    if not stripped.startswith("---"):
        return None, text

    first_newline = stripped.find("\n")
    if first_newline == -1 or stripped[:first_newline].strip() != "---":
        return None, text
    rest = stripped[first_newline + 1 :]

    if rest.startswith("---"):
        closing_idx = -1
        front_matter = ""
    else:
        closing_idx = rest.find("\n---")
        if closing_idx == -1:
            return None, text
        front_matter = rest[:closing_idx]

    after = rest[closing_idx + 1 :]  # starts at the closing "---"
    line_end = after.find("\n")
    body = "" if line_end == -1 else after[line_end + 1 :]
    return front_matter, body


def extract_yaml_block(text: str) -> str | None:
    """Return the contents of the first fenced ``yaml`` block, if any."""
    match = _YAML_BLOCK.search(text)
    return match.group(1).strip() if match else None


def parse_structured(text: str, source: str) -> dict[str, Any]:
    """Parse a YAML document that must be a mapping.

    Raises:
        ParseError: If the YAML is malformed or not a mapping.
    """
    try:
        result = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {source}: {exc}"
        raise ParseError(msg) from exc

    if not isinstance(result, dict):
        msg = f"YAML must be a mapping, got {type(result).__name__}: {source}"
        raise ParseError(msg)

    return result


def _markdown_meta(text: str, source: str) -> dict[str, Any]:
    front_matter, _ = split_front_matter(text)
    if front_matter is not None:
        return parse_structured(front_matter, source)

    block = extract_yaml_block(text)
    if block is not None:
        return parse_structured(block, source)

    msg = f"No YAML data found in {source}"
    raise ParseError(msg)


# ── Field helpers ────────────────────────────────────────────────────


def _get(meta: dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up *key* (camelCase) or its kebab-case / snake_case spelling."""
    if key in meta:
        return meta[key]
    words = _CAMEL_BOUNDARY.sub(" ", key).lower().split()
    for alias in ("-".join(words), "_".join(words)):
        if alias in meta:
            return meta[alias]
    return default


def _as_str_list(value: Any) -> list[str]:
    """Coerce a value to a list of strings, or return empty list."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value]
    return [str(value)]


def _as_str(value: Any, default: str = "") -> str:
    return default if value is None else str(value).strip()


def _as_opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _as_int(value: Any, field_name: str, source: str) -> int:
    msg = f"Field '{field_name}' must be an integer, got '{value}' in {source}"
    if isinstance(value, bool):
        raise ParseError(msg)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ParseError(msg) from None


def _as_list(value: Any, field_name: str, source: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        msg = f"Field '{field_name}' must be a list in {source}"
        raise ParseError(msg)
    return value


def _as_mapping(item: Any, field_name: str, source: str) -> dict[str, Any]:
    if not isinstance(item, dict):
        msg = f"Entries of '{field_name}' must be mappings in {source}"
        raise ParseError(msg)
    return item


def _mappings(value: Any, field_name: str, source: str) -> list[dict[str, Any]]:
    return [_as_mapping(item, field_name, source) for item in _as_list(value, field_name, source)]


def _unwrap(meta: dict[str, Any], key: str) -> dict[str, Any]:
    """Merge a nested ``key:`` mapping under the top-level fields."""
    nested = meta.get(key)
    if isinstance(nested, dict):
        return {**nested, **{k: v for k, v in meta.items() if k != key}}
    return meta


def _choice(value: Any, allowed: tuple[str, ...], field_name: str, source: str) -> str:
    text = str(value).lower()
    if text not in allowed:
        msg = (
            f"Field '{field_name}' must be one of {', '.join(allowed)}, "
            f"got '{value}' in {source}"
        )
        raise ParseError(msg)
    return text


# ── Agents ───────────────────────────────────────────────────────────


def parse_agent(text: str, source: str) -> Agent:
    """Parse an agent markdown definition.

    Raises:
        ParseError: If no YAML data is present or ``name``/``role`` is missing.
    """
    meta = _markdown_meta(text, source)

    name = _as_str(_get(meta, "name"))
    role = _as_str(_get(meta, "role"))
    if not name or not role:
        msg = f"Agent must have name and role defined: {source}"
        raise ParseError(msg)

    metadata_raw = _get(meta, "metadata")
    metadata = None
    if metadata_raw is not None:
        metadata_raw = _as_mapping(metadata_raw, "metadata", source)
        metadata = AgentMetadata(
            version=_as_opt_str(metadata_raw.get("version")),
            category=_as_opt_str(metadata_raw.get("category")),
            tags=_as_str_list(metadata_raw.get("tags")),
        )

    return Agent(
        name=name,
        role=role,
        display_name=_as_str(_get(meta, "displayName")) or name,
        persona=_as_str(_get(meta, "persona")),
        primary_domain=_as_str(_get(meta, "primaryDomain")) or "general",
        responsibilities=_as_str_list(_get(meta, "responsibilities")),
        activation_instructions=_as_str_list(_get(meta, "activationInstructions")),
        commands=_parse_commands(_get(meta, "commands"), source),
        dependencies=_parse_dependencies(_get(meta, "dependencies"), source),
        works_with=_as_str_list(_get(meta, "worksWith")),
        outputs=_as_str_list(_get(meta, "outputs")),
        metadata=metadata,
    )


def _parse_commands(value: Any, source: str) -> list[Command]:
    commands: list[Command] = []
    for item in _as_list(value, "commands", source):
        if isinstance(item, str):
            commands.append(Command(name=item, syntax=item))
            continue

        item = _as_mapping(item, "commands", source)
        if "name" in item:
            name = _as_str(item["name"])
            commands.append(Command(
                name=name,
                description=_as_str(item.get("description")),
                syntax=_as_str(item.get("syntax")) or name,
                example=_as_opt_str(item.get("example")),
                parameters=[
                    _parse_command_parameter(p, source)
                    for p in _as_list(item.get("parameters"), "parameters", source)
                ],
            ))
        elif len(item) == 1:
            # Shorthand: ``- help: Show the command list``
            ((name, description),) = item.items()
            commands.append(Command(
                name=str(name),
                description=_as_str(description),
                syntax=str(name),
            ))
        else:
            msg = f"Command entry without a name in {source}"
            raise ParseError(msg)
    return commands


def _parse_command_parameter(value: Any, source: str) -> CommandParameter:
    item = _as_mapping(value, "parameters", source)
    return CommandParameter(
        name=_as_str(item.get("name")),
        type=_as_str(item.get("type"), "string"),
        required=bool(item.get("required", False)),
        description=_as_str(item.get("description")),
        default=item.get("default"),
    )


def _dependency_kind(value: Any, source: str) -> DependencyKind:
    key = str(value).lower()
    if key in _PLURAL_KINDS:
        return _PLURAL_KINDS[key]
    try:
        return DependencyKind(key)
    except ValueError:
        msg = f"Unknown dependency type '{value}' in {source}"
        raise ParseError(msg) from None


def _parse_dependencies(value: Any, source: str) -> list[Dependency]:
    if value is None:
        return []

    # Grouped form: ``dependencies: {tasks: [a, b], data: [kb]}``
    if isinstance(value, dict):
        return [
            Dependency(kind=_dependency_kind(kind, source), name=name)
            for kind, names in value.items()
            for name in _as_str_list(names)
        ]

    dependencies: list[Dependency] = []
    for item in _as_list(value, "dependencies", source):
        item = _as_mapping(item, "dependencies", source)
        name = _as_str(item.get("name"))
        if not name:
            msg = f"Dependency entry without a name in {source}"
            raise ParseError(msg)
        dependencies.append(Dependency(
            kind=_dependency_kind(item.get("type"), source),
            name=name,
            path=_as_opt_str(item.get("path")),
            required=bool(item.get("required", False)),
        ))
    return dependencies


# ── Tasks ────────────────────────────────────────────────────────────


def parse_task(text: str, source: str, default_name: str) -> Task:
    meta = _markdown_meta(text, source)

    steps: list[TaskStep] = []
    for index, item in enumerate(_as_list(_get(meta, "steps"), "steps", source)):
        if isinstance(item, str):
            steps.append(TaskStep(order=index + 1, description=item))
            continue
        item = _as_mapping(item, "steps", source)
        steps.append(TaskStep(
            order=_as_int(item.get("order", index + 1), "order", source),
            description=_as_str(item.get("description")),
            action=_as_str(item.get("action")),
            validation=_as_opt_str(item.get("validation")),
        ))

    return Task(
        name=_as_str(_get(meta, "name")) or default_name,
        description=_as_str(_get(meta, "description")),
        agents=_as_str_list(_get(meta, "agents")),
        inputs=[
            TaskInput(
                name=_as_str(i.get("name")),
                type=_as_str(i.get("type"), "string"),
                description=_as_str(i.get("description")),
                required=bool(i.get("required", False)),
            )
            for i in _named_entries(_get(meta, "inputs"), "inputs", source)
        ],
        steps=steps,
        outputs=[
            TaskOutput(
                name=_as_str(o.get("name")),
                type=_as_str(o.get("type"), "string"),
                description=_as_str(o.get("description")),
                location=_as_opt_str(o.get("location")),
            )
            for o in _named_entries(_get(meta, "outputs"), "outputs", source)
        ],
        validation=_as_str_list(_get(meta, "validation")),
        examples=_as_str_list(_get(meta, "examples")),
    )


def _named_entries(value: Any, field_name: str, source: str) -> list[dict[str, Any]]:
    """Normalise a list of ``name`` strings or mappings to mappings."""
    return [
        {"name": item} if isinstance(item, str) else _as_mapping(item, field_name, source)
        for item in _as_list(value, field_name, source)
    ]


# ── Templates ────────────────────────────────────────────────────────


def parse_template(text: str, source: str, default_name: str) -> Template:
    meta = parse_structured(text, source)
    header = meta.get("template") if isinstance(meta.get("template"), dict) else {}

    return Template(
        name=_as_str(_get(meta, "name") or header.get("name") or header.get("id"))
        or default_name,
        description=_as_str(_get(meta, "description") or header.get("description")),
        type=_as_str(_get(meta, "type") or header.get("type")),
        sections=[
            _parse_section(s, source)
            for s in _as_list(_get(meta, "sections"), "sections", source)
        ],
        variables=[
            TemplateVariable(
                name=_as_str(v.get("name")),
                type=_as_str(v.get("type"), "string"),
                description=_as_str(v.get("description")),
                default=_as_opt_str(v.get("default")),
                required=bool(v.get("required", False)),
            )
            for v in _named_entries(_get(meta, "variables"), "variables", source)
        ],
        llm_instructions=_as_str_list(_get(meta, "llmInstructions")),
        validation=_as_str_list(_get(meta, "validation")),
    )


def _parse_section(value: Any, source: str) -> TemplateSection:
    item = _as_mapping(value, "sections", source)
    name = _as_str(item.get("name") or item.get("id"))
    if not name:
        msg = f"Template section without a name or id in {source}"
        raise ParseError(msg)
    return TemplateSection(
        name=name,
        title=_as_str(item.get("title")) or name,
        description=_as_opt_str(item.get("description")),
        content=_as_opt_str(item.get("content")),
        subsections=[
            _parse_section(s, source)
            for s in _as_list(item.get("subsections"), "subsections", source)
        ],
        required=bool(item.get("required", False)),
    )


# ── Workflows ────────────────────────────────────────────────────────


def parse_workflow(text: str, source: str, default_name: str) -> Workflow:
    meta = _unwrap(parse_structured(text, source), "workflow")

    phases: list[WorkflowPhase] = []
    for index, item in enumerate(_as_list(_get(meta, "phases"), "phases", source)):
        item = _as_mapping(item, "phases", source)
        phases.append(WorkflowPhase(
            name=_as_str(item.get("name")) or f"phase-{index + 1}",
            description=_as_str(item.get("description")),
            agent=_as_str(item.get("agent")),
            tasks=_as_str_list(item.get("tasks")),
            deliverables=_as_str_list(item.get("deliverables")),
            next_phase=_as_opt_str(_get(item, "nextPhase")),
            conditions=_as_str_list(item.get("conditions")),
        ))

    metadata_raw = _get(meta, "metadata")
    metadata = None
    if metadata_raw is not None:
        metadata_raw = _as_mapping(metadata_raw, "metadata", source)
        complexity = metadata_raw.get("complexity")
        metadata = WorkflowMetadata(
            estimated_duration=_as_opt_str(_get(metadata_raw, "estimatedDuration")),
            complexity=(
                None if complexity is None
                else _choice(complexity, ("low", "medium", "high"), "complexity", source)
            ),
            prerequisites=_as_str_list(metadata_raw.get("prerequisites")),
        )

    return Workflow(
        name=_as_str(_get(meta, "name")) or default_name,
        description=_as_str(_get(meta, "description")),
        type=_choice(_get(meta, "type", "greenfield"), WORKFLOW_TYPES, "type", source),
        phases=phases,
        metadata=metadata,
    )


# ── Checklists ───────────────────────────────────────────────────────


def parse_checklist(text: str, source: str, default_name: str) -> Checklist:
    meta = _markdown_meta(text, source)

    items: list[ChecklistItem] = []
    for index, item in enumerate(_as_list(_get(meta, "items"), "items", source)):
        item = _as_mapping(item, "items", source)
        items.append(ChecklistItem(
            id=_as_str(item.get("id")) or str(index + 1),
            description=_as_str(item.get("description")),
            category=_as_str(item.get("category")),
            validation=_as_str(item.get("validation")),
            auto_fixable=bool(_get(item, "autoFixable", False)),
            required=bool(item.get("required", False)),
        ))

    severity = _get(meta, "severity")
    return Checklist(
        name=_as_str(_get(meta, "name")) or default_name,
        description=_as_str(_get(meta, "description")),
        type=_as_str(_get(meta, "type")),
        agent=_as_str(_get(meta, "agent")),
        items=items,
        severity=None if severity is None else _choice(severity, SEVERITIES, "severity", source),
    )


# ── Teams & expansion packs ──────────────────────────────────────────


def parse_team(text: str, source: str, default_name: str) -> Team:
    meta = _unwrap(parse_structured(text, source), "bundle")

    workflow = _get(meta, "workflow")
    if workflow is None:
        workflows = _as_str_list(_get(meta, "workflows"))
        workflow = workflows[0] if workflows else None

    return Team(
        name=_as_str(_get(meta, "name")) or default_name,
        description=_as_str(_get(meta, "description")),
        agents=_as_str_list(_get(meta, "agents")),
        workflow=_as_opt_str(workflow),
        collaboration=[
            TeamCollaboration(
                from_agent=_as_str(c.get("from")),
                to_agent=_as_str(c.get("to")),
                via=_as_str(c.get("via")),
                description=_as_str(c.get("description")),
            )
            for c in _mappings(_get(meta, "collaboration"), "collaboration", source)
        ],
    )


def parse_pack_metadata(text: str, source: str, pack_dir_name: str) -> ExpansionPack:
    meta = parse_structured(text, source)
    return ExpansionPack(
        name=_as_str(_get(meta, "name")) or pack_dir_name,
        version=_as_str(_get(meta, "version")) or "1.0.0",
        description=(
            _as_str(_get(meta, "description"))
            or f"BMAD expansion pack: {pack_dir_name}"
        ),
        category=_as_str(_get(meta, "category")) or "general",
        agents=_as_str_list(_get(meta, "agents")),
        templates=_as_str_list(_get(meta, "templates")),
        tasks=_as_str_list(_get(meta, "tasks")),
        workflows=_as_str_list(_get(meta, "workflows")),
        checklists=_as_str_list(_get(meta, "checklists")),
        dependencies=_as_str_list(_get(meta, "dependencies")),
        author=_as_opt_str(_get(meta, "author")),
        license=_as_opt_str(_get(meta, "license")),
    )
