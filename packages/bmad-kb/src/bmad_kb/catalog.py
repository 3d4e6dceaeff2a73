"""Filtered summary listings for tasks, templates, workflows, and teams."""
from __future__ import annotations

from typing import TYPE_CHECKING

from bmad_kb.classifier import ALL, matches_template_category
from bmad_kb.types import TaskSummary, TeamSummary, TemplateSummary, WorkflowSummary

if TYPE_CHECKING:
    from bmad_kb.store import ContentStore
    from bmad_kb.types import Task, Team, Template, Workflow


def task_summary(task: Task) -> TaskSummary:
    return TaskSummary(name=task.name, description=task.description, agents=list(task.agents))


def template_summary(template: Template) -> TemplateSummary:
    return TemplateSummary(
        name=template.name,
        description=template.description,
        type=template.type,
        section_count=len(template.sections),
        variables=[v.name for v in template.variables],
    )


def workflow_summary(workflow: Workflow) -> WorkflowSummary:
    return WorkflowSummary(
        name=workflow.name,
        description=workflow.description,
        type=workflow.type,
        phase_count=len(workflow.phases),
        estimated_duration=(
            workflow.metadata.estimated_duration if workflow.metadata else None
        ),
    )


def team_summary(team: Team) -> TeamSummary:
    return TeamSummary(
        name=team.name,
        description=team.description,
        agents=list(team.agents),
        agent_count=len(team.agents),
        workflow=team.workflow,
    )


class Catalog:
    """Read-only summary views over a :class:`ContentStore`."""

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    async def list_tasks(self, agent_filter: str | None = None) -> list[TaskSummary]:
        tasks = await self._store.list_tasks()
        if agent_filter:
            tasks = [t for t in tasks if agent_filter in t.agents]
        return [task_summary(t) for t in tasks]

    async def list_templates(self, category: str | None = None) -> list[TemplateSummary]:
        templates = await self._store.list_templates()
        return [
            template_summary(t)
            for t in templates
            if matches_template_category(t, category)
        ]

    async def list_workflows(self, project_type: str | None = None) -> list[WorkflowSummary]:
        workflows = await self._store.list_workflows()
        if project_type and project_type != ALL:
            workflows = [w for w in workflows if w.type == project_type]
        return [workflow_summary(w) for w in workflows]

    async def list_teams(self) -> list[TeamSummary]:
        return [team_summary(t) for t in await self._store.list_teams()]
