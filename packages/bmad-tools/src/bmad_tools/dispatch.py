"""Tool name registry and dispatch onto the knowledge base."""
from __future__ import annotations

import enum
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from bmad_common.errors import (
    AgentNotFoundError,
    BmadError,
    EntityNotFoundError,
    InvalidInputError,
    TaskNotFoundError,
    TemplateNotFoundError,
    WorkflowNotFoundError,
)
from bmad_common.logging import get_logger
from bmad_kb.catalog import Catalog
from bmad_kb.classifier import AGENT_CATEGORIES, ALL, TEMPLATE_CATEGORIES
from bmad_kb.manager import AgentManager, agent_summary
from bmad_kb.store import ContentStore
from bmad_kb.types import WORKFLOW_TYPES

from bmad_tools.envelope import ToolResponse, to_payload

if TYPE_CHECKING:
    from bmad_common.config import BmadConfig

logger = get_logger("tools")

Arguments = dict[str, Any]
Handler = Callable[[Arguments], Awaitable[Any]]


class ToolName(enum.Enum):
    LIST_AGENTS = "bmad_list_agents"
    GET_AGENT = "bmad_get_agent"
    ACTIVATE_AGENT = "bmad_activate_agent"
    LIST_TASKS = "bmad_list_tasks"
    GET_TASK = "bmad_get_task"
    LIST_TEMPLATES = "bmad_list_templates"
    GET_TEMPLATE = "bmad_get_template"
    LIST_WORKFLOWS = "bmad_list_workflows"
    GET_WORKFLOW = "bmad_get_workflow"
    GET_KB = "bmad_get_kb"
    LIST_TEAMS = "bmad_list_teams"
    LIST_EXPANSION_PACKS = "bmad_list_expansion_packs"


class UnknownToolError(BmadError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class BmadTools:
    """Executes named tools and wraps every outcome in a response envelope.

    Every :class:`ToolName` member must have a handler; construction
    fails otherwise so a new tool cannot ship half-wired.
    """

    def __init__(
        self,
        store: ContentStore,
        manager: AgentManager | None = None,
        catalog: Catalog | None = None,
    ) -> None:
        self._store = store
        self._manager = manager or AgentManager(store)
        self._catalog = catalog or Catalog(store)
        self._handlers: dict[ToolName, Handler] = {
            ToolName.LIST_AGENTS: self._list_agents,
            ToolName.GET_AGENT: self._get_agent,
            ToolName.ACTIVATE_AGENT: self._activate_agent,
            ToolName.LIST_TASKS: self._list_tasks,
            ToolName.GET_TASK: self._get_task,
            ToolName.LIST_TEMPLATES: self._list_templates,
            ToolName.GET_TEMPLATE: self._get_template,
            ToolName.LIST_WORKFLOWS: self._list_workflows,
            ToolName.GET_WORKFLOW: self._get_workflow,
            ToolName.GET_KB: self._get_kb,
            ToolName.LIST_TEAMS: self._list_teams,
            ToolName.LIST_EXPANSION_PACKS: self._list_expansion_packs,
        }
        missing = [tool.value for tool in ToolName if tool not in self._handlers]
        if missing:
            raise RuntimeError(f"No handler registered for: {', '.join(missing)}")

    @classmethod
    def from_config(cls, config: BmadConfig) -> BmadTools:
        return cls(ContentStore.from_config(config))

    @property
    def store(self) -> ContentStore:
        return self._store

    @property
    def manager(self) -> AgentManager:
        return self._manager

    async def execute(
        self,
        name: str | ToolName,
        arguments: Arguments | None = None,
    ) -> dict[str, Any]:
        """Run tool *name* and return the wire envelope as a plain dict.

        Never raises: failures come back with ``success`` set to False.
        """
        started = time.perf_counter()
        tool_name = name.value if isinstance(name, ToolName) else name
        try:
            tool = _lookup(tool_name)
            data = await self._handlers[tool](arguments or {})
        except (EntityNotFoundError, InvalidInputError) as exc:
            logger.warning("Tool %s rejected: %s", tool_name, exc)
            return ToolResponse.failed(exc, started).to_dict()
        except BmadError as exc:
            logger.error("Tool %s failed: %s", tool_name, exc)
            return ToolResponse.failed(exc, started).to_dict()
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", tool_name)
            return ToolResponse.failed(exc, started).to_dict()

        logger.debug("Tool %s completed", tool_name)
        return ToolResponse.ok(data, started).to_dict()

    # -- agents --------------------------------------------------------------

    async def _list_agents(self, args: Arguments) -> Any:
        category = _choice(args, "category", AGENT_CATEGORIES, ALL)
        agents = await self._manager.list_agents(
            include_expansion_packs=_flag(args, "include_expansion_packs"),
            category=category,
        )
        return [agent_summary(agent) for agent in agents]

    async def _get_agent(self, args: Arguments) -> Any:
        name = _required(args, "agent_name")
        agent = await self._manager.get_agent(name)
        if agent is None:
            raise AgentNotFoundError(name)

        payload = to_payload(agent)
        if _flag(args, "include_dependencies"):
            resolved = await self._manager.resolve_dependencies(agent)
            payload["resolved_dependencies"] = to_payload(resolved)
        return payload

    async def _activate_agent(self, args: Arguments) -> Any:
        return await self._manager.activate_agent(
            _required(args, "agent_name"),
            project_path=_optional(args, "project_path"),
            initial_command=_optional(args, "initial_command"),
        )

    # -- tasks and templates -------------------------------------------------

    async def _list_tasks(self, args: Arguments) -> Any:
        return await self._catalog.list_tasks(_optional(args, "agent_filter"))

    async def _get_task(self, args: Arguments) -> Any:
        name = _required(args, "task_name")
        task = await self._store.get_task(name)
        if task is None:
            raise TaskNotFoundError(name)
        return task

    async def _list_templates(self, args: Arguments) -> Any:
        category = _choice(args, "category", TEMPLATE_CATEGORIES, ALL)
        return await self._catalog.list_templates(category)

    async def _get_template(self, args: Arguments) -> Any:
        name = _required(args, "template_name")
        template = await self._store.get_template(name)
        if template is None:
            raise TemplateNotFoundError(name)
        return template

    # -- workflows -----------------------------------------------------------

    async def _list_workflows(self, args: Arguments) -> Any:
        project_type = _choice(args, "project_type", (*WORKFLOW_TYPES, ALL), ALL)
        return await self._catalog.list_workflows(project_type)

    async def _get_workflow(self, args: Arguments) -> Any:
        name = _required(args, "workflow_name")
        workflow = await self._store.get_workflow(name)
        if workflow is None:
            raise WorkflowNotFoundError(name)

        payload = to_payload(workflow)
        if _flag(args, "include_agent_details"):
            details = await self._manager.phase_agent_details(workflow)
            for phase, detail in zip(payload["phases"], details, strict=True):
                phase["agent_details"] = to_payload(detail)
        return payload

    # -- knowledge base, teams, packs ----------------------------------------

    async def _get_kb(self, args: Arguments) -> Any:
        content = await self._store.get_knowledge_base()
        return {"content": content, "has_content": bool(content)}

    async def _list_teams(self, args: Arguments) -> Any:
        return await self._catalog.list_teams()

    async def _list_expansion_packs(self, args: Arguments) -> Any:
        return await self._store.list_expansion_packs()


def _lookup(name: str) -> ToolName:
    try:
        return ToolName(name)
    except ValueError:
        raise UnknownToolError(name) from None


def _required(args: Arguments, key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{key} is required")
    return value.strip()


def _optional(args: Arguments, key: str) -> str | None:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError(f"{key} must be a string")
    return value or None


def _flag(args: Arguments, key: str) -> bool:
    value = args.get(key, False)
    if not isinstance(value, bool):
        raise InvalidInputError(f"{key} must be a boolean")
    return value


def _choice(args: Arguments, key: str, allowed: tuple[str, ...], default: str) -> str:
    value = args.get(key) or default
    if value not in allowed:
        raise InvalidInputError(f"{key} must be one of: {', '.join(allowed)}")
    return value
