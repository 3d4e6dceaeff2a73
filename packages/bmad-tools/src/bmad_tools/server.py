"""MCP tool server exposing the BMAD knowledge base."""
from __future__ import annotations

import asyncio
import json
from typing import Any

from bmad_common.config import BmadConfig
from bmad_common.errors import ConfigError
from bmad_common.logging import get_logger, setup_logging
from fastmcp import FastMCP

from bmad_tools.dispatch import BmadTools, ToolName

logger = get_logger("server")


def create_server(
    config: BmadConfig | None = None,
    tools: BmadTools | None = None,
) -> FastMCP:
    """Build a FastMCP server with one registered tool per :class:`ToolName`."""
    config = config or BmadConfig.load()
    tools = tools or BmadTools.from_config(config)
    server = FastMCP(config.server.name)

    async def run(tool: ToolName, **arguments: Any) -> str:
        arguments = {k: v for k, v in arguments.items() if v is not None}
        envelope = await tools.execute(tool, arguments)
        return json.dumps(envelope, indent=2, default=str)

    @server.tool(name=ToolName.LIST_AGENTS.value)
    async def list_agents(
        include_expansion_packs: bool = False, category: str = "all"
    ) -> str:
        """List available BMAD agents with their roles and capabilities.

        Args:
            include_expansion_packs: Also list agents from expansion packs.
            category: One of planning, development, quality, orchestration, all.
        """
        return await run(
            ToolName.LIST_AGENTS,
            include_expansion_packs=include_expansion_packs,
            category=category,
        )

    @server.tool(name=ToolName.GET_AGENT.value)
    async def get_agent(agent_name: str, include_dependencies: bool = False) -> str:
        """Get the full definition of a BMAD agent.

        Args:
            agent_name: Name of the agent, e.g. ``dev`` or ``pm``.
            include_dependencies: Also resolve the agent's tasks, templates,
                checklists and data files.
        """
        return await run(
            ToolName.GET_AGENT,
            agent_name=agent_name,
            include_dependencies=include_dependencies,
        )

    @server.tool(name=ToolName.ACTIVATE_AGENT.value)
    async def activate_agent(
        agent_name: str,
        project_path: str | None = None,
        initial_command: str | None = None,
    ) -> str:
        """Activate a BMAD agent and return its rendered activation prompt.

        Args:
            agent_name: Name of the agent to activate.
            project_path: Project the agent will work in.
            initial_command: Command the agent should run first.
        """
        return await run(
            ToolName.ACTIVATE_AGENT,
            agent_name=agent_name,
            project_path=project_path,
            initial_command=initial_command,
        )

    @server.tool(name=ToolName.LIST_TASKS.value)
    async def list_tasks(agent_filter: str | None = None) -> str:
        """List BMAD tasks, optionally only those usable by one agent."""
        return await run(ToolName.LIST_TASKS, agent_filter=agent_filter)

    @server.tool(name=ToolName.GET_TASK.value)
    async def get_task(task_name: str) -> str:
        """Get the full definition of a BMAD task."""
        return await run(ToolName.GET_TASK, task_name=task_name)

    @server.tool(name=ToolName.LIST_TEMPLATES.value)
    async def list_templates(category: str = "all") -> str:
        """List document templates.

        Args:
            category: One of planning, development, quality, documentation, all.
        """
        return await run(ToolName.LIST_TEMPLATES, category=category)

    @server.tool(name=ToolName.GET_TEMPLATE.value)
    async def get_template(template_name: str) -> str:
        """Get a document template with its sections and variables."""
        return await run(ToolName.GET_TEMPLATE, template_name=template_name)

    @server.tool(name=ToolName.LIST_WORKFLOWS.value)
    async def list_workflows(project_type: str = "all") -> str:
        """List workflows.

        Args:
            project_type: One of greenfield, brownfield, all.
        """
        return await run(ToolName.LIST_WORKFLOWS, project_type=project_type)

    @server.tool(name=ToolName.GET_WORKFLOW.value)
    async def get_workflow(workflow_name: str, include_agent_details: bool = False) -> str:
        """Get a workflow with its phases.

        Args:
            workflow_name: Name of the workflow.
            include_agent_details: Attach a summary of each phase's agent.
        """
        return await run(
            ToolName.GET_WORKFLOW,
            workflow_name=workflow_name,
            include_agent_details=include_agent_details,
        )

    @server.tool(name=ToolName.GET_KB.value)
    async def get_kb() -> str:
        """Return the BMAD knowledge base document."""
        return await run(ToolName.GET_KB)

    @server.tool(name=ToolName.LIST_TEAMS.value)
    async def list_teams() -> str:
        """List predefined agent teams."""
        return await run(ToolName.LIST_TEAMS)

    @server.tool(name=ToolName.LIST_EXPANSION_PACKS.value)
    async def list_expansion_packs() -> str:
        """List installed expansion packs."""
        return await run(ToolName.LIST_EXPANSION_PACKS)

    return server


def serve(config: BmadConfig | None = None) -> None:
    """Validate the content root and run the server over stdio.

    Raises:
        ConfigError: If the content root directory does not exist.
    """
    config = config or BmadConfig.load()
    setup_logging(config.logging.level, config.logging.json)

    tools = BmadTools.from_config(config)
    if not asyncio.run(tools.store.initialize()):
        raise ConfigError(f"BMAD content root not found: {tools.store.root}")

    server = create_server(config, tools)
    logger.info("Starting %s over stdio (root=%s)", config.server.name, tools.store.root)
    server.run()


def main() -> None:
    serve()
