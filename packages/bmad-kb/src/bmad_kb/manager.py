"""Agent management: listing, lookup, and activation."""
from __future__ import annotations

from typing import TYPE_CHECKING

from bmad_common.errors import AgentNotFoundError
from bmad_common.logging import get_logger

from bmad_kb.classifier import ALL, classify, matches_category
from bmad_kb.composer import ActivationComposer
from bmad_kb.resolver import DependencyResolver
from bmad_kb.types import ActivationResult, AgentSummary

if TYPE_CHECKING:
    from bmad_kb.store import ContentStore
    from bmad_kb.types import Agent, ResolvedDependencies, Workflow

logger = get_logger("kb.manager")


def agent_summary(agent: Agent) -> AgentSummary:
    return AgentSummary(
        name=agent.name,
        display_name=agent.display_name,
        role=agent.role,
        primary_domain=agent.primary_domain,
        command_count=len(agent.commands),
        dependency_count=len(agent.dependencies),
        category=classify(agent),
        source=agent.source,
    )


class AgentManager:
    """Runs the activation pipeline: lookup → dependency resolution → composition.

    Args:
        store: Content store used for agent and dependency lookups.
        resolver: Dependency resolver; defaults to one bound to *store*.
        composer: Activation prompt renderer.
    """

    def __init__(
        self,
        store: ContentStore,
        resolver: DependencyResolver | None = None,
        composer: ActivationComposer | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver or DependencyResolver(store)
        self._composer = composer or ActivationComposer()

    @property
    def composer(self) -> ActivationComposer:
        return self._composer

    async def list_agents(
        self,
        include_expansion_packs: bool = False,
        category: str = ALL,
    ) -> list[Agent]:
        agents = await self._store.list_agents(include_expansion_packs)
        if category == ALL:
            return agents
        return [agent for agent in agents if matches_category(agent, category)]

    async def get_agent(self, name: str) -> Agent | None:
        return await self._store.get_agent(name)

    async def resolve_dependencies(self, agent: Agent) -> ResolvedDependencies:
        return await self._resolver.resolve(agent)

    async def activate_agent(
        self,
        name: str,
        project_path: str | None = None,
        initial_command: str | None = None,
    ) -> ActivationResult:
        """Activate an agent with its dependencies and rendered prompt.

        Raises:
            AgentNotFoundError: If no definition exists for *name*.
            MissingRequiredDependencyError: If a required dependency is missing.
        """
        agent = await self._store.get_agent(name)
        if agent is None:
            raise AgentNotFoundError(name)

        dependencies = await self._resolver.resolve(agent)
        prompt = self._composer.compose(agent, project_path, initial_command)

        logger.info("Agent %s activated (%d tokens)", name, prompt.token_estimate)

        return ActivationResult(
            agent=agent,
            dependencies=dependencies,
            activation_prompt=prompt.text,
            token_estimate=prompt.token_estimate,
        )

    async def phase_agent_details(self, workflow: Workflow) -> list[AgentSummary | None]:
        """Summaries of each phase's assigned agent, aligned with ``workflow.phases``."""
        details: list[AgentSummary | None] = []
        for phase in workflow.phases:
            agent = await self._store.get_agent(phase.agent) if phase.agent else None
            details.append(agent_summary(agent) if agent is not None else None)
        return details
