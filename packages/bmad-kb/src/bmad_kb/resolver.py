"""Dependency resolution: fetches the entities an agent declares it needs."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from bmad_common.errors import BmadError, MissingRequiredDependencyError
from bmad_common.logging import get_logger

from bmad_kb.types import DependencyKind, ResolvedDependencies

if TYPE_CHECKING:
    from bmad_kb.store import ContentStore
    from bmad_kb.types import Agent, Dependency

logger = get_logger("kb.resolver")

WORKFLOW_KEY_PREFIX = "workflow-"


class DependencyResolver:
    """Walks an agent's dependency declarations against a content store.

    Declarations are fetched one at a time in declared order, with no
    de-duplication.  A required declaration that cannot be fetched aborts
    the walk with :class:`MissingRequiredDependencyError` and no bundle is
    returned.  Optional misses are logged and omitted.
    """

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    async def resolve(self, agent: Agent) -> ResolvedDependencies:
        bundle = ResolvedDependencies()
        if not agent.dependencies:
            return bundle

        for dep in agent.dependencies:
            try:
                found = await self._fetch_into(bundle, dep)
            except BmadError as exc:
                if dep.required:
                    raise MissingRequiredDependencyError(
                        dep.name, dep.kind.value, agent.name
                    ) from exc
                logger.warning(
                    "Optional dependency failed to load: %s (%s)",
                    dep.name,
                    dep.kind.value,
                    exc_info=True,
                )
                continue

            if not found:
                if dep.required:
                    raise MissingRequiredDependencyError(
                        dep.name, dep.kind.value, agent.name
                    )
                logger.warning(
                    "Optional dependency not found: %s (%s)", dep.name, dep.kind.value
                )

        logger.debug(
            "Resolved dependencies for %s: tasks=%d templates=%d checklists=%d data=%d",
            agent.name,
            len(bundle.tasks),
            len(bundle.templates),
            len(bundle.checklists),
            len(bundle.data),
        )
        return bundle

    async def _fetch_into(self, bundle: ResolvedDependencies, dep: Dependency) -> bool:
        """Fetch one declaration into *bundle*; return False when it does not exist."""
        entity: Any
        if dep.kind is DependencyKind.TASK:
            entity = await self._store.get_task(dep.name)
            if entity is not None:
                bundle.tasks.append(entity)
        elif dep.kind is DependencyKind.TEMPLATE:
            entity = await self._store.get_template(dep.name)
            if entity is not None:
                bundle.templates.append(entity)
        elif dep.kind is DependencyKind.CHECKLIST:
            entity = await self._store.get_checklist(dep.name)
            if entity is not None:
                bundle.checklists.append(entity)
        elif dep.kind is DependencyKind.DATA:
            entity = await self._store.read_data_file(dep.name)
            if entity is not None:
                bundle.data[dep.name] = entity
        elif dep.kind is DependencyKind.WORKFLOW:
            entity = await self._store.get_workflow(dep.name)
            if entity is not None:
                bundle.data[f"{WORKFLOW_KEY_PREFIX}{dep.name}"] = entity
        else:
            msg = f"Unhandled dependency kind: {dep.kind!r}"
            raise AssertionError(msg)
        return entity is not None
