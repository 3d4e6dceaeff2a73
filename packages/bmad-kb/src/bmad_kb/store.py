"""Content store: loads and caches definition files from the content root."""
from __future__ import annotations

import dataclasses
import glob
from typing import TYPE_CHECKING, TypeVar

from bmad_common.errors import BmadError, InvalidInputError
from bmad_common.logging import get_logger

from bmad_kb.cache import EntityCache
from bmad_kb.files import find_directories, find_files, path_exists, read_text
from bmad_kb.parser import (
    parse_agent,
    parse_checklist,
    parse_pack_metadata,
    parse_task,
    parse_team,
    parse_template,
    parse_workflow,
)
from bmad_kb.types import (
    Agent,
    Checklist,
    ExpansionPack,
    Task,
    Team,
    Template,
    Workflow,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    from bmad_common.config import BmadConfig

logger = get_logger("kb.store")

T = TypeVar("T")

# Directory and file suffix per entity kind, relative to a content root
_AGENTS = ("agents", ".md")
_TASKS = ("tasks", ".md")
_TEMPLATES = ("templates", ".yaml")
_WORKFLOWS = ("workflows", ".yaml")
_CHECKLISTS = ("checklists", ".md")
_TEAMS = ("agent-teams", ".yaml")

_DATA_DIR = "data"
_KNOWLEDGE_BASE = "bmad-kb"
_PACK_METADATA = "pack-metadata.yaml"


def _parse_agent_named(text: str, source: str, _name: str) -> Agent:
    return parse_agent(text, source)


class ContentStore:
    """Reads entity definitions from a content root and its expansion packs.

    Lookups check the per-kind cache first, then the canonical file under
    the content root, then (agents only) every expansion pack.  A missing
    definition is reported as *None*; a definition that exists but cannot
    be decoded raises :class:`ParseError`.
    """

    def __init__(self, root: Path, expansion_packs_root: Path | None = None) -> None:
        self._root = root
        self._packs_root = (
            expansion_packs_root
            if expansion_packs_root is not None
            else root.parent / "expansion-packs"
        )
        self._agents: EntityCache[Agent] = EntityCache("agent")
        self._tasks: EntityCache[Task] = EntityCache("task")
        self._templates: EntityCache[Template] = EntityCache("template")
        self._workflows: EntityCache[Workflow] = EntityCache("workflow")
        self._checklists: EntityCache[Checklist] = EntityCache("checklist")

    @classmethod
    def from_config(cls, config: BmadConfig) -> ContentStore:
        return cls(config.content.root_path, config.content.expansion_packs_path)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def expansion_packs_root(self) -> Path:
        return self._packs_root

    async def initialize(self) -> bool:
        """Verify the content root exists."""
        if not await path_exists(self._root):
            logger.error("BMAD core not found at: %s", self._root)
            return False
        logger.info("Content store ready at %s", self._root)
        return True

    # ── Paths ────────────────────────────────────────────────────────

    def entity_path(self, layout: tuple[str, str], name: str) -> Path:
        directory, suffix = layout
        return self._root / directory / f"{_checked_name(name)}{suffix}"

    def data_file_path(self, name: str) -> Path:
        """Location of the data file ``name``; ``.md`` is appended unless already present."""
        filename = _checked_name(name)
        if not filename.endswith(".md"):
            filename = f"{filename}.md"
        return self._root / _DATA_DIR / filename

    # ── Agents ───────────────────────────────────────────────────────

    async def get_agent(self, name: str) -> Agent | None:
        cached = self._agents.get(name)
        if cached is not None:
            return cached

        agent = await self._load(self.entity_path(_AGENTS, name), name, _parse_agent_named)
        if agent is None:
            agent = await self._find_pack_agent(name)
        if agent is None:
            logger.debug("Agent not found: %s", name)
            return None

        self._agents.set(name, agent)
        return agent

    async def list_agents(self, include_expansion_packs: bool = False) -> list[Agent]:
        """Load every core agent, plus expansion-pack agents when requested.

        Agents that fail to parse are logged and skipped.
        """
        agents = await self._list(_AGENTS, self.get_agent)

        if include_expansion_packs:
            for agent_file in await find_files("*/agents/*.md", self._packs_root):
                try:
                    agent = await self._load_pack_agent(agent_file)
                except BmadError:
                    logger.warning(
                        "Failed to load expansion pack agent: %s",
                        agent_file,
                        exc_info=True,
                    )
                    continue
                agents.append(agent)

        return agents

    async def _find_pack_agent(self, name: str) -> Agent | None:
        pattern = f"*/agents/{glob.escape(_checked_name(name))}.md"
        matches = await find_files(pattern, self._packs_root)
        if not matches:
            return None
        return await self._load_pack_agent(matches[0])

    async def _load_pack_agent(self, agent_file: Path) -> Agent:
        pack_name = agent_file.parent.parent.name
        text = await read_text(agent_file)
        agent = parse_agent(text, str(agent_file))
        return dataclasses.replace(agent, source=pack_name)

    # ── Tasks, templates, workflows, checklists ──────────────────────

    async def get_task(self, name: str) -> Task | None:
        return await self._get(self._tasks, _TASKS, name, parse_task)

    async def list_tasks(self) -> list[Task]:
        return await self._list(_TASKS, self.get_task)

    async def get_template(self, name: str) -> Template | None:
        return await self._get(self._templates, _TEMPLATES, name, parse_template)

    async def list_templates(self) -> list[Template]:
        return await self._list(_TEMPLATES, self.get_template)

    async def get_workflow(self, name: str) -> Workflow | None:
        return await self._get(self._workflows, _WORKFLOWS, name, parse_workflow)

    async def list_workflows(self) -> list[Workflow]:
        return await self._list(_WORKFLOWS, self.get_workflow)

    async def get_checklist(self, name: str) -> Checklist | None:
        return await self._get(self._checklists, _CHECKLISTS, name, parse_checklist)

    async def list_checklists(self) -> list[Checklist]:
        return await self._list(_CHECKLISTS, self.get_checklist)

    # ── Data, teams, packs ───────────────────────────────────────────

    async def read_data_file(self, name: str) -> str | None:
        """Return the raw text of a data file, or *None* if it does not exist."""
        path = self.data_file_path(name)
        if not await path_exists(path):
            return None
        return await read_text(path)

    async def get_knowledge_base(self) -> str:
        return await self.read_data_file(_KNOWLEDGE_BASE) or ""

    async def list_teams(self) -> list[Team]:
        directory, suffix = _TEAMS
        teams: list[Team] = []
        for team_file in await find_files(f"*{suffix}", self._root / directory):
            try:
                text = await read_text(team_file)
                teams.append(parse_team(text, str(team_file), team_file.stem))
            except BmadError:
                logger.warning("Failed to load team: %s", team_file, exc_info=True)
        return teams

    async def list_expansion_packs(self) -> list[ExpansionPack]:
        packs: list[ExpansionPack] = []
        for pack_dir in await find_directories(self._packs_root):
            metadata_file = pack_dir / _PACK_METADATA
            if not await path_exists(metadata_file):
                packs.append(ExpansionPack(
                    name=pack_dir.name,
                    description=f"BMAD expansion pack: {pack_dir.name}",
                ))
                continue
            try:
                text = await read_text(metadata_file)
                packs.append(parse_pack_metadata(text, str(metadata_file), pack_dir.name))
            except BmadError:
                logger.warning(
                    "Failed to load expansion pack: %s", pack_dir, exc_info=True
                )
        return packs

    # ── Cache control ────────────────────────────────────────────────

    def clear_caches(self) -> None:
        """Drop every cached entity.

        Run only while no lookups are in flight; a concurrent load may
        re-insert its entry after the clear.
        """
        for cache in (
            self._agents,
            self._tasks,
            self._templates,
            self._workflows,
            self._checklists,
        ):
            cache.clear()
        logger.debug("All caches cleared")

    # ── Internals ────────────────────────────────────────────────────

    async def _get(
        self,
        cache: EntityCache[T],
        layout: tuple[str, str],
        name: str,
        parse: Callable[[str, str, str], T],
    ) -> T | None:
        cached = cache.get(name)
        if cached is not None:
            return cached

        entity = await self._load(self.entity_path(layout, name), name, parse)
        if entity is None:
            logger.debug("%s not found: %s", cache.kind.capitalize(), name)
            return None

        cache.set(name, entity)
        return entity

    @staticmethod
    async def _load(
        path: Path,
        name: str,
        parse: Callable[[str, str, str], T],
    ) -> T | None:
        if not await path_exists(path):
            return None
        text = await read_text(path)
        return parse(text, str(path), name)

    async def _list(
        self,
        layout: tuple[str, str],
        get: Callable[[str], Awaitable[T | None]],
    ) -> list[T]:
        directory, suffix = layout
        entities: list[T] = []
        for entity_file in await find_files(f"*{suffix}", self._root / directory):
            try:
                entity = await get(entity_file.stem)
            except BmadError:
                logger.warning("Failed to load %s", entity_file, exc_info=True)
                continue
            if entity is not None:
                entities.append(entity)
        return entities


def _checked_name(name: str) -> str:
    """Reject identifiers that could address files outside their directory."""
    if not name or "/" in name or "\\" in name or name.startswith("."):
        msg = f"Invalid entity name: {name!r}"
        raise InvalidInputError(msg)
    return name

