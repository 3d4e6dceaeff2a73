"""BMAD Knowledge Base: definition loading, dependency resolution, and agent activation."""
from __future__ import annotations

from bmad_kb.catalog import Catalog
from bmad_kb.classifier import classify, matches_category, matches_template_category
from bmad_kb.composer import ActivationComposer, PromptSection
from bmad_kb.manager import AgentManager, agent_summary
from bmad_kb.parser import extract_yaml_block, parse_structured, split_front_matter
from bmad_kb.resolver import DependencyResolver
from bmad_kb.store import ContentStore
from bmad_kb.tokens import estimate_tokens, fits_in_token_limit, token_usage_summary
from bmad_kb.types import (
    ActivationPrompt,
    ActivationResult,
    Agent,
    AgentSummary,
    Checklist,
    Command,
    Dependency,
    DependencyKind,
    ExpansionPack,
    ResolvedDependencies,
    Task,
    Team,
    Template,
    Workflow,
)

__all__ = [
    "ActivationComposer",
    "ActivationPrompt",
    "ActivationResult",
    "Agent",
    "AgentManager",
    "AgentSummary",
    "Catalog",
    "Checklist",
    "Command",
    "ContentStore",
    "Dependency",
    "DependencyKind",
    "DependencyResolver",
    "ExpansionPack",
    "PromptSection",
    "ResolvedDependencies",
    "Task",
    "Team",
    "Template",
    "Workflow",
    "agent_summary",
    "classify",
    "estimate_tokens",
    "extract_yaml_block",
    "fits_in_token_limit",
    "matches_category",
    "matches_template_category",
    "parse_structured",
    "split_front_matter",
    "token_usage_summary",
]
