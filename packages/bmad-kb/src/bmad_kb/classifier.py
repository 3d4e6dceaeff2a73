"""Keyword-based agent categories and template category filtering."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bmad_kb.types import Agent, AgentCategory, Template

ALL = "all"
GENERAL = "general"

# Evaluation order matters: the first category with a match wins.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "planning": ("analyst", "pm", "architect", "ux", "po"),
    "development": ("dev", "developer", "engineer"),
    "quality": ("qa", "quality", "test"),
    "orchestration": ("orchestrator", "master", "scrum"),
}

AGENT_CATEGORIES: tuple[str, ...] = (*CATEGORY_KEYWORDS, ALL)
TEMPLATE_CATEGORIES: tuple[str, ...] = ("planning", "development", "quality", "documentation", ALL)


def matches_category(agent: Agent, category: str) -> bool:
    """Test *agent* against a single category's keywords.

    ``"all"`` matches every agent; an unknown category matches none.
    Keywords are case-insensitive substrings of the agent's name or role.
    """
    if category == ALL:
        return True

    keywords = CATEGORY_KEYWORDS.get(category, ())
    name = agent.name.lower()
    role = agent.role.lower()
    return any(keyword in name or keyword in role for keyword in keywords)


def classify(agent: Agent) -> AgentCategory:
    for category in CATEGORY_KEYWORDS:
        if matches_category(agent, category):
            return category  # type: ignore[return-value]
    return GENERAL


def matches_template_category(template: Template, category: str | None) -> bool:
    """Substring match of *category* against the template type."""
    if not category or category == ALL:
        return True
    return category.lower() in template.type.lower()
