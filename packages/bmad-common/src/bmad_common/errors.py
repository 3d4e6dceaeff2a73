from __future__ import annotations


class BmadError(Exception):
    """Base exception for all BMAD errors."""


# ── Config Errors ────────────────────────────────────────────────────

class ConfigError(BmadError):
    """Invalid or missing configuration."""


# ── Content Errors ───────────────────────────────────────────────────

class ContentError(BmadError):
    """Base for knowledge-base content errors."""


class EntityNotFoundError(ContentError):
    """No definition file exists at any searched location."""

    kind = "entity"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{self.kind.capitalize()} not found: {name}")


class AgentNotFoundError(EntityNotFoundError):
    kind = "agent"


class TaskNotFoundError(EntityNotFoundError):
    kind = "task"


class TemplateNotFoundError(EntityNotFoundError):
    kind = "template"


class WorkflowNotFoundError(EntityNotFoundError):
    kind = "workflow"


class ParseError(ContentError):
    """A definition file exists but cannot be decoded into its record."""


class MissingRequiredDependencyError(ContentError):
    """A dependency declared ``required`` could not be resolved."""

    def __init__(self, dependency_name: str, dependency_kind: str, agent_name: str) -> None:
        self.dependency_name = dependency_name
        self.dependency_kind = dependency_kind
        self.agent_name = agent_name
        super().__init__(
            f"Required dependency not found: {dependency_name} "
            f"({dependency_kind}, declared by agent {agent_name})"
        )


# ── File Errors ──────────────────────────────────────────────────────

class FileAccessError(BmadError):
    """Base for I/O failures on content files."""

    def __init__(self, message: str, path: str) -> None:
        self.path = path
        super().__init__(message)


class FileReadError(FileAccessError):
    """A file exists but could not be read."""


class FileWriteError(FileAccessError):
    """A file could not be written."""


# ── Protocol Errors ──────────────────────────────────────────────────

class InvalidInputError(BmadError):
    """Tool arguments are missing or malformed."""
