"""BMAD Common: shared config, errors, and logging."""
from __future__ import annotations

from bmad_common._version import __version__
from bmad_common.config import (
    BmadConfig,
    ContentConfig,
    LoggingConfig,
    ServerConfig,
)
from bmad_common.errors import (
    AgentNotFoundError,
    BmadError,
    ConfigError,
    ContentError,
    EntityNotFoundError,
    FileAccessError,
    FileReadError,
    FileWriteError,
    InvalidInputError,
    MissingRequiredDependencyError,
    ParseError,
    TaskNotFoundError,
    TemplateNotFoundError,
    WorkflowNotFoundError,
)
from bmad_common.logging import get_logger, setup_logging

__all__ = [
    # Errors
    "AgentNotFoundError",
    # Config
    "BmadConfig",
    "BmadError",
    "ConfigError",
    "ContentConfig",
    "ContentError",
    "EntityNotFoundError",
    "FileAccessError",
    "FileReadError",
    "FileWriteError",
    "InvalidInputError",
    "LoggingConfig",
    "MissingRequiredDependencyError",
    "ParseError",
    "ServerConfig",
    "TaskNotFoundError",
    "TemplateNotFoundError",
    "WorkflowNotFoundError",
    # Version
    "__version__",
    # Logging
    "get_logger",
    "setup_logging",
]
