"""BMAD Tools: MCP tool surface over the knowledge base."""
from __future__ import annotations

from bmad_tools.dispatch import BmadTools, ToolName, UnknownToolError
from bmad_tools.envelope import ErrorCode, ToolError, ToolResponse, error_code_for, to_payload

__all__ = [
    "BmadTools",
    "ErrorCode",
    "ToolError",
    "ToolName",
    "ToolResponse",
    "UnknownToolError",
    "error_code_for",
    "to_payload",
]
