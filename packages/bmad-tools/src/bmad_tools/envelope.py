"""Uniform tool response envelope and payload conversion."""
from __future__ import annotations

import dataclasses
import enum
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from bmad_common.errors import (
    EntityNotFoundError,
    InvalidInputError,
    MissingRequiredDependencyError,
)


class ErrorCode(enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_DETAIL_ATTRIBUTES = ("name", "path", "dependency_name", "dependency_kind", "agent_name")


def error_code_for(exc: BaseException) -> ErrorCode:
    """Map an exception to a wire error code.

    Known exception types map directly; anything else is classified by
    its message ("not found" → NOT_FOUND, "required" → INVALID_INPUT).
    """
    if isinstance(exc, EntityNotFoundError | MissingRequiredDependencyError):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, InvalidInputError):
        return ErrorCode.INVALID_INPUT

    message = str(exc).lower()
    if "not found" in message:
        return ErrorCode.NOT_FOUND
    if "required" in message:
        return ErrorCode.INVALID_INPUT
    return ErrorCode.UNKNOWN_ERROR


def to_payload(value: Any) -> Any:
    """Convert records to JSON-compatible structures (snake_case keys)."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_payload(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): to_payload(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_payload(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class ToolError:
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BaseException) -> ToolError:
        details: dict[str, Any] = {"type": type(exc).__name__}
        for attr in _DETAIL_ATTRIBUTES:
            value = getattr(exc, attr, None)
            if isinstance(value, str):
                details[attr] = value
        return cls(
            code=error_code_for(exc),
            message=str(exc) or type(exc).__name__,
            details=details,
        )


@dataclass(frozen=True, slots=True)
class ToolResponse:
    """Result of one tool invocation: either ``data`` or ``error`` is set."""

    success: bool
    data: Any = None
    error: ToolError | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    execution_time_ms: int = 0

    @classmethod
    def ok(cls, data: Any, started: float) -> ToolResponse:
        return cls(success=True, data=data, execution_time_ms=_elapsed_ms(started))

    @classmethod
    def failed(cls, exc: BaseException, started: float) -> ToolResponse:
        return cls(
            success=False,
            error=ToolError.from_exception(exc),
            execution_time_ms=_elapsed_ms(started),
        )

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": self.success}
        if self.success:
            body["data"] = to_payload(self.data)
        elif self.error is not None:
            body["error"] = {
                "code": self.error.code.value,
                "message": self.error.message,
                "details": self.error.details,
            }
        body["metadata"] = {
            "timestamp": self.timestamp,
            "execution_time_ms": self.execution_time_ms,
        }
        return body


def _elapsed_ms(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)
