"""Normalized compiler diagnostics shared by the check step and the HTTP envelope."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, model_validator


class DiagnosticCategory(str, Enum):
    """Severity of a diagnostic"""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    MESSAGE = "message"


class Diagnostic(BaseModel):
    """A check-time or emit-time compiler message.

    ``line`` is 1-indexed and ``column`` 0-indexed. Both are set or both are
    None; None means the message is not tied to a position in the source.
    """

    message: str
    code: int
    category: DiagnosticCategory
    line: Optional[int] = None
    column: Optional[int] = None

    @model_validator(mode="after")
    def _position_is_complete(self) -> "Diagnostic":
        if (self.line is None) != (self.column is None):
            raise ValueError("line and column must be given together")
        return self

    @property
    def is_error(self) -> bool:
        return self.category == DiagnosticCategory.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, leaving out the position when there is none"""
        return self.model_dump(mode="json", exclude_none=True)


def has_errors(diagnostics: List[Diagnostic]) -> bool:
    return any(d.is_error for d in diagnostics)


def format_diagnostics(diagnostics: List[Diagnostic]) -> str:
    """Format diagnostics into a human-readable string, similar to tsc output.

    One line per diagnostic: ``<category> TS<code>[:<line>:<column>]: <message>``.
    """
    lines = []
    for d in diagnostics:
        location = f":{d.line}:{d.column}" if d.line is not None else ""
        lines.append(f"{d.category.value} TS{d.code}{location}: {d.message}")
    return "\n".join(lines)
