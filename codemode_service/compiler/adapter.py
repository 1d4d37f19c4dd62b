"""Compiler Frontend Adapter: engine output in, gated CheckResult out."""

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ..diagnostics import Diagnostic, DiagnosticCategory, has_errors
from .base import (
    CompilerFrontend,
    EngineCategory,
    EngineDiagnostic,
    MessageChain,
    SourceUnit,
)

logger = logging.getLogger(__name__)

INPUT_FILE_NAME = "/input.ts"

_CATEGORY_MAP = {
    EngineCategory.WARNING: DiagnosticCategory.WARNING,
    EngineCategory.ERROR: DiagnosticCategory.ERROR,
    EngineCategory.SUGGESTION: DiagnosticCategory.SUGGESTION,
    EngineCategory.MESSAGE: DiagnosticCategory.MESSAGE,
}

_LINE_SEPARATOR = "\u2028"
_PARAGRAPH_SEPARATOR = "\u2029"


@dataclass
class CheckResult:
    """Outcome of checking one source unit.

    ``lowered`` is empty unless ``success`` is true.
    """

    lowered: str = ""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    success: bool = False


class LineIndex:
    """Line starts of a text, measured in UTF-16 code units.

    The TypeScript engine reports offsets and columns in UTF-16 code units, so
    characters outside the BMP count twice.
    """

    def __init__(self, text: str):
        starts = [0]
        pos = 0
        i = 0
        n = len(text)
        while i < n:
            ch = text[i]
            pos += 2 if ord(ch) > 0xFFFF else 1
            i += 1
            if ch == "\r":
                if i < n and text[i] == "\n":
                    pos += 1
                    i += 1
                starts.append(pos)
            elif ch in ("\n", _LINE_SEPARATOR, _PARAGRAPH_SEPARATOR):
                starts.append(pos)
        self.line_starts = starts

    def position(self, offset: int) -> Tuple[int, int]:
        """Convert an absolute offset into (1-indexed line, 0-indexed column)"""
        line = bisect_right(self.line_starts, offset) - 1
        line = max(line, 0)
        return line + 1, offset - self.line_starts[line]


def flatten_message(message_text: Union[str, MessageChain]) -> str:
    """Flatten a message chain; each nested message goes on its own indented line"""
    if isinstance(message_text, str):
        return message_text
    result = message_text.message_text
    for nxt in message_text.next:
        result += "\n  " + flatten_message(nxt)
    return result


def category_of(raw: int) -> DiagnosticCategory:
    try:
        return _CATEGORY_MAP[EngineCategory(raw)]
    except ValueError:
        return DiagnosticCategory.ERROR


class CompilerFrontendAdapter:
    """Run the frontend over a single virtual source unit and gate on errors."""

    def __init__(self, frontend: CompilerFrontend, file_name: str = INPUT_FILE_NAME):
        self.frontend = frontend
        self.file_name = file_name

    def _convert(
        self, d: EngineDiagnostic, index: Optional[LineIndex]
    ) -> Diagnostic:
        line = column = None
        if index is not None and d.start is not None and d.file_name == self.file_name:
            line, column = index.position(d.start)
        return Diagnostic(
            message=flatten_message(d.message_text),
            code=d.code,
            category=category_of(d.category),
            line=line,
            column=column,
        )

    async def check(self, source: str) -> CheckResult:
        """
        Check and lower ``source``.

        Raises:
            CompilerFrontendError: if the engine could not run
        """
        unit = SourceUnit(file_name=self.file_name, text=source)
        output = await self.frontend.compile(unit)

        index = LineIndex(source)
        diagnostics = [self._convert(d, index) for d in output.pre_emit]
        success = not has_errors(diagnostics)

        lowered = ""
        if success:
            lowered = output.emitted or ""
            # Emit diagnostics are reported but never change the outcome
            diagnostics.extend(self._convert(d, None) for d in output.emit_diagnostics)
        elif output.emitted:
            logger.warning(
                "Discarding output emitted for a failing check",
                extra={"frontend": self.frontend.name},
            )

        logger.info(
            "TypeScript check finished",
            extra={
                "success": success,
                "diagnostics": len(diagnostics),
                "lowered_bytes": len(lowered),
            },
        )
        return CheckResult(lowered=lowered, diagnostics=diagnostics, success=success)
